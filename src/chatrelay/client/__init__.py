"""Chat client.

Module structure:
- models.py: message and conversation representation
- sse.py: event-stream decoding across read boundaries
- session.py: request lifecycle, streaming consumption and cancellation
"""

from .models import Conversation, Message, ProviderSelection
from .session import APOLOGY_MESSAGE, DEFAULT_RELAY_URL, ChatSession, SessionObserver
from .sse import SSEDecoder, decode_record

__all__ = [
    "APOLOGY_MESSAGE",
    "ChatSession",
    "Conversation",
    "DEFAULT_RELAY_URL",
    "Message",
    "ProviderSelection",
    "SSEDecoder",
    "SessionObserver",
    "decode_record",
]
