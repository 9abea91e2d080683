"""Chat relay service.

Module structure (each module hides a design decision):
- config.py: where settings come from
- registry.py: which provider instance serves a provider name
- service.py: prompt assembly and response normalization
- events.py: wire format of the event stream
- schemas.py: HTTP request/response bodies
- server.py: HTTP routing and error mapping
"""

from .config import ProviderSettings, RelaySettings, load_settings
from .events import ContentEvent, DoneEvent, ErrorEvent, StreamEvent, encode_sse, is_terminal, parse_event
from .registry import ProviderRegistry
from .server import build_relay, create_app
from .service import GENERIC_ERROR_MESSAGE, ChatRelay, assemble_prompt

__all__ = [
    "ChatRelay",
    "ContentEvent",
    "DoneEvent",
    "ErrorEvent",
    "GENERIC_ERROR_MESSAGE",
    "ProviderRegistry",
    "ProviderSettings",
    "RelaySettings",
    "StreamEvent",
    "assemble_prompt",
    "build_relay",
    "create_app",
    "encode_sse",
    "is_terminal",
    "load_settings",
    "parse_event",
]
