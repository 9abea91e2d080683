"""chatrelay: multi-provider streaming chat relay with a terminal client.

Subpackages:
- llm: provider adapters normalizing hosted LLM APIs
- relay: relay service and its HTTP server
- client: UI-agnostic chat session consuming the event stream
- ui: Textual terminal front end
- cli: Typer command line
"""

from .errors import (
    AbortedError,
    ChatRelayError,
    RelayResponseError,
    StreamDecodeError,
    UnsupportedProviderError,
    UpstreamProviderError,
)

__version__ = "0.1.0"

__all__ = [
    "AbortedError",
    "ChatRelayError",
    "RelayResponseError",
    "StreamDecodeError",
    "UnsupportedProviderError",
    "UpstreamProviderError",
    "__version__",
]
