"""Exception hierarchy shared by the relay and the chat client."""


class ChatRelayError(Exception):
    """Base class for all chatrelay errors."""


class UnsupportedProviderError(ChatRelayError):
    """Raised when a request names a provider that is unknown or not configured.

    Always raised before any upstream call is made.
    """

    def __init__(self, provider: str, supported: list[str] | None = None):
        self.provider = provider
        self.supported = supported or []
        message = f"Unsupported provider: {provider}"
        if self.supported:
            message += f". Supported providers: {', '.join(self.supported)}"
        super().__init__(message)


class UpstreamProviderError(ChatRelayError):
    """Raised when a hosted LLM call fails (network, auth, rate limit, bad payload)."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class StreamDecodeError(ChatRelayError):
    """Raised for a malformed event-stream record."""

    def __init__(self, message: str, record: str = ""):
        self.record = record
        super().__init__(message)


class AbortedError(ChatRelayError):
    """Raised when the user cancels an in-flight request."""


class RelayResponseError(ChatRelayError):
    """Raised client-side when the relay answers with an error or an incomplete stream."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
