from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Provider-specific spellings of the three usage counters, in lookup order.
_USAGE_FIELD_NAMES: dict[str, tuple[str, ...]] = {
    "prompt_tokens": ("prompt_tokens", "promptTokens", "input_tokens", "inputTokens"),
    "completion_tokens": (
        "completion_tokens",
        "completionTokens",
        "output_tokens",
        "outputTokens",
    ),
    "total_tokens": ("total_tokens", "totalTokens"),
}


def _read(raw: Any, name: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


def _as_count(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        count = int(value)
    except (TypeError, ValueError):
        return None
    return max(count, 0)


def extract_usage_fields(raw: Any) -> dict[str, int]:
    """Pull whichever usage counters a provider reported.

    Accepts a mapping or an SDK usage object. Nested response-metadata bags
    (``{"tokenUsage": {...}}``) are unwrapped. Only counters that are present
    are returned, so the result can be merged over earlier partial usage.

    Args:
        raw: Provider usage payload, or None

    Returns:
        Dict keyed by ``prompt_tokens``/``completion_tokens``/``total_tokens``
    """
    if raw is None:
        return {}

    nested = _read(raw, "tokenUsage") or _read(raw, "token_usage")
    if nested is not None:
        raw = nested

    fields: dict[str, int] = {}
    for field_name, candidates in _USAGE_FIELD_NAMES.items():
        for candidate in candidates:
            count = _as_count(_read(raw, candidate))
            if count is not None:
                fields[field_name] = count
                break
    return fields


class TokenUsage(BaseModel):
    """Token accounting for one request, in the common client-facing shape."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    prompt_tokens: int = Field(default=0, ge=0, description="Tokens in the prompt")
    completion_tokens: int = Field(default=0, ge=0, description="Tokens generated")
    total_tokens: int = Field(default=0, ge=0, description="Prompt plus completion tokens")

    @classmethod
    def from_raw(cls, raw: Any) -> "TokenUsage":
        """Normalize a provider usage payload. Missing counters default to 0."""
        return cls(**extract_usage_fields(raw))

    def merged(self, fields: Mapping[str, int]) -> "TokenUsage":
        """Return a copy with the given counters overriding the current ones."""
        return self.model_copy(update=dict(fields))


@dataclass(frozen=True)
class StreamChunk:
    """One incremental unit of a provider stream.

    ``usage`` holds only the counters reported in this chunk.
    """

    content: str = ""
    usage: dict[str, int] | None = None


class StreamingResponse:
    """Wrapper for streaming LLM responses that captures usage info.

    Acts as an async iterator over non-empty text chunks. Usage counters
    reported by the provider along the way are merged field by field, the
    last value seen for each counter winning.

    Usage:
        stream = await provider.chat_completion_stream(messages)
        async with stream:
            async for text in stream:
                print(text, end="")
        print(stream.usage)  # TokenUsage(prompt_tokens=..., ...)

    Closing the response closes the provider stream underneath it, which
    stops the upstream generation.
    """

    def __init__(self, chunks: AsyncIterator[StreamChunk]):
        """Initialize with an async iterator of provider chunks.

        Args:
            chunks: Async iterator yielding StreamChunk objects
        """
        self._chunks = chunks
        self._usage = TokenUsage()
        self._closed = False

    @property
    def usage(self) -> TokenUsage:
        """Token usage accumulated so far (final once iteration completes)."""
        return self._usage

    @property
    def closed(self) -> bool:
        return self._closed

    def record_usage(self, fields: Mapping[str, int]) -> None:
        """Merge partial usage counters into the accumulated usage."""
        if fields:
            self._usage = self._usage.merged(fields)

    def __aiter__(self) -> "StreamingResponse":
        return self

    async def __anext__(self) -> str:
        while True:
            chunk = await self._chunks.__anext__()
            if chunk.usage:
                self.record_usage(chunk.usage)
            if chunk.content:
                return chunk.content

    async def aclose(self) -> None:
        """Stop consuming and close the underlying provider stream."""
        if self._closed:
            return
        self._closed = True
        aclose = getattr(self._chunks, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> "StreamingResponse":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()


class ChatMessage(BaseModel):
    """A single prompt turn sent upstream."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user', 'assistant', or 'system'")
    content: str = Field(description="Content of the message")


class LLMResponse(BaseModel):
    """Complete (non-streaming) response from an LLM provider."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Generated text content")
    model: str = Field(description="Model that generated the response")
    usage: TokenUsage = Field(default_factory=TokenUsage, description="Token usage information")
