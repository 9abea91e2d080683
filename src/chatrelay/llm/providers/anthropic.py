"""Anthropic Claude LLM provider implementation.

Uses the official Anthropic Python SDK for async chat completions.
Reference: https://github.com/anthropics/anthropic-sdk-python
"""

from collections.abc import AsyncIterator
from typing import Any, ClassVar

from anthropic import AnthropicError, AsyncAnthropic

from ...errors import UpstreamProviderError
from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, StreamChunk, StreamingResponse, TokenUsage, extract_usage_fields

# Anthropic requires max_tokens on every request
DEFAULT_MAX_TOKENS = 1000


def _split_system(messages: list[ChatMessage]) -> tuple[str | None, list[dict[str, str]]]:
    """Separate system turns from the conversation.

    Anthropic takes the system prompt as a top-level parameter. Multiple
    system turns are joined in order.
    """
    system_parts: list[str] = []
    turns: list[dict[str, str]] = []
    for msg in messages:
        if msg.role == "system":
            system_parts.append(msg.content)
        else:
            turns.append({"role": msg.role, "content": msg.content})
    system = "\n\n".join(system_parts) if system_parts else None
    return system, turns


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation.

    Hidden design decisions:
    - Anthropic API client initialization
    - Message format conversion (system message handling)
    - Usage reporting split across message_start/message_delta events
    - Mapping SDK errors to UpstreamProviderError
    """

    name: ClassVar[str] = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-haiku-20240307",
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Default model to use (default: claude-3-haiku-20240307)
            base_url: Optional custom API base URL
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._model = model
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    def _request_params(
        self,
        messages: list[ChatMessage],
        model: str | None,
        temperature: float,
        max_tokens: int | None,
        **kwargs: Any
    ) -> dict[str, Any]:
        system, turns = _split_system(messages)
        params: dict[str, Any] = {
            "model": model or self._model,
            "messages": turns,
            "temperature": temperature,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            **kwargs
        }
        if system:
            params["system"] = system
        return params

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a chat completion using Anthropic Claude.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate (default: 1000)
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            LLMResponse with generated content
        """
        params = self._request_params(messages, model, temperature, max_tokens, **kwargs)
        try:
            response = await self._client.messages.create(**params)
        except AnthropicError as exc:
            raise UpstreamProviderError(self.name, str(exc)) from exc

        usage = TokenUsage.from_raw(response.usage)
        if usage.total_tokens == 0:
            usage = usage.merged({"total_tokens": usage.prompt_tokens + usage.completion_tokens})

        # Multiple content blocks are concatenated; non-text blocks are ignored
        content = "".join(
            block.text for block in response.content if getattr(block, "text", None)
        )

        return LLMResponse(
            content=content,
            model=response.model or params["model"],
            usage=usage,
        )

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Generate a streaming chat completion using Anthropic Claude.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate (default: 1000)
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            StreamingResponse that yields text chunks and captures usage info
        """
        params = self._request_params(messages, model, temperature, max_tokens, **kwargs)
        return StreamingResponse(self._stream_chunks(params))

    async def _stream_chunks(self, params: dict[str, Any]) -> AsyncIterator[StreamChunk]:
        """Yield text deltas and usage from the raw event stream."""
        input_tokens = 0
        try:
            async with self._client.messages.stream(**params) as stream:
                async for event in stream:
                    event_type = getattr(event, "type", None)
                    # message_start carries input_tokens
                    if event_type == "message_start":
                        usage = extract_usage_fields(getattr(event.message, "usage", None))
                        input_tokens = usage.get("prompt_tokens", input_tokens)
                        if usage:
                            yield StreamChunk(usage=usage)
                    # message_delta carries cumulative output_tokens
                    elif event_type == "message_delta":
                        usage = extract_usage_fields(getattr(event, "usage", None))
                        if "completion_tokens" in usage:
                            usage.setdefault("total_tokens", input_tokens + usage["completion_tokens"])
                            yield StreamChunk(usage=usage)
                    elif event_type == "content_block_delta":
                        text = getattr(event.delta, "text", None)
                        if text:
                            yield StreamChunk(content=text)
        except AnthropicError as exc:
            raise UpstreamProviderError(self.name, str(exc)) from exc

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()
