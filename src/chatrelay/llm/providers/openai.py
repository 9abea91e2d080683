from collections.abc import AsyncIterator
from typing import Any, ClassVar

from openai import AsyncOpenAI, OpenAIError

from ...errors import UpstreamProviderError
from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, StreamChunk, StreamingResponse, TokenUsage, extract_usage_fields


class OpenAIProvider(LLMProvider):
    """OpenAI chat provider (Chat Completions API).

    Hidden design decisions:
    - OpenAI API client initialization
    - Message format conversion
    - Requesting usage on the final stream chunk
    - Mapping SDK errors to UpstreamProviderError
    """

    name: ClassVar[str] = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4.1-nano",
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            base_url: Optional custom API base URL
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
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
        params: dict[str, Any] = {
            "model": model or self._model,
            "messages": [{"role": msg.role, "content": msg.content} for msg in messages],
            "temperature": temperature,
            **kwargs
        }
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        return params

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a chat completion using OpenAI.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            LLMResponse with generated content
        """
        params = self._request_params(messages, model, temperature, max_tokens, **kwargs)
        try:
            completion = await self._client.chat.completions.create(**params)
        except OpenAIError as exc:
            raise UpstreamProviderError(self.name, str(exc)) from exc

        if not completion.choices:
            raise UpstreamProviderError(self.name, "response contained no choices")

        return LLMResponse(
            content=completion.choices[0].message.content or "",
            model=completion.model or params["model"],
            usage=TokenUsage.from_raw(completion.usage),
        )

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Generate a streaming chat completion using OpenAI.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            StreamingResponse that yields text chunks and captures usage info
        """
        params = self._request_params(messages, model, temperature, max_tokens, **kwargs)
        params["stream"] = True
        params["stream_options"] = {"include_usage": True}
        return StreamingResponse(self._stream_chunks(params))

    async def _stream_chunks(self, params: dict[str, Any]) -> AsyncIterator[StreamChunk]:
        """Yield text deltas; usage arrives on the final, choice-less chunk."""
        try:
            stream = await self._client.chat.completions.create(**params)
            async with stream:
                async for chunk in stream:
                    usage = extract_usage_fields(chunk.usage) if chunk.usage is not None else None
                    content = ""
                    if chunk.choices and chunk.choices[0].delta.content:
                        content = chunk.choices[0].delta.content
                    yield StreamChunk(content=content, usage=usage or None)
        except OpenAIError as exc:
            raise UpstreamProviderError(self.name, str(exc)) from exc

    async def close(self) -> None:
        """Close the OpenAI client."""
        await self._client.close()
