from abc import ABC, abstractmethod
from typing import Any, ClassVar

from .models import ChatMessage, LLMResponse, StreamingResponse


class LLMProvider(ABC):
    """Capability contract every hosted chat provider implements.

    This module hides the design decision of which LLM provider is used.
    Implementations own:
    - API client setup and authentication
    - Request/response format conversion
    - Usage normalization into TokenUsage
    - Wrapping SDK failures in UpstreamProviderError

    Supports async context manager protocol for proper resource cleanup:
        async with provider:
            response = await provider.chat_completion(messages)
    """

    name: ClassVar[str] = ""

    @property
    @abstractmethod
    def model(self) -> str:
        """Default model identifier."""

    @abstractmethod
    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a complete chat response with one blocking call.

        Args:
            messages: Prompt turns in order
            model: Model to use (None uses provider's default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Provider-specific parameters

        Returns:
            LLMResponse with content and normalized usage

        Raises:
            UpstreamProviderError: If the provider call fails
        """

    @abstractmethod
    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Open a streaming chat response.

        The upstream request is only sent once iteration starts. Failures
        while iterating surface as UpstreamProviderError.

        Args:
            messages: Prompt turns in order
            model: Model to use (None uses provider's default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Provider-specific parameters

        Returns:
            StreamingResponse yielding text and accumulating usage
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Suppresses "Event loop is closed" errors raised by httpx/anyio when
        the loop shuts down before the client does.
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
