"""Chat relay: prompt assembly, dispatch and response normalization.

The relay is stateless per request. Both entry points, streaming and
non-streaming, go through the same dispatch and usage normalization.
"""

import logging
from collections.abc import AsyncIterator, Sequence

from ..errors import UnsupportedProviderError
from ..llm import ChatMessage, LLMResponse, ProviderName, TokenUsage
from .events import ContentEvent, DoneEvent, ErrorEvent, StreamEvent
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "The model provider failed to generate a response. Please try again later."


def assemble_prompt(persona: str, conversation: Sequence[ChatMessage]) -> list[ChatMessage]:
    """Prepend the persona as a system turn unless it is blank.

    The conversation itself is passed through in order and unmodified.
    """
    prompt = list(conversation)
    if persona.strip():
        prompt.insert(0, ChatMessage(role="system", content=persona))
    return prompt


class ChatRelay:
    """Brokers one conversation at a time between a client and a hosted LLM.

    Args:
        registry: Provider dispatch table built at start-up
        persona: System text prepended to every prompt (blank disables it)
        temperature: Sampling temperature passed to every provider
        max_tokens: Maximum output tokens per reply
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        persona: str = "",
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ):
        self._registry = registry
        self._persona = persona
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def build_prompt(self, conversation: Sequence[ChatMessage]) -> list[ChatMessage]:
        return assemble_prompt(self._persona, conversation)

    async def complete(
        self,
        conversation: Sequence[ChatMessage],
        provider: "str | ProviderName" = ProviderName.OPENAI,
        model: str | None = None,
    ) -> LLMResponse:
        """Generate a whole reply with one blocking call.

        Raises:
            UnsupportedProviderError: Before any upstream call
            UpstreamProviderError: If the provider call fails
        """
        llm = self._registry.resolve(provider)
        prompt = self.build_prompt(conversation)
        logger.debug("complete: provider=%s turns=%d", llm.name, len(prompt))
        response = await llm.chat_completion(
            prompt,
            model=model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        logger.info(
            "complete: provider=%s tokens=%d", llm.name, response.usage.total_tokens
        )
        return response

    async def stream(
        self,
        conversation: Sequence[ChatMessage],
        provider: "str | ProviderName" = ProviderName.OPENAI,
        model: str | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Yield content events followed by exactly one terminal event.

        Failures never escape as exceptions: an unsupported provider or any
        upstream failure becomes a single ErrorEvent and the stream ends.
        Closing this generator early closes the upstream provider stream.
        """
        try:
            llm = self._registry.resolve(provider)
        except UnsupportedProviderError as exc:
            logger.warning("stream rejected: %s", exc)
            yield ErrorEvent(error=str(exc))
            return

        prompt = self.build_prompt(conversation)
        logger.debug("stream: provider=%s turns=%d", llm.name, len(prompt))

        usage = TokenUsage()
        failed = False
        try:
            response = await llm.chat_completion_stream(
                prompt,
                model=model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
            async with response:
                async for text in response:
                    yield ContentEvent(content=text)
            usage = response.usage
        except Exception:
            logger.exception("stream failed: provider=%s", llm.name)
            failed = True

        if failed:
            yield ErrorEvent(error=GENERIC_ERROR_MESSAGE)
            return

        logger.info("stream done: provider=%s tokens=%d", llm.name, usage.total_tokens)
        yield DoneEvent(token_usage=usage)
