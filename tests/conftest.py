"""Pytest configuration and shared fixtures."""
from collections.abc import AsyncIterator
from typing import Any

import pytest

from chatrelay.errors import UpstreamProviderError
from chatrelay.llm import (
    ChatMessage,
    LLMProvider,
    LLMResponse,
    ProviderName,
    StreamChunk,
    StreamingResponse,
    TokenUsage,
)
from chatrelay.relay import ChatRelay, ProviderRegistry


class FakeProvider(LLMProvider):
    """Scripted provider that never touches the network.

    Streams ``chunks`` in order; if ``fail_after`` is set, raises an
    UpstreamProviderError after that many chunks.
    """

    name = "fake"

    def __init__(
        self,
        chunks: list[StreamChunk] | None = None,
        fail_after: int | None = None,
        model: str = "fake-model",
    ):
        self._model = model
        self.chunks = chunks if chunks is not None else [
            StreamChunk(content="He"),
            StreamChunk(content="llo"),
            StreamChunk(usage={"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7}),
        ]
        self.fail_after = fail_after
        self.calls: list[dict[str, Any]] = []
        self.stream_closed = False
        self.closed = False

    @property
    def model(self) -> str:
        return self._model

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.calls.append({"messages": list(messages), "model": model, "stream": False})
        if self.fail_after is not None:
            raise UpstreamProviderError(self.name, "scripted failure")
        usage = TokenUsage()
        for chunk in self.chunks:
            if chunk.usage:
                usage = usage.merged(chunk.usage)
        return LLMResponse(
            content="".join(chunk.content for chunk in self.chunks),
            model=model or self._model,
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
        self.calls.append({"messages": list(messages), "model": model, "stream": True})
        return StreamingResponse(self._generate())

    async def _generate(self) -> AsyncIterator[StreamChunk]:
        try:
            for index, chunk in enumerate(self.chunks):
                if self.fail_after is not None and index >= self.fail_after:
                    raise UpstreamProviderError(self.name, "connection reset")
                yield chunk
            if self.fail_after is not None and self.fail_after >= len(self.chunks):
                raise UpstreamProviderError(self.name, "connection reset")
        finally:
            self.stream_closed = True

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_provider():
    """Provider streaming "He", "llo" then usage 5/2/7."""
    return FakeProvider()


@pytest.fixture
def registry(fake_provider):
    """Registry serving the fake provider under the openai name."""
    return ProviderRegistry({ProviderName.OPENAI: fake_provider})


@pytest.fixture
def relay(registry):
    """Relay with the default persona disabled."""
    return ChatRelay(registry, persona="")


@pytest.fixture
def conversation():
    """A one-turn conversation."""
    return [ChatMessage(role="user", content="Hi")]
