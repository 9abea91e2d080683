"""Unit tests for the llm module."""
from types import SimpleNamespace
from unittest.mock import AsyncMock

import anthropic
import httpx
import openai
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from chatrelay.errors import UnsupportedProviderError, UpstreamProviderError
from chatrelay.llm import (
    AnthropicProvider,
    ChatMessage,
    GrokProvider,
    LLMProvider,
    OpenAIProvider,
    ProviderName,
    StreamChunk,
    StreamingResponse,
    TokenUsage,
    create_llm_provider,
    extract_usage_fields,
)
from chatrelay.llm.providers.anthropic import _split_system


async def _chunks(items):
    for item in items:
        yield item


class _AsyncStream:
    """Stands in for an SDK stream: async context manager and async iterator."""

    def __init__(self, items, error: Exception | None = None):
        self._items = list(items)
        self._error = error
        self.exited = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.exited = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self._items:
            yield item
        if self._error is not None:
            raise self._error


def _request() -> httpx.Request:
    return httpx.Request("POST", "https://provider.invalid/v1")


class TestUsageNormalization:
    """Tests for extract_usage_fields and TokenUsage."""

    def test_snake_case_names(self):
        fields = extract_usage_fields({"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7})
        assert fields == {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7}

    def test_camel_case_names(self):
        fields = extract_usage_fields({"promptTokens": 3, "completionTokens": 4, "totalTokens": 7})
        assert fields == {"prompt_tokens": 3, "completion_tokens": 4, "total_tokens": 7}

    def test_input_output_names(self):
        usage = SimpleNamespace(input_tokens=10, output_tokens=20)
        assert extract_usage_fields(usage) == {"prompt_tokens": 10, "completion_tokens": 20}

    def test_nested_token_usage_bag(self):
        fields = extract_usage_fields({"tokenUsage": {"promptTokens": 1, "totalTokens": 3}})
        assert fields == {"prompt_tokens": 1, "total_tokens": 3}

    def test_missing_fields_default_to_zero(self):
        usage = TokenUsage.from_raw({"completion_tokens": 4})
        assert usage == TokenUsage(prompt_tokens=0, completion_tokens=4, total_tokens=0)
        assert TokenUsage.from_raw(None) == TokenUsage()

    def test_serializes_with_camel_case_keys(self):
        usage = TokenUsage(prompt_tokens=5, completion_tokens=2, total_tokens=7)
        assert usage.model_dump(by_alias=True) == {
            "promptTokens": 5,
            "completionTokens": 2,
            "totalTokens": 7,
        }

    def test_negative_values_rejected_by_model(self):
        with pytest.raises(ValueError):
            TokenUsage(prompt_tokens=-1)

    @settings(deadline=None)
    @given(st.dictionaries(
        st.sampled_from(["prompt_tokens", "promptTokens", "input_tokens", "output_tokens",
                         "completionTokens", "total_tokens", "totalTokens"]),
        st.one_of(st.integers(min_value=-10_000, max_value=10_000), st.none(), st.text(max_size=5)),
    ))
    def test_usage_is_always_non_negative(self, raw: dict):
        """Property test: normalized usage is non-negative ints whatever the payload."""
        usage = TokenUsage.from_raw(raw)
        for value in (usage.prompt_tokens, usage.completion_tokens, usage.total_tokens):
            assert isinstance(value, int)
            assert value >= 0


class TestStreamingResponse:
    """Tests for StreamingResponse."""

    @pytest.mark.asyncio
    async def test_yields_text_and_skips_empty_chunks(self):
        response = StreamingResponse(_chunks([
            StreamChunk(content="He"),
            StreamChunk(content=""),
            StreamChunk(content="llo"),
        ]))
        assert [text async for text in response] == ["He", "llo"]

    @pytest.mark.asyncio
    async def test_usage_last_seen_wins_per_field(self):
        response = StreamingResponse(_chunks([
            StreamChunk(usage={"prompt_tokens": 5, "completion_tokens": 1}),
            StreamChunk(content="Hi"),
            StreamChunk(usage={"completion_tokens": 2}),
            StreamChunk(usage={"total_tokens": 7}),
        ]))
        async for _ in response:
            pass
        assert response.usage == TokenUsage(prompt_tokens=5, completion_tokens=2, total_tokens=7)

    @pytest.mark.asyncio
    async def test_aclose_closes_underlying_generator(self):
        finished = []

        async def chunks():
            try:
                yield StreamChunk(content="a")
                yield StreamChunk(content="b")
            finally:
                finished.append(True)

        async with StreamingResponse(chunks()) as response:
            assert await response.__anext__() == "a"
        assert response.closed
        assert finished == [True]


class TestLLMProviderInterface:
    """Tests for the abstract LLMProvider interface."""

    def test_provider_is_abstract(self):
        """Test that LLMProvider cannot be instantiated directly."""
        with pytest.raises(TypeError):
            LLMProvider()  # type: ignore

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, fake_provider):
        async with fake_provider:
            pass
        assert fake_provider.closed


class TestFactory:
    """Tests for create_llm_provider and ProviderName."""

    @pytest.mark.parametrize("name,cls", [
        ("openai", OpenAIProvider),
        ("anthropic", AnthropicProvider),
        ("grok", GrokProvider),
    ])
    def test_creates_provider(self, name, cls):
        provider = create_llm_provider(name, api_key="test-key")
        assert isinstance(provider, cls)
        assert provider.name == name

    def test_default_models(self):
        assert create_llm_provider("openai", api_key="k").model == "gpt-4.1-nano"
        assert create_llm_provider("anthropic", api_key="k").model == "claude-3-haiku-20240307"
        assert create_llm_provider("grok", api_key="k").model == "grok-3-mini"

    def test_grok_uses_xai_endpoint(self):
        provider = GrokProvider(api_key="k")
        assert str(provider._client.base_url).startswith("https://api.x.ai/v1")

    def test_unknown_provider_raises(self):
        with pytest.raises(UnsupportedProviderError, match="Unsupported provider: mistral"):
            create_llm_provider("mistral", api_key="k")

    def test_missing_api_key_raises(self):
        with pytest.raises(TypeError, match="api_key"):
            create_llm_provider("openai")

    def test_parse_is_case_insensitive(self):
        assert ProviderName.parse(" OpenAI ") is ProviderName.OPENAI
        assert ProviderName.parse(ProviderName.GROK) is ProviderName.GROK

    @given(st.text(max_size=12))
    def test_parse_accepts_only_known_names(self, value: str):
        """Property test: only the three provider names parse."""
        if value.strip().lower() in ("openai", "anthropic", "grok"):
            assert ProviderName.parse(value) in ProviderName
        else:
            with pytest.raises(UnsupportedProviderError):
                ProviderName.parse(value)


def _openai_chunk(content=None, usage=None, with_choice=True):
    choices = [SimpleNamespace(delta=SimpleNamespace(content=content))] if with_choice else []
    return SimpleNamespace(choices=choices, usage=usage)


class TestOpenAIProvider:
    """Tests for OpenAIProvider against a mocked SDK client."""

    @pytest.fixture
    def provider(self):
        provider = OpenAIProvider(api_key="test-key")
        provider._client = SimpleNamespace(
            chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock()))
        )
        return provider

    @pytest.mark.asyncio
    async def test_chat_completion(self, provider):
        provider._client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Hello"))],
            model="gpt-4.1-nano",
            usage=SimpleNamespace(prompt_tokens=5, completion_tokens=2, total_tokens=7),
        )
        response = await provider.chat_completion(
            [ChatMessage(role="user", content="Hi")], max_tokens=1000
        )
        assert response.content == "Hello"
        assert response.usage == TokenUsage(prompt_tokens=5, completion_tokens=2, total_tokens=7)
        kwargs = provider._client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]
        assert kwargs["temperature"] == 0.0
        assert kwargs["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_model_override(self, provider):
        provider._client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="ok"))],
            model="gpt-4o",
            usage=None,
        )
        await provider.chat_completion([ChatMessage(role="user", content="Hi")], model="gpt-4o")
        assert provider._client.chat.completions.create.call_args.kwargs["model"] == "gpt-4o"

    @pytest.mark.asyncio
    async def test_no_choices_is_upstream_error(self, provider):
        provider._client.chat.completions.create.return_value = SimpleNamespace(
            choices=[], model="gpt-4.1-nano", usage=None
        )
        with pytest.raises(UpstreamProviderError, match="no choices"):
            await provider.chat_completion([ChatMessage(role="user", content="Hi")])

    @pytest.mark.asyncio
    async def test_sdk_error_is_wrapped(self, provider):
        provider._client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=_request()
        )
        with pytest.raises(UpstreamProviderError) as exc_info:
            await provider.chat_completion([ChatMessage(role="user", content="Hi")])
        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_stream_yields_text_and_final_usage(self, provider):
        sdk_stream = _AsyncStream([
            _openai_chunk("He"),
            _openai_chunk(None),
            _openai_chunk("llo"),
            _openai_chunk(
                usage=SimpleNamespace(prompt_tokens=5, completion_tokens=2, total_tokens=7),
                with_choice=False,
            ),
        ])
        provider._client.chat.completions.create.return_value = sdk_stream

        response = await provider.chat_completion_stream([ChatMessage(role="user", content="Hi")])
        async with response:
            texts = [text async for text in response]

        assert texts == ["He", "llo"]
        assert response.usage == TokenUsage(prompt_tokens=5, completion_tokens=2, total_tokens=7)
        assert sdk_stream.exited
        kwargs = provider._client.chat.completions.create.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["stream_options"] == {"include_usage": True}

    @pytest.mark.asyncio
    async def test_stream_is_lazy(self, provider):
        await provider.chat_completion_stream([ChatMessage(role="user", content="Hi")])
        provider._client.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_mid_stream_error_is_wrapped(self, provider):
        provider._client.chat.completions.create.return_value = _AsyncStream(
            [_openai_chunk("He")],
            error=openai.APIConnectionError(request=_request()),
        )
        response = await provider.chat_completion_stream([ChatMessage(role="user", content="Hi")])
        received = []
        with pytest.raises(UpstreamProviderError):
            async for text in response:
                received.append(text)
        assert received == ["He"]


class TestAnthropicProvider:
    """Tests for AnthropicProvider against a mocked SDK client."""

    @pytest.fixture
    def provider(self):
        provider = AnthropicProvider(api_key="test-key")
        provider._client = SimpleNamespace(
            messages=SimpleNamespace(create=AsyncMock(), stream=None)
        )
        return provider

    def test_split_system(self):
        system, turns = _split_system([
            ChatMessage(role="system", content="Be nice."),
            ChatMessage(role="user", content="Hi"),
            ChatMessage(role="assistant", content="Hello"),
        ])
        assert system == "Be nice."
        assert turns == [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello"},
        ]

    def test_split_system_without_system_turn(self):
        system, turns = _split_system([ChatMessage(role="user", content="Hi")])
        assert system is None
        assert turns == [{"role": "user", "content": "Hi"}]

    @pytest.mark.asyncio
    async def test_chat_completion(self, provider):
        provider._client.messages.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(text="Hel"), SimpleNamespace(text="lo")],
            model="claude-3-haiku-20240307",
            usage=SimpleNamespace(input_tokens=5, output_tokens=2),
        )
        response = await provider.chat_completion([
            ChatMessage(role="system", content="Persona"),
            ChatMessage(role="user", content="Hi"),
        ])
        assert response.content == "Hello"
        assert response.usage == TokenUsage(prompt_tokens=5, completion_tokens=2, total_tokens=7)
        kwargs = provider._client.messages.create.call_args.kwargs
        assert kwargs["system"] == "Persona"
        assert kwargs["max_tokens"] == 1000
        assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]

    @pytest.mark.asyncio
    async def test_sdk_error_is_wrapped(self, provider):
        provider._client.messages.create.side_effect = anthropic.APIConnectionError(
            request=_request()
        )
        with pytest.raises(UpstreamProviderError) as exc_info:
            await provider.chat_completion([ChatMessage(role="user", content="Hi")])
        assert exc_info.value.provider == "anthropic"

    @pytest.mark.asyncio
    async def test_stream_usage_split_across_events(self, provider):
        sdk_stream = _AsyncStream([
            SimpleNamespace(
                type="message_start",
                message=SimpleNamespace(usage=SimpleNamespace(input_tokens=5, output_tokens=1)),
            ),
            SimpleNamespace(type="content_block_start"),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(text="He")),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(text="llo")),
            SimpleNamespace(type="message_delta", usage=SimpleNamespace(output_tokens=2)),
            SimpleNamespace(type="message_stop"),
        ])
        provider._client.messages.stream = lambda **params: sdk_stream

        response = await provider.chat_completion_stream([ChatMessage(role="user", content="Hi")])
        async with response:
            texts = [text async for text in response]

        assert "".join(texts) == "Hello"
        assert response.usage == TokenUsage(prompt_tokens=5, completion_tokens=2, total_tokens=7)
        assert sdk_stream.exited
