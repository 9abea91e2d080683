from enum import Enum
from typing import Any

from ..errors import UnsupportedProviderError
from .base import LLMProvider
from .providers import AnthropicProvider, GrokProvider, OpenAIProvider


class ProviderName(str, Enum):
    """Hosted chat providers the relay can dispatch to."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GROK = "grok"

    @classmethod
    def parse(cls, value: "str | ProviderName") -> "ProviderName":
        """Parse a provider name, raising UnsupportedProviderError if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedProviderError(str(value), supported=[p.value for p in cls]) from None


_PROVIDER_CLASSES: dict[ProviderName, type[LLMProvider]] = {
    ProviderName.OPENAI: OpenAIProvider,
    ProviderName.ANTHROPIC: AnthropicProvider,
    ProviderName.GROK: GrokProvider,
}


def create_llm_provider(provider: "str | ProviderName", **config: Any) -> LLMProvider:
    """Create an LLM provider instance.

    This factory function hides the instantiation logic for different providers.

    Args:
        provider: Provider type ('openai', 'anthropic', 'grok')
        **config: Provider-specific configuration
            For OpenAI:
                - api_key: str (required)
                - model: str (default: 'gpt-4.1-nano')
                - base_url: str | None
                - organization: str | None
            For Anthropic (Claude):
                - api_key: str (required)
                - model: str (default: 'claude-3-haiku-20240307')
                - base_url: str | None
            For Grok (xAI):
                - api_key: str (required)
                - model: str (default: 'grok-3-mini')
                - base_url: str (default: 'https://api.x.ai/v1')

    Returns:
        Initialized LLM provider instance

    Raises:
        UnsupportedProviderError: If provider type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> provider = create_llm_provider(
        ...     "anthropic",
        ...     api_key="sk-ant-...",
        ...     model="claude-3-haiku-20240307"
        ... )
    """
    name = ProviderName.parse(provider)
    if not config.get("api_key"):
        raise TypeError(f"{name.value} provider requires 'api_key' in config")
    return _PROVIDER_CLASSES[name](**config)
