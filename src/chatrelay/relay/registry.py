"""Provider dispatch.

Maps a provider name to a provider instance. Instances are created once at
start-up from RelaySettings; the mapping is never mutated afterwards.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType

from ..errors import UnsupportedProviderError
from ..llm import LLMProvider, ProviderName, create_llm_provider
from .config import RelaySettings

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Immutable mapping from provider name to a configured provider."""

    def __init__(self, providers: Mapping[ProviderName, LLMProvider]):
        self._providers = MappingProxyType(dict(providers))

    @classmethod
    def from_settings(cls, settings: RelaySettings) -> "ProviderRegistry":
        """Create one provider per configured credential.

        Providers without an API key are skipped with a warning; requesting
        them later fails as unsupported.
        """
        providers: dict[ProviderName, LLMProvider] = {}
        for name, provider_settings in settings.providers.items():
            if not provider_settings.configured:
                logger.warning("%s API key not set, provider disabled", name.value)
                continue
            config = {"api_key": provider_settings.api_key, "model": provider_settings.model}
            if provider_settings.base_url:
                config["base_url"] = provider_settings.base_url
            providers[name] = create_llm_provider(name, **config)
            logger.info("Provider %s ready (model: %s)", name.value, provider_settings.model)
        return cls(providers)

    @property
    def available(self) -> list[ProviderName]:
        return list(self._providers)

    def resolve(self, provider: "str | ProviderName") -> LLMProvider:
        """Look up a provider without touching the network.

        Raises:
            UnsupportedProviderError: If the name is unknown or not configured
        """
        name = ProviderName.parse(provider)
        try:
            return self._providers[name]
        except KeyError:
            raise UnsupportedProviderError(
                name.value, supported=[p.value for p in self._providers]
            ) from None

    async def close(self) -> None:
        """Close every provider client."""
        for provider in self._providers.values():
            await provider.close()
