"""Relay configuration.

Settings come from environment variables (a ``.env`` file is loaded by the
CLI). They are read once at process start into an immutable settings object
that is passed explicitly to the parts that need it.

Environment variables:
    OPENAI_API_KEY: OpenAI API key
    OPENAI_CHAT_MODEL: OpenAI model (default: gpt-4.1-nano)
    ANTHROPIC_API_KEY: Anthropic API key
    ANTHROPIC_MODEL: Anthropic model (default: claude-3-haiku-20240307)
    XAI_API_KEY: xAI API key (grok provider)
    XAI_MODEL: Grok model (default: grok-3-mini)
    XAI_BASE_URL: xAI API base URL (default: https://api.x.ai/v1)
    RELAY_MAX_TOKENS: Maximum output tokens per reply (default: 1000)
    RELAY_TEMPERATURE: Sampling temperature (default: 0)
    RELAY_PERSONA_FILE: Path to a persona text file (default: packaged persona)
    RELAY_CORS_ORIGINS: Comma-separated allowed origins (default: *)
    RELAY_LOG_LEVEL: debug, info, warning or error (default: info)
"""

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from ..llm import ProviderName
from ..llm.providers.grok import XAI_BASE_URL
from ..prompts import load_persona


class ProviderSettings(BaseModel):
    """Credential and model for one hosted provider."""

    model_config = ConfigDict(frozen=True)

    api_key: str | None = Field(default=None, repr=False)
    model: str
    base_url: str | None = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


class RelaySettings(BaseModel):
    """Immutable relay configuration built once at start-up."""

    model_config = ConfigDict(frozen=True)

    providers: dict[ProviderName, ProviderSettings]
    persona: str = ""
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, ge=1)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "info"


def _split_origins(value: str) -> list[str]:
    origins = [origin.strip() for origin in value.split(",") if origin.strip()]
    return origins or ["*"]


def load_settings(env: Mapping[str, str] | None = None) -> RelaySettings:
    """Build relay settings from environment variables.

    Args:
        env: Mapping to read instead of ``os.environ`` (used by tests)

    Returns:
        Frozen RelaySettings
    """
    env = os.environ if env is None else env

    providers = {
        ProviderName.OPENAI: ProviderSettings(
            api_key=env.get("OPENAI_API_KEY"),
            model=env.get("OPENAI_CHAT_MODEL", "gpt-4.1-nano"),
        ),
        ProviderName.ANTHROPIC: ProviderSettings(
            api_key=env.get("ANTHROPIC_API_KEY"),
            model=env.get("ANTHROPIC_MODEL", "claude-3-haiku-20240307"),
        ),
        ProviderName.GROK: ProviderSettings(
            api_key=env.get("XAI_API_KEY"),
            model=env.get("XAI_MODEL", "grok-3-mini"),
            base_url=env.get("XAI_BASE_URL", XAI_BASE_URL),
        ),
    }

    return RelaySettings(
        providers=providers,
        persona=load_persona(env.get("RELAY_PERSONA_FILE") or None),
        temperature=float(env.get("RELAY_TEMPERATURE", "0")),
        max_tokens=int(env.get("RELAY_MAX_TOKENS", "1000")),
        cors_origins=_split_origins(env.get("RELAY_CORS_ORIGINS", "*")),
        log_level=env.get("RELAY_LOG_LEVEL", "info"),
    )
