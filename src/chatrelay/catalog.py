"""Model presets offered by the chat client's model selector."""

from pydantic import BaseModel, ConfigDict

from .llm import ProviderName


class ModelPreset(BaseModel):
    """A named provider/model pair."""

    model_config = ConfigDict(frozen=True)

    key: str
    provider: ProviderName
    model: str
    name: str
    description: str = ""


MODEL_PRESETS: dict[str, ModelPreset] = {
    preset.key: preset
    for preset in (
        ModelPreset(
            key="gpt-4-nano",
            provider=ProviderName.OPENAI,
            model="gpt-4.1-nano",
            name="GPT-4 Nano",
            description="Fast and efficient",
        ),
        ModelPreset(
            key="claude-haiku",
            provider=ProviderName.ANTHROPIC,
            model="claude-3-haiku-20240307",
            name="Claude Haiku",
            description="Quick and smart",
        ),
        ModelPreset(
            key="grok-mini",
            provider=ProviderName.GROK,
            model="grok-3-mini",
            name="Grok Mini",
            description="Witty and fast",
        ),
    )
}

DEFAULT_PRESET = "gpt-4-nano"


def get_preset(key: str) -> ModelPreset:
    """Look up a preset by key.

    Raises:
        KeyError: If no preset has that key
    """
    try:
        return MODEL_PRESETS[key]
    except KeyError:
        raise KeyError(
            f"Unknown model preset: {key}. Available: {', '.join(MODEL_PRESETS)}"
        ) from None


def next_preset(key: str) -> ModelPreset:
    """Return the preset after ``key``, wrapping around."""
    keys = list(MODEL_PRESETS)
    index = keys.index(key) if key in keys else -1
    return MODEL_PRESETS[keys[(index + 1) % len(keys)]]
