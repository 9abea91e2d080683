from typing import Any, ClassVar

from .openai import OpenAIProvider

XAI_BASE_URL = "https://api.x.ai/v1"


class GrokProvider(OpenAIProvider):
    """xAI Grok provider using the OpenAI-compatible API.

    Hidden design decisions:
    - xAI endpoint and default model
    - Everything else is shared with the OpenAI Chat Completions adapter
    """

    name: ClassVar[str] = "grok"

    def __init__(
        self,
        api_key: str,
        model: str = "grok-3-mini",
        base_url: str = XAI_BASE_URL,
        **client_kwargs: Any
    ):
        """Initialize Grok provider.

        Args:
            api_key: xAI API key
            model: Default model to use
            base_url: xAI API base URL (default: https://api.x.ai/v1)
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        super().__init__(api_key=api_key, model=model, base_url=base_url, **client_kwargs)
