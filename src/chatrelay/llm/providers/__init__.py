from .anthropic import AnthropicProvider
from .grok import GrokProvider
from .openai import OpenAIProvider

__all__ = ["AnthropicProvider", "GrokProvider", "OpenAIProvider"]
