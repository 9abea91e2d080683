from .base import LLMProvider
from .factory import ProviderName, create_llm_provider
from .models import ChatMessage, LLMResponse, StreamChunk, StreamingResponse, TokenUsage, extract_usage_fields
from .providers import AnthropicProvider, GrokProvider, OpenAIProvider

__all__ = [
    "LLMProvider",
    "ProviderName",
    "create_llm_provider",
    "ChatMessage",
    "LLMResponse",
    "StreamChunk",
    "StreamingResponse",
    "TokenUsage",
    "extract_usage_fields",
    "AnthropicProvider",
    "GrokProvider",
    "OpenAIProvider",
]
