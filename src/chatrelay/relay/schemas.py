"""HTTP request/response bodies for the relay endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..llm import ChatMessage, TokenUsage


class ChatTurn(BaseModel):
    """One conversation turn as sent by the client."""

    role: Literal["user", "assistant", "system"]
    content: str

    def to_chat_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)


class ChatRequest(BaseModel):
    """Body of ``POST /chat`` and ``POST /chat/complete``.

    ``provider`` is validated by the relay rather than here, so an unknown
    value is reported as an unsupported provider instead of a schema error.
    """

    messages: list[ChatTurn] = Field(..., min_length=1)
    provider: str = Field(default="openai", description="openai, anthropic or grok")
    model: str | None = Field(default=None, description="Overrides the provider's default model")


class CompletionMessage(BaseModel):
    content: str


class ChatCompletionResponse(BaseModel):
    """Non-streaming reply: one assistant message plus usage."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    messages: list[CompletionMessage]
    token_usage: TokenUsage = Field(default_factory=TokenUsage)


class ErrorResponse(BaseModel):
    message: str = "Internal server error"
