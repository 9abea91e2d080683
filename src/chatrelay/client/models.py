"""Client-side conversation state.

Hides how messages are stored and which of them are still being written.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal
from uuid import uuid4

from ..catalog import ModelPreset
from ..llm import ProviderName

Role = Literal["user", "assistant", "system"]


def _new_id() -> str:
    return uuid4().hex[:12]


@dataclass
class Message:
    """A chat message in the conversation.

    While ``streaming`` is set the content may only grow; once it is
    cleared the message is final.
    """

    role: Role
    content: str = ""
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=datetime.now)
    streaming: bool = False

    def append(self, text: str) -> None:
        if not self.streaming:
            raise RuntimeError(f"Message {self.id} is final and cannot be modified")
        self.content += text

    def finish(self) -> None:
        self.streaming = False

    def fail(self, replacement: str) -> None:
        """Replace partial content with ``replacement`` and make the message final."""
        if not self.streaming:
            raise RuntimeError(f"Message {self.id} is final and cannot be modified")
        self.content = replacement
        self.streaming = False

    def to_turn(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ProviderSelection:
    """Which provider and model a request goes to."""

    provider: ProviderName = ProviderName.OPENAI
    model: str | None = None

    @classmethod
    def from_preset(cls, preset: ModelPreset) -> "ProviderSelection":
        return cls(provider=preset.provider, model=preset.model)

    def to_payload(self) -> dict[str, str]:
        payload = {"provider": self.provider.value}
        if self.model:
            payload["model"] = self.model
        return payload


class Conversation:
    """Ordered list of messages; order is the prompt order."""

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, message: object) -> bool:
        return any(m is message for m in self._messages)

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def append(self, message: Message) -> Message:
        self._messages.append(message)
        return message

    def remove(self, message_id: str) -> Message | None:
        for index, message in enumerate(self._messages):
            if message.id == message_id:
                return self._messages.pop(index)
        return None

    def clear(self) -> None:
        self._messages.clear()

    def last(self, role: Role | None = None) -> Message | None:
        for message in reversed(self._messages):
            if role is None or message.role == role:
                return message
        return None

    def to_turns(self) -> list[dict[str, str]]:
        """Serialize finished messages for the request body."""
        return [m.to_turn() for m in self._messages if not m.streaming]
