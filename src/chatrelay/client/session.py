"""Chat session: conversation state plus the request/stream lifecycle.

The session is UI-agnostic. Front ends subscribe through a SessionObserver
and call submit/cancel/clear; the session guarantees at most one request in
flight and keeps the transcript consistent when a request fails or is
cancelled.
"""

import asyncio
import logging
from typing import Any

import httpx

from ..catalog import DEFAULT_PRESET, get_preset
from ..errors import AbortedError, RelayResponseError
from ..llm import TokenUsage
from ..relay.events import ContentEvent, DoneEvent, ErrorEvent, StreamEvent
from .models import Conversation, Message, ProviderSelection
from .sse import SSEDecoder

logger = logging.getLogger(__name__)

DEFAULT_RELAY_URL = "http://127.0.0.1:8000"
APOLOGY_MESSAGE = "Sorry, there is a technical issue right now. Please try again later."

# Generation can pause between tokens, so reads get a generous timeout
DEFAULT_TIMEOUT = httpx.Timeout(10.0, read=120.0)


class SessionObserver:
    """Receives session updates. All methods are no-ops by default."""

    def message_added(self, message: Message) -> None:
        pass

    def message_updated(self, message: Message) -> None:
        pass

    def message_removed(self, message: Message) -> None:
        pass

    def conversation_cleared(self) -> None:
        pass

    def state_changed(self, session: "ChatSession") -> None:
        """Loading flag, error banner or token usage changed."""


class ChatSession:
    """One user's conversation with the relay.

    Args:
        base_url: Relay root URL
        selection: Provider/model for new requests (defaults to the default preset)
        http_client: Pre-built httpx client; created and owned by the session if omitted
        observer: Receives updates for rendering
    """

    def __init__(
        self,
        base_url: str = DEFAULT_RELAY_URL,
        selection: ProviderSelection | None = None,
        http_client: httpx.AsyncClient | None = None,
        observer: SessionObserver | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self.selection = selection or ProviderSelection.from_preset(get_preset(DEFAULT_PRESET))
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)
        self._observer = observer or SessionObserver()
        self._conversation = Conversation()
        self._loading = False
        self._error: str | None = None
        self._usage = TokenUsage()
        self._inflight: asyncio.Task[Message] | None = None
        self._aborted = False

    @property
    def messages(self) -> list[Message]:
        return self._conversation.messages

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def usage(self) -> TokenUsage:
        """Token usage reported for the last completed reply."""
        return self._usage

    def set_observer(self, observer: SessionObserver) -> None:
        self._observer = observer

    # ------------------------------------------------------------------
    # Public actions
    # ------------------------------------------------------------------

    async def submit(self, text: str, stream: bool = True) -> Message | None:
        """Send a message; returns the assistant reply, or None if cancelled.

        Failures do not raise: they leave an apology reply and set ``error``.
        """
        try:
            return await self.send(text, stream=stream)
        except AbortedError:
            logger.info("Request cancelled by user")
            return None

    async def send(self, text: str, stream: bool = True) -> Message:
        """Send a message and wait for the reply.

        Raises:
            ValueError: If the text is blank
            RuntimeError: If a request is already in flight
            AbortedError: If the request was cancelled through cancel()/clear()
        """
        text = text.strip()
        if not text:
            raise ValueError("Message cannot be empty")
        if self._loading:
            raise RuntimeError("A request is already in flight")

        self._add(Message(role="user", content=text))
        payload: dict[str, Any] = {
            "messages": self._conversation.to_turns(),
            **self.selection.to_payload(),
        }

        placeholder: Message | None = None
        if stream:
            placeholder = self._add(Message(role="assistant", streaming=True))

        self._aborted = False
        self._error = None
        self._set_loading(True)

        if placeholder is not None:
            self._inflight = asyncio.create_task(self._stream_reply(payload, placeholder))
        else:
            self._inflight = asyncio.create_task(self._complete_reply(payload))

        try:
            return await self._inflight
        except asyncio.CancelledError:
            if placeholder is not None:
                self._discard(placeholder)
            if not self._aborted:
                raise
            raise AbortedError("Request cancelled") from None
        except (httpx.HTTPError, RelayResponseError) as exc:
            return self._fail(placeholder, exc)
        finally:
            self._inflight = None
            self._set_loading(False)

    def cancel(self) -> bool:
        """Abort the in-flight request, if any.

        The partially written reply is removed; earlier messages are untouched.

        Returns:
            True if a request was cancelled
        """
        if self._inflight is None or self._inflight.done():
            return False
        self._aborted = True
        self._inflight.cancel()
        return True

    def clear(self) -> None:
        """Cancel any in-flight request and empty the conversation."""
        self.cancel()
        self._conversation.clear()
        self._error = None
        self._observer.conversation_cleared()
        self._observer.state_changed(self)

    async def aclose(self) -> None:
        self.cancel()
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "ChatSession":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _stream_reply(self, payload: dict[str, Any], placeholder: Message) -> Message:
        decoder = SSEDecoder()
        async with self._http.stream("POST", f"{self._base_url}/chat", json=payload) as response:
            if response.status_code != 200:
                await response.aread()
                raise RelayResponseError(
                    f"HTTP error! status: {response.status_code}", response.status_code
                )
            async for data in response.aiter_bytes():
                for event in decoder.feed(data):
                    if self._apply(event, placeholder):
                        return placeholder
            for event in decoder.flush():
                if self._apply(event, placeholder):
                    return placeholder
        raise RelayResponseError("Stream ended before the reply was complete")

    async def _complete_reply(self, payload: dict[str, Any]) -> Message:
        response = await self._http.post(f"{self._base_url}/chat/complete", json=payload)
        if response.status_code != 200:
            raise RelayResponseError(
                f"HTTP error! status: {response.status_code}", response.status_code
            )
        try:
            body = response.json()
            content = body["messages"][0]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise RelayResponseError("Malformed response from relay") from None
        self._usage = TokenUsage.from_raw(body.get("tokenUsage"))
        reply = self._add(Message(role="assistant", content=str(content)))
        self._observer.state_changed(self)
        return reply

    def _apply(self, event: StreamEvent, placeholder: Message) -> bool:
        """Apply one event to the placeholder. Returns True on a terminal event."""
        if isinstance(event, ContentEvent):
            placeholder.append(event.content)
            self._observer.message_updated(placeholder)
            return False
        if isinstance(event, DoneEvent):
            self._usage = event.token_usage
            placeholder.finish()
            self._observer.message_updated(placeholder)
            self._observer.state_changed(self)
            return True
        if isinstance(event, ErrorEvent):
            raise RelayResponseError(event.error)
        return False

    # ------------------------------------------------------------------
    # Conversation bookkeeping
    # ------------------------------------------------------------------

    def _add(self, message: Message) -> Message:
        self._conversation.append(message)
        self._observer.message_added(message)
        return message

    def _discard(self, message: Message) -> None:
        if self._conversation.remove(message.id) is not None:
            self._observer.message_removed(message)

    def _fail(self, placeholder: Message | None, exc: Exception) -> Message:
        logger.warning("Request failed: %s", exc)
        self._error = f"Error: {exc}"
        if placeholder is not None and placeholder in self._conversation:
            placeholder.fail(APOLOGY_MESSAGE)
            self._observer.message_updated(placeholder)
            reply = placeholder
        else:
            reply = self._add(Message(role="assistant", content=APOLOGY_MESSAGE))
        self._observer.state_changed(self)
        return reply

    def _set_loading(self, loading: bool) -> None:
        self._loading = loading
        self._observer.state_changed(self)
