"""Main Textual TUI application.

Orchestrates the UI components and drives a ChatSession.
"""

import asyncio
import logging

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header

from ..catalog import MODEL_PRESETS, ModelPreset, next_preset
from ..client.models import ProviderSelection
from ..client.session import ChatSession
from .callbacks import TUISessionObserver
from .config import NOTIFY_LONG, NOTIFY_SHORT, LogLevel
from .styles import APP_CSS
from .themes import RELAY_DUSK
from .widgets import (
    ChatHistoryWidget,
    ChatInputBar,
    DebugPanel,
    DebugPanelHandler,
    ErrorBanner,
    MetricsPanel,
)


class ChatTextualApp(App):
    """Textual chat client for the relay."""

    CSS = APP_CSS
    TITLE = "Chat Relay"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("escape", "stop", "Stop"),
        Binding("ctrl+k", "clear_chat", "Clear Chat"),
        Binding("ctrl+o", "cycle_model", "Model"),
        Binding("ctrl+r", "copy_last_response", "Copy Response"),
        Binding("ctrl+y", "copy_metrics", "Copy Metrics"),
        Binding("ctrl+d", "toggle_debug", "Log"),
    ]

    def __init__(
        self,
        session: ChatSession,
        preset: ModelPreset,
        log_level: str | None = None,
    ) -> None:
        super().__init__()
        self._session = session
        self._preset = preset
        self._log_level = log_level
        self._log_handler: DebugPanelHandler | None = None
        self._saved_logger_state: tuple[int, bool] = (logging.NOTSET, True)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield ErrorBanner(id="error-banner")
        yield ChatHistoryWidget(id="chat-history")
        yield DebugPanel(id="debug-panel")
        with Vertical(id="bottom-bar"):
            yield MetricsPanel(id="metrics")
            yield ChatInputBar(id="chat-input-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.register_theme(RELAY_DUSK)
        self.theme = "relay-dusk"

        history = self.query_one("#chat-history", ChatHistoryWidget)
        input_bar = self.query_one("#chat-input-bar", ChatInputBar)
        metrics = self.query_one("#metrics", MetricsPanel)
        banner = self.query_one("#error-banner", ErrorBanner)
        self._session.set_observer(TUISessionObserver(history, input_bar, metrics, banner))

        # Library logs go to the log panel only, never to the terminal
        log_panel = self.query_one("#debug-panel", DebugPanel)
        if self._log_level is not None:
            log_panel.log_level = LogLevel.from_string(self._log_level)
            log_panel.show()
        self._log_handler = DebugPanelHandler(log_panel)
        logger = logging.getLogger("chatrelay")
        self._saved_logger_state = (logger.level, logger.propagate)
        logger.addHandler(self._log_handler)
        logger.setLevel(log_panel.log_level)
        logger.propagate = False

        self._apply_preset(self._preset)
        history.show_notice(
            "Type a message and press Ctrl+J to send.\n"
            "Esc stops a reply, Ctrl+K clears the chat, Ctrl+O switches model."
        )
        input_bar.focus_input()

    def on_unmount(self) -> None:
        if self._log_handler is not None:
            logger = logging.getLogger("chatrelay")
            logger.removeHandler(self._log_handler)
            level, propagate = self._saved_logger_state
            logger.setLevel(level)
            logger.propagate = propagate
            self._log_handler = None

    def _apply_preset(self, preset: ModelPreset) -> None:
        self._preset = preset
        self._session.selection = ProviderSelection.from_preset(preset)
        self.sub_title = f"{preset.name} | {preset.description}"
        self.query_one("#metrics", MetricsPanel).update_metrics(
            provider=preset.provider.value, model=preset.model
        )

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        if self._session.loading:
            self.notify("Wait for the current reply or press Esc", severity="warning", timeout=NOTIFY_SHORT)
            return
        self._send(event.value)

    def on_chat_input_bar_stop_requested(self, event: ChatInputBar.StopRequested) -> None:
        self.action_stop()

    @work(exclusive=True, group="chat")
    async def _send(self, text: str) -> None:
        """Run one request as a background async worker."""
        try:
            reply = await self._session.submit(text)
        except asyncio.CancelledError:
            # Worker cancelled on shutdown
            return
        if reply is not None and self._session.error:
            self.notify(self._session.error[:80], severity="error", timeout=NOTIFY_LONG)

    def action_stop(self) -> None:
        """Cancel the in-flight reply."""
        if self._session.cancel():
            self.notify("Stopped", severity="warning", timeout=NOTIFY_SHORT)

    def action_clear_chat(self) -> None:
        self._session.clear()
        self.notify("Chat cleared", timeout=NOTIFY_SHORT)

    def action_cycle_model(self) -> None:
        if self._session.loading:
            self.notify("Cannot switch model while generating", severity="warning", timeout=NOTIFY_SHORT)
            return
        preset = next_preset(self._preset.key)
        self._apply_preset(preset)
        self.notify(f"Model: {preset.name}", timeout=NOTIFY_SHORT)

    def action_toggle_debug(self) -> None:
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=NOTIFY_SHORT)

    def action_copy_metrics(self) -> None:
        metrics = self.query_one("#metrics", MetricsPanel)
        self.copy_to_clipboard(metrics.get_plain_text())
        self.notify("Metrics copied", timeout=NOTIFY_SHORT)

    def action_copy_last_response(self) -> None:
        reply = None
        for message in reversed(self._session.messages):
            if message.role == "assistant" and not message.streaming:
                reply = message
                break
        if reply is None:
            self.notify("No response to copy", severity="warning", timeout=NOTIFY_SHORT)
            return
        self.copy_to_clipboard(reply.content)
        self.notify("Response copied", timeout=NOTIFY_SHORT)


async def run_textual_tui(
    base_url: str,
    preset_key: str,
    log_level: str | None = None,
) -> None:
    """Run the Textual TUI against a relay.

    Args:
        base_url: Relay root URL
        preset_key: Initial model preset key
        log_level: Log level for panel (debug/info/warning/error), None to hide
    """
    preset = MODEL_PRESETS[preset_key]
    async with ChatSession(base_url=base_url) as session:
        app = ChatTextualApp(session=session, preset=preset, log_level=log_level)
        try:
            await app.run_async()
        except (KeyboardInterrupt, asyncio.CancelledError):
            pass
