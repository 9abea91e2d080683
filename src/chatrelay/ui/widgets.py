"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Chat message rendering and in-place streaming updates
- Input history and busy state
- Token/metrics display formatting
- Log rendering and level filtering
"""

import logging
from datetime import datetime

from rich.markdown import Markdown as RichMarkdown
from rich.text import Text
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click
from textual.message import Message as TextualMessage
from textual.widgets import Button, RichLog, Static, TextArea

from ..client.models import Message
from ..llm import TokenUsage
from .config import LOG_MAX_MESSAGE_LENGTH, LOG_TIMESTAMP_FORMAT, STREAMING_CURSOR, LogLevel


class ChatMessageView(Vertical):
    """One rendered chat message. Clicking it copies the content."""

    def __init__(self, message: Message, *args, **kwargs) -> None:
        role_class = "user-message" if message.role == "user" else "assistant-message"
        super().__init__(*args, classes=f"chat-message {role_class}", **kwargs)
        self.message = message
        self._body = Static(classes="message-content")

    def compose(self):
        if self.message.role == "user":
            prefix, icon = "You", ">"
        else:
            prefix, icon = "Assistant", "<"
        timestamp = self.message.timestamp.strftime("%H:%M:%S")
        yield Static(f"{icon} {prefix} [{timestamp}]", classes="message-header", markup=False)
        yield self._body

    def on_mount(self) -> None:
        self.refresh_content()

    def refresh_content(self) -> None:
        """Re-render the body from the message's current content."""
        message = self.message
        if message.streaming:
            self.add_class("streaming")
            self._body.update(Text(message.content + STREAMING_CURSOR))
            return
        self.remove_class("streaming")
        if message.role == "assistant":
            self._body.update(RichMarkdown(message.content))
        else:
            self._body.update(Text(message.content))

    def on_click(self, event: Click) -> None:
        event.stop()
        self.app.copy_to_clipboard(self.message.content)
        self.app.notify("Copied to clipboard", timeout=2)


class ChatHistoryWidget(VerticalScroll):
    """Scrollable chat history keyed by message id."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "Conversation history"
    ALLOW_MAXIMIZE = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._views: dict[str, ChatMessageView] = {}

    def show_notice(self, text: str) -> None:
        """Display text that is not part of the conversation (e.g. a welcome)."""
        self.mount(Static(text, classes="chat-notice", markup=False))

    def add_message(self, message: Message) -> None:
        view = ChatMessageView(message)
        self._views[message.id] = view
        self.mount(view)
        self._update_subtitle()
        self.scroll_end(animate=False)

    def update_message(self, message: Message) -> None:
        view = self._views.get(message.id)
        if view is None:
            return
        view.refresh_content()
        self.scroll_end(animate=False)

    def remove_message(self, message: Message) -> None:
        view = self._views.pop(message.id, None)
        if view is not None:
            view.remove()
        self._update_subtitle()

    def clear_history(self) -> None:
        self._views.clear()
        self.remove_children()
        self.border_subtitle = "Conversation history"

    def _update_subtitle(self) -> None:
        count = len(self._views)
        self.border_subtitle = f"{count} messages" if count else "Conversation history"


class ErrorBanner(Static):
    """Persistent error line shown above the chat until the next request."""

    def on_mount(self) -> None:
        self.display = False

    def show_error(self, message: str | None) -> None:
        if message:
            self.update(Text(message))
            self.display = True
        else:
            self.update("")
            self.display = False


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea plus Send and Stop buttons."""

    class Submitted(TextualMessage):
        """Posted when the user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    class StopRequested(TextualMessage):
        """Posted when the user presses Stop."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1
        self._busy = False

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Submit message (Ctrl+J)"
        )
        yield Button("Stop", id="stop-btn", variant="error").with_tooltip(
            "Stop generating (Esc)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.highlight_cursor_line = False
        self.query_one("#stop-btn", Button).display = False
        text_area.focus()

    @property
    def busy(self) -> bool:
        return self._busy

    def set_busy(self, busy: bool) -> None:
        """Disable input while a request is in flight."""
        self._busy = busy
        self.query_one("#chat-input", TextArea).disabled = busy
        self.query_one("#send-btn", Button).display = not busy
        self.query_one("#stop-btn", Button).display = busy
        if not busy:
            self.focus_input()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()
        elif event.button.id == "stop-btn":
            self.post_message(self.StopRequested())

    def on_key(self, event) -> None:
        """Handle keyboard shortcuts.

        Terminals do not report modifiers on Enter, so ctrl+j submits.
        """
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._is_cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()
        elif event.key == "down" and self._is_cursor_at_end():
            self._navigate_history(1)
            event.prevent_default()
            event.stop()

    def _is_cursor_at_start(self) -> bool:
        return self.query_one("#chat-input", TextArea).cursor_location == (0, 0)

    def _is_cursor_at_end(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        lines = text_area.text.split("\n")
        return text_area.cursor_location == (len(lines) - 1, len(lines[-1]))

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if direction < 0:
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        else:
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                text_area.text = ""
                return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        if self._busy:
            return
        text_area = self.query_one("#chat-input", TextArea)
        value = text_area.text.strip()
        if value:
            if not self._history or self._history[-1] != value:
                self._history.append(value)
            self._history_index = -1
            text_area.text = ""
            self.post_message(self.Submitted(value))

    def focus_input(self) -> None:
        self.query_one("#chat-input", TextArea).focus()


class MetricsPanel(Static):
    """Selected model plus token usage of the last reply."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._provider = ""
        self._model = ""
        self._usage = TokenUsage()
        self._loading = False

    def on_mount(self) -> None:
        self._update_display()

    def update_metrics(
        self,
        provider: str | None = None,
        model: str | None = None,
        usage: TokenUsage | None = None,
        loading: bool | None = None,
    ) -> None:
        if provider is not None:
            self._provider = provider
        if model is not None:
            self._model = model
        if usage is not None:
            self._usage = usage
        if loading is not None:
            self._loading = loading
        self._update_display()

    def _update_display(self) -> None:
        usage = self._usage
        parts = [
            f"[bold cyan]Model:[/] {self._provider}/{self._model}",
            f"[bold magenta]Tokens:[/] {usage.total_tokens:,} "
            f"[dim]({usage.prompt_tokens:,}/{usage.completion_tokens:,})[/]",
        ]
        if self._loading:
            parts.append("[bold yellow]Generating...[/]")
        self.update("  ".join(parts))

    def get_plain_text(self) -> str:
        usage = self._usage
        return (
            f"Model: {self._provider}/{self._model}  "
            f"Tokens: {usage.total_tokens} "
            f"(prompt {usage.prompt_tokens} / completion {usage.completion_tokens})"
        )


class DebugPanel(RichLog):
    """Log panel with level filtering.

    Hidden by default, shown with --log-level or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    def __init__(self, *args, log_level: int = LogLevel.INFO, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=True,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        if self.display:
            self.border_subtitle = f"Level: {LogLevel.name(self._log_level)}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        self.display = False

    def log_entry(self, component: str, message: str, level: int = LogLevel.DEBUG) -> None:
        """Add a log entry if it meets the current level threshold."""
        if level < self._log_level:
            return

        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        level_colors = {
            LogLevel.DEBUG: "dim white",
            LogLevel.INFO: "cyan",
            LogLevel.WARNING: "yellow",
            LogLevel.ERROR: "red",
        }
        level_color = level_colors.get(min(level, LogLevel.ERROR), "white")
        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."

        line = Text.assemble(
            (f"{timestamp} ", "dim"),
            (f"{LogLevel.name(level):<5} ", level_color),
            (f"[{component}] ", "bold"),
            message,
        )
        self.write(line)

    def show(self) -> None:
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        self.display = False
        self.border_subtitle = "Hidden"

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True


class DebugPanelHandler(logging.Handler):
    """Routes ``chatrelay`` log records into a DebugPanel."""

    def __init__(self, panel: DebugPanel) -> None:
        super().__init__(level=logging.DEBUG)
        self._panel = panel

    def emit(self, record: logging.LogRecord) -> None:
        if not self._panel.is_attached:
            return
        try:
            component = record.name.rsplit(".", 1)[-1]
            self._panel.log_entry(component, record.getMessage(), record.levelno)
        except Exception:
            self.handleError(record)
