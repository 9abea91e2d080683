"""Session observer for the TUI.

Hides how session updates reach the widgets. The session runs in a Textual
async worker on the app's event loop, so widgets are updated directly.
"""

from typing import TYPE_CHECKING

from ..client.models import Message
from ..client.session import ChatSession, SessionObserver

if TYPE_CHECKING:
    from .widgets import ChatHistoryWidget, ChatInputBar, ErrorBanner, MetricsPanel


class TUISessionObserver(SessionObserver):
    """Mirrors ChatSession state into the chat widgets."""

    def __init__(
        self,
        history: "ChatHistoryWidget",
        input_bar: "ChatInputBar",
        metrics: "MetricsPanel",
        banner: "ErrorBanner",
    ) -> None:
        self.history = history
        self.input_bar = input_bar
        self.metrics = metrics
        self.banner = banner

    def message_added(self, message: Message) -> None:
        self.history.add_message(message)

    def message_updated(self, message: Message) -> None:
        self.history.update_message(message)

    def message_removed(self, message: Message) -> None:
        self.history.remove_message(message)

    def conversation_cleared(self) -> None:
        self.history.clear_history()

    def state_changed(self, session: ChatSession) -> None:
        if self.input_bar.busy != session.loading:
            self.input_bar.set_busy(session.loading)
        self.metrics.update_metrics(usage=session.usage, loading=session.loading)
        self.banner.show_error(session.error)
