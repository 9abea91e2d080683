"""Terminal UI module for the chat client.

Module structure (each module hides a design decision):
- widgets.py: Custom widgets (message rendering, input bar, metrics, log panel)
- styles.py: CSS styling (layout decisions)
- themes.py: Color palette
- callbacks.py: Session integration (how the TUI receives updates)
- app.py: Application orchestration (user interaction flow)
"""

from .app import ChatTextualApp, run_textual_tui
from .callbacks import TUISessionObserver
from .config import LogLevel
from .widgets import ChatHistoryWidget, ChatInputBar, DebugPanel, ErrorBanner, MetricsPanel

__all__ = [
    "ChatHistoryWidget",
    "ChatInputBar",
    "ChatTextualApp",
    "DebugPanel",
    "ErrorBanner",
    "LogLevel",
    "MetricsPanel",
    "TUISessionObserver",
    "run_textual_tui",
]
