"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Single column: error banner, chat, optional log panel, then the bottom bar.
"""

APP_CSS = """
Screen {
    layout: vertical;
    background: $background;
}

/* Error banner - hidden until a request fails */
#error-banner {
    height: auto;
    padding: 0 2;
    background: $error 20%;
    color: $error;
    text-style: bold;
    border-left: tall $error;
}

/* Chat history */
#chat-history {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus-within {
        border: round $primary;
    }
}

.chat-notice {
    color: $text-muted;
    padding: 1 2;
}

.chat-message {
    width: 100%;
    height: auto;
    margin: 0 0 1 0;
    padding: 0 2;
}

.user-message {
    border-left: tall $success;
    background: $success 8%;

    & .message-header {
        color: $success;
        text-style: bold;
    }
}

.assistant-message {
    border-left: tall $secondary;
    background: $secondary 8%;

    & .message-header {
        color: $secondary;
        text-style: bold;
    }

    &.streaming {
        border-left: tall $warning;
    }
}

.message-header {
    height: auto;
}

.message-content {
    height: auto;
    color: $foreground;
}

/* Debug/log panel */
#debug-panel {
    height: 10;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
}

/* Bottom bar - metrics + input */
#bottom-bar {
    height: auto;
    padding: 0 1;
    background: $panel;
    border-top: solid $border;
}

#metrics {
    height: 1;
    padding: 0 2;
    background: $surface;
    color: $foreground;
}

ChatInputBar {
    height: 5;
    border: round $primary 60%;
    background: $panel;

    &:focus-within {
        border: round $primary;
    }
}

#chat-input {
    width: 1fr;
    height: 100%;
    border: none;
    padding: 0 1;
    background: transparent;

    &:disabled {
        opacity: 50%;
    }
}

#send-btn, #stop-btn {
    width: 10;
    min-width: 8;
    height: 100%;
    margin: 0 0 0 1;
    text-style: bold;
}
"""
