"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Own messages sit on the right, peer messages on the left.
"""

APP_CSS = """
Screen {
    layout: vertical;
    background: $background;
}

/* Chat history fills the remaining height */
#chat-history {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus-within {
        border: round $primary;
    }
}

#debug-panel {
    height: auto;
    min-height: 6;
    max-height: 12;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    overflow-y: scroll;
    overflow-x: auto;
}

#bottom-bar {
    height: auto;
    padding: 0 1;
    background: $panel;
    border-top: solid $border;
}

#status {
    height: 1;
    padding: 0 1;
    margin-bottom: 1;
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
}

#send-btn {
    width: 10;
    height: 100%;
    margin: 0 0 0 1;
    min-width: 8;
    border: tall $success;
    background: $success;
    color: $background;
    text-style: bold;

    &:hover {
        background: $success-lighten-1;
    }
}

/* Chat bubbles */
.chat-message {
    width: 70%;
    height: auto;
    margin: 0 0 1 0;
    padding: 0 1;
}

.message-row {
    width: 1fr;
    height: auto;
}

.own-row {
    align-horizontal: right;
}

.own-message {
    border-right: tall $success;
    background: $success 8%;

    & .message-header {
        color: $success;
        text-style: bold;
        text-align: right;
    }
}

.peer-message {
    border-left: tall $secondary;
    background: $secondary 8%;

    & .message-header {
        color: $secondary;
        text-style: bold;
    }
}

.message-header {
    height: auto;
}

.message-content {
    height: auto;
    color: $foreground;
}

Toast {
    background: $surface;
    border: tall $border;
    padding: 0 1;
}
"""
