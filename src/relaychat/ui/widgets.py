"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Input history management
- Status bar formatting
- Log rendering and filtering
- Chat bubble rendering and attribution
"""

from datetime import datetime

from rich.text import Text
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click
from textual.message import Message
from textual.widgets import Button, RichLog, Static, TextArea

from .config import (
    INPUT_HISTORY_MAX_SIZE,
    LOG_MAX_MESSAGE_LENGTH,
    LOG_TIMESTAMP_FORMAT,
    MESSAGE_TIMESTAMP_FORMAT,
    LogLevel,
)
from .models import ChatBubble


def _copy_text(widget, text: str, label: str) -> None:
    """Copy text to the system clipboard, falling back to OSC 52."""
    try:
        import pyperclip
        pyperclip.copy(text)
        widget.app.notify(f"{label} copied", timeout=2)
    except Exception:
        widget.app.copy_to_clipboard(text)
        widget.app.notify(f"{label} copied (terminal)", timeout=2)


class ClickableMessage(Vertical):
    """A chat bubble container that copies its text when clicked."""

    def __init__(self, content: str, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._content = content

    def on_click(self, event: Click) -> None:
        event.stop()
        _copy_text(self, self._content, "Message")


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea and Send button."""

    class Submitted(Message):
        """Message sent when user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Send message (Ctrl+J)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.focus()
        text_area.highlight_cursor_line = False

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()

    def on_key(self, event) -> None:
        """Handle keyboard shortcuts.

        Note: ctrl+enter cannot work in terminals (terminal doesn't pass
        ctrl/shift modifiers with Enter). Use ctrl+j as the submit shortcut.
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
        text_area = self.query_one("#chat-input", TextArea)
        return text_area.cursor_location == (0, 0)

    def _is_cursor_at_end(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        lines = text_area.text.split("\n")
        last_row = len(lines) - 1
        last_col = len(lines[-1]) if lines else 0
        return text_area.cursor_location == (last_row, last_col)

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if direction < 0:  # Up
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        else:  # Down
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                text_area.text = ""
                return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        value = text_area.text.strip()
        # Empty input never reaches the session
        if not value:
            return
        if not self._history or self._history[-1] != value:
            self._history.append(value)
            del self._history[:-INPUT_HISTORY_MAX_SIZE]
        self._history_index = -1
        text_area.text = ""
        self.post_message(self.Submitted(value))

    def focus_input(self) -> None:
        """Focus the text input."""
        self.query_one("#chat-input", TextArea).focus()


class StatusBar(Static):
    """One-line connection and session summary."""

    _state_colors = {
        "connected": "green",
        "active": "green",
        "connecting": "yellow",
        "disconnected": "red",
        "closed": "red",
    }

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._connection_state = "disconnected"
        self._server = ""
        self._user_id = ""
        self._message_count = 0

    def on_mount(self) -> None:
        self._update_display()

    def update_status(
        self,
        connection_state: str,
        server: str = "",
        user_id: str = "",
        message_count: int = 0,
    ) -> None:
        """Update the status display.

        Args:
            connection_state: Transport state name
            server: Relay URL
            user_id: Local session identity
            message_count: Transcript length
        """
        self._connection_state = connection_state
        self._server = server
        self._user_id = user_id
        self._message_count = message_count
        self._update_display()

    def _update_display(self) -> None:
        color = self._state_colors.get(self._connection_state, "white")
        parts = [
            f"[bold {color}]{self._connection_state.upper()}[/]",
            f"[bold cyan]Relay:[/] {self._server or '-'}",
            f"[bold magenta]You:[/] {self._user_id or '-'}",
            f"[bold yellow]Messages:[/] {self._message_count}",
        ]
        self.update("  ".join(parts))

    def get_plain_text(self) -> str:
        return (
            f"State: {self._connection_state}  "
            f"Relay: {self._server}  "
            f"User: {self._user_id}  "
            f"Messages: {self._message_count}"
        )


class DebugPanel(RichLog):
    """Log panel for real-time tracing with level filtering.

    Shows timestamped log records from all components.
    Supports standard log levels: DEBUG < INFO < WARNING < ERROR.
    Hidden by default, shown with --log-level flag or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    _level_colors = {
        LogLevel.DEBUG: "dim white",
        LogLevel.INFO: "cyan",
        LogLevel.WARNING: "yellow",
        LogLevel.ERROR: "red",
    }

    _component_colors = {
        "ui": "cyan",
        "chat": "green",
        "transport": "magenta",
        "socketio": "blue",
        "engineio": "blue",
    }

    def __init__(self, *args, log_level: int = LogLevel.INFO, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=False,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        """Current log level threshold."""
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
        """Hide by default."""
        self.display = False

    def log(
        self,
        component: str,
        message: str,
        level: int = LogLevel.DEBUG
    ) -> None:
        """Add a log entry if it meets the current level threshold.

        Args:
            component: Component name (ui, chat, transport, ...)
            message: Log message
            level: Log level (LogLevel.DEBUG, INFO, WARNING, ERROR)
        """
        if level < self._log_level:
            return

        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."

        level_color = self._level_colors.get(level, "white")
        comp_color = self._component_colors.get(component, "white")

        line = Text.assemble(
            (timestamp, "dim"),
            " ",
            (f"{LogLevel.name(level):<7}", level_color),
            " ",
            (f"[{component}]", comp_color),
            " ",
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

    def get_plain_text(self) -> str:
        """Get plain text content of the log for copying."""
        return "\n".join(line.text for line in self.lines)

    def on_click(self, event: Click) -> None:
        """Copy log content to clipboard when clicked."""
        event.stop()
        text = self.get_plain_text()
        if not text.strip():
            self.app.notify("Log is empty", timeout=2)
            return
        _copy_text(self, text, "Log")


class ChatHistoryWidget(VerticalScroll):
    """Scrollable chat history with left/right attribution."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "No messages yet"
    ALLOW_MAXIMIZE = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._bubbles: list[ChatBubble] = []

    @property
    def rendered_count(self) -> int:
        """Number of bubbles currently shown."""
        return len(self._bubbles)

    def add_message(self, bubble: ChatBubble) -> None:
        """Render one message and keep the view pinned to the bottom."""
        self._bubbles.append(bubble)
        self._render_bubble(bubble)
        self.border_subtitle = f"{len(self._bubbles)} messages"
        self.scroll_end(animate=False)

    def get_last_text(self) -> str | None:
        return self._bubbles[-1].text if self._bubbles else None

    def clear_view(self) -> None:
        """Remove rendered bubbles. The transcript itself is untouched."""
        self._bubbles.clear()
        self.remove_children()
        self.border_subtitle = "View cleared"

    def _render_bubble(self, bubble: ChatBubble) -> None:
        side_class = "own-message" if bubble.is_own else "peer-message"
        icon = "<" if bubble.is_own else ">"
        header_text = f"{icon} {bubble.author} [{bubble.timestamp.strftime(MESSAGE_TIMESTAMP_FORMAT)}]"

        container = ClickableMessage(content=bubble.text, classes=f"chat-message {side_class}")
        container.compose_add_child(Static(Text(header_text), classes="message-header"))
        # Text() keeps user content from being parsed as markup
        container.compose_add_child(Static(Text(bubble.text), classes="message-content"))
        row_class = "own-row" if bubble.is_own else "peer-row"
        self.mount(Horizontal(container, classes=f"message-row {row_class}"))
