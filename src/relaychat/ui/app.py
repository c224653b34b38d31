"""Main Textual TUI application.

Orchestrates the UI components around a single ChatSession.
"""

import asyncio
import contextlib
import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header

from ..chat import ChatSession
from ..transport import ConnectionManager
from .callbacks import PanelLogHandler, SessionBridge
from .config import STATUS_REFRESH_INTERVAL, LogLevel
from .styles import APP_CSS
from .themes import DEFAULT_THEME
from .widgets import ChatHistoryWidget, ChatInputBar, DebugPanel, StatusBar


class ChatTextualApp(App):
    """Textual TUI for relay chat."""

    CSS = APP_CSS
    TITLE = "Relaychat"

    # Priority bindings win over the TextArea defaults for the same keys
    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("ctrl+k", "clear_chat", "Clear View", priority=True),
        Binding("ctrl+r", "copy_last_message", "Copy Last"),
        Binding("ctrl+y", "copy_status", "Copy Status", priority=True),
        Binding("ctrl+d", "toggle_debug", "Log", priority=True),
    ]

    def __init__(
        self,
        connection: ConnectionManager,
        user_id: str | None = None,
        log_level: str | None = None,
    ) -> None:
        super().__init__()
        self._connection = connection
        self._user_id = user_id
        self._log_level = log_level
        self._session: ChatSession | None = None
        self._bridge: SessionBridge | None = None
        self._log_handler: PanelLogHandler | None = None

    @property
    def session(self) -> ChatSession | None:
        return self._session

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield ChatHistoryWidget(id="chat-history")
        yield DebugPanel(id="debug-panel")
        with Vertical(id="bottom-bar"):
            yield StatusBar(id="status")
            yield ChatInputBar(id="chat-input-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.register_theme(DEFAULT_THEME)
        self.theme = DEFAULT_THEME.name

        log_panel = self.query_one("#debug-panel", DebugPanel)
        if self._log_level is not None:
            log_panel.log_level = LogLevel.from_string(self._log_level)
            log_panel.show()
        self._log_handler = PanelLogHandler(log_panel, app=self)
        package_logger = logging.getLogger("relaychat")
        package_logger.setLevel(log_panel.log_level)
        package_logger.addHandler(self._log_handler)

        # Textual's loop becomes the session's owner context
        self._session = ChatSession(self._connection, user_id=self._user_id)
        self._bridge = SessionBridge(
            self._session,
            self.query_one("#chat-history", ChatHistoryWidget),
            self.query_one("#status", StatusBar),
            app=self,
        )
        self._session.on_messages_updated = self._bridge.on_messages_updated
        self._bridge.refresh_status()
        self.set_interval(STATUS_REFRESH_INTERVAL, self._bridge.refresh_status)

        self.sub_title = f"{self._connection.backend_type} | {self._session.current_user_id}"
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    async def on_unmount(self) -> None:
        """Detach the session and the log handler."""
        if self._log_handler is not None:
            logging.getLogger("relaychat").removeHandler(self._log_handler)
            self._log_handler = None
        if self._session is not None:
            await self._session.close()
            self._session = None

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        """Handle user input submission."""
        if not event.value or self._session is None:
            return
        self._session.send_message(event.value)

    def action_clear_chat(self) -> None:
        """Clear the rendered chat. The transcript keeps every message."""
        self.query_one("#chat-history", ChatHistoryWidget).clear_view()
        if self._bridge is not None:
            self._bridge.reset()
        self.notify("Chat view cleared", timeout=2)

    def action_toggle_debug(self) -> None:
        """Toggle the log panel visibility."""
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)

    def action_copy_last_message(self) -> None:
        """Copy the most recent message to clipboard."""
        text = self.query_one("#chat-history", ChatHistoryWidget).get_last_text()
        if text:
            self.copy_to_clipboard(text)
            self.notify("Message copied")
        else:
            self.notify("No message to copy", severity="warning")

    def action_copy_status(self) -> None:
        """Copy the status line to clipboard."""
        self.copy_to_clipboard(self.query_one("#status", StatusBar).get_plain_text())
        self.notify("Status copied")


async def run_textual_tui(
    connection: ConnectionManager,
    user_id: str | None = None,
    log_level: str | None = None,
) -> None:
    """Run the Textual TUI.

    Args:
        connection: Relay connection, shared and owned by the caller
        user_id: Fixed session identity, generated when None
        log_level: Log level for panel (debug/info/warning/error), None to hide
    """
    app = ChatTextualApp(connection=connection, user_id=user_id, log_level=log_level)
    with contextlib.suppress(KeyboardInterrupt, asyncio.CancelledError):
        await app.run_async()
