"""Callback interfaces between the chat core and the TUI.

Hides the details of how the TUI receives updates:
- transcript changes re-render only the messages not yet shown
- log records from any component are routed into the log panel

Uses thread-safe methods to update UI from worker threads.
"""

import logging
import threading
from typing import TYPE_CHECKING, Any

from .config import LogLevel
from .models import ChatBubble

if TYPE_CHECKING:
    from textual.app import App

    from ..chat import ChatSession
    from .widgets import ChatHistoryWidget, DebugPanel, StatusBar


def _call_thread_safe(app: "App | None", func: Any, *args: Any, **kwargs: Any) -> None:
    """Call a function in a thread-safe manner for UI updates."""
    if app is not None and app._thread_id != threading.get_ident():
        app.call_from_thread(func, *args, **kwargs)
    else:
        func(*args, **kwargs)


class SessionBridge:
    """Keeps the chat view in step with a ChatSession.

    Registered as the session's change listener. The listener carries no
    payload, so each call re-reads the transcript and renders the tail it
    has not shown yet.
    """

    def __init__(
        self,
        session: "ChatSession",
        history: "ChatHistoryWidget",
        status: "StatusBar | None" = None,
        app: "App | None" = None
    ) -> None:
        self.session = session
        self.history = history
        self.status = status
        self.app = app
        self._rendered = 0

    def on_messages_updated(self) -> None:
        _call_thread_safe(self.app, self._render_new)

    def reset(self) -> None:
        """Forget what was rendered; the next update redraws from the end."""
        self._rendered = self.session.message_count

    def refresh_status(self) -> None:
        if self.status is None:
            return
        connection = self.session.connection
        server = getattr(getattr(connection, "config", None), "url", connection.backend_type)
        self.status.update_status(
            connection_state=connection.state.value,
            server=server,
            user_id=self.session.current_user_id,
            message_count=self.session.message_count,
        )

    def _render_new(self) -> None:
        messages = self.session.messages
        current_user_id = self.session.current_user_id
        for message in messages[self._rendered:]:
            self.history.add_message(ChatBubble.from_message(message, current_user_id))
        self._rendered = len(messages)
        self.refresh_status()


class PanelLogHandler(logging.Handler):
    """Logging handler writing records to the TUI log panel.

    The component shown is the second segment of the logger name
    (relaychat.transport.* -> transport), or the first for foreign loggers.
    """

    def __init__(self, panel: "DebugPanel", app: "App | None" = None) -> None:
        super().__init__()
        self.panel = panel
        self.app = app

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
            if record.exc_info and record.exc_info[1] is not None:
                message = f"{message}: {record.exc_info[1]!r}"
            _call_thread_safe(
                self.app,
                self.panel.log,
                self._component(record.name),
                message,
                LogLevel.from_record(record.levelno),
            )
        except Exception:
            self.handleError(record)

    @staticmethod
    def _component(logger_name: str) -> str:
        parts = logger_name.split(".")
        if parts[0] == "relaychat" and len(parts) > 1:
            return parts[1]
        return parts[0]
