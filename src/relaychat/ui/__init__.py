"""Terminal UI module for relaychat.

Provides a Textual-based chat view on top of a ChatSession.

Module structure (Parnas principle - each module hides a design decision):
- models.py: Data structures (how a message is displayed)
- widgets.py: Custom widgets (input history, status line, log, chat bubbles)
- styles.py: CSS styling (layout decisions)
- themes.py: Color palettes and theme configuration
- callbacks.py: Core integration (how the TUI receives updates)
- app.py: Application orchestration (user interaction flow)
"""

from .app import ChatTextualApp, run_textual_tui
from .callbacks import PanelLogHandler, SessionBridge
from .config import LogLevel
from .models import ChatBubble
from .widgets import ChatHistoryWidget, ChatInputBar, DebugPanel, StatusBar

__all__ = [
    "ChatBubble",
    "ChatHistoryWidget",
    "ChatInputBar",
    "ChatTextualApp",
    "DebugPanel",
    "LogLevel",
    "PanelLogHandler",
    "SessionBridge",
    "StatusBar",
    "run_textual_tui",
]
