"""
Relaychat: a two-party real-time chat client for Socket.IO message relays.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .chat import ChatSession, Message, SessionState, Transcript
from .transport import (
    ConnectionConfig,
    ConnectionManager,
    ConnectionPool,
    ConnectionState,
    create_connection_manager,
)

__all__ = [
    "ChatSession",
    "ConnectionConfig",
    "ConnectionManager",
    "ConnectionPool",
    "ConnectionState",
    "Message",
    "SessionState",
    "Transcript",
    "create_connection_manager",
]
