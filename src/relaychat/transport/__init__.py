"""Relay connection layer for relaychat.

Owns the single transport connection to the message-relay server.
"""

from .base import CONNECT_EVENT, DISCONNECT_EVENT, ConnectionManager, EventHandler
from .factory import create_connection_manager
from .in_memory import InMemoryConnectionManager
from .models import ConnectionConfig, ConnectionState, ReconnectPolicy
from .pool import ConnectionPool

__all__ = [
    "CONNECT_EVENT",
    "DISCONNECT_EVENT",
    "ConnectionConfig",
    "ConnectionManager",
    "ConnectionPool",
    "ConnectionState",
    "EventHandler",
    "InMemoryConnectionManager",
    "ReconnectPolicy",
    "create_connection_manager",
]
