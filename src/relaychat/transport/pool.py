"""Process-wide registry of relay connections.

Following Parnas principles, this module hides:
- When a connection object is created (lazily, on first access)
- How many sessions share it (all of them, one per relay endpoint)
- How connections are torn down at shutdown
"""

import logging
import threading

from .base import ConnectionManager
from .factory import create_connection_manager
from .models import ConnectionConfig

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Singleton pool holding one connection per relay endpoint.

    The composition root asks the pool for a connection and injects it into
    the chat session; the pool keeps it alive for the rest of the process.
    """

    _lock = threading.Lock()
    _connections: dict[str, ConnectionManager] = {}

    @staticmethod
    def _key(backend: str, config: ConnectionConfig) -> str:
        return f"{backend.lower()}:{config.url}{config.namespace}"

    @classmethod
    def get_connection(
        cls,
        config: ConnectionConfig | None = None,
        backend: str = "socketio"
    ) -> ConnectionManager:
        """Get or create the connection for an endpoint.

        Args:
            config: Relay endpoint configuration
            backend: Backend type passed to the factory on first access

        Returns:
            Cached or newly created connection (not connected yet)
        """
        config = config or ConnectionConfig()
        key = cls._key(backend, config)
        with cls._lock:
            if key not in cls._connections:
                cls._connections[key] = create_connection_manager(backend, config)
                logger.debug("Created %s connection for %s", backend, config.url)
            return cls._connections[key]

    @classmethod
    async def close_all(cls) -> None:
        """Close all pooled connections.

        Called during shutdown to cleanup resources properly.
        """
        with cls._lock:
            connections = list(cls._connections.values())
            cls._connections.clear()

        for connection in connections:
            try:
                await connection.close()
            except Exception:
                logger.exception("Closing %s connection failed", connection.backend_type)
