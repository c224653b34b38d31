"""Factory for creating relay connections."""

from typing import Any

from .base import ConnectionManager
from .models import ConnectionConfig


def create_connection_manager(
    backend: str = "socketio",
    config: ConnectionConfig | None = None,
    **kwargs: Any
) -> ConnectionManager:
    """Create a relay connection.

    Args:
        backend: Backend type ("socketio" or "memory")
        config: Relay endpoint configuration
        **kwargs: Backend-specific options
            For memory:
                - echo: bool (default: True)
                - reachable: bool (default: True)
                - routes: dict[str, str] | None

    Returns:
        ConnectionManager instance, not yet connected

    Raises:
        ValueError: If backend type is not supported
    """
    backend_lower = backend.lower()

    if backend_lower == "socketio":
        from .socketio_client import SocketIOConnectionManager
        return SocketIOConnectionManager(config, **kwargs)

    elif backend_lower == "memory":
        from .in_memory import InMemoryConnectionManager
        return InMemoryConnectionManager(config, **kwargs)

    raise ValueError(
        f"Unsupported connection backend: {backend}. "
        f"Supported backends: socketio, memory"
    )
