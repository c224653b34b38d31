"""Abstract base class for relay connections.

This module defines the interface every transport backend implements.
The abstraction hides:
- Which wire protocol reaches the relay
- How the handshake is scheduled
- Which task or thread delivers inbound events
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from .models import ConnectionState

logger = logging.getLogger(__name__)

# Lifecycle pseudo-events, delivered with an empty payload
CONNECT_EVENT = "connect"
DISCONNECT_EVENT = "disconnect"

LIFECYCLE_EVENTS = (CONNECT_EVENT, DISCONNECT_EVENT)

EventHandler = Callable[[list[Any]], None]


class ConnectionManager(ABC):
    """Abstract relay connection.

    Owns exactly one logical connection. connect(), disconnect() and send()
    never block the caller and never raise on transport failure; failures
    are logged and reflected in ``state``.

    Handlers registered with subscribe() receive the raw event payload, the
    list of data arguments the relay sent with the event. They are called
    from the transport's delivery path and must not block it.
    """

    def __init__(self) -> None:
        self._state = ConnectionState.DISCONNECTED
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    @abstractmethod
    def connect(self) -> None:
        """Start the handshake. No-op when already connecting or connected."""

    @abstractmethod
    def disconnect(self) -> None:
        """Release the transport. Safe when never connected."""

    @abstractmethod
    def send(self, event: str, payload: dict[str, Any]) -> None:
        """Publish a named event, fire-and-forget."""

    @abstractmethod
    async def close(self) -> None:
        """Disconnect and wait for pending transport work to finish."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def subscribe(self, event: str, handler: EventHandler) -> Callable[[], None]:
        """Register a handler for an inbound event.

        Args:
            event: Event name, or one of the lifecycle events
            handler: Called once per occurrence with the raw payload

        Returns:
            Callable that removes this registration
        """
        first = not self._handlers[event]
        self._handlers[event].append(handler)
        if first and event not in LIFECYCLE_EVENTS:
            self._on_first_subscribe(event)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event)
            if handlers and handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def _on_first_subscribe(self, event: str) -> None:
        """Hook for backends that must register events with their client."""

    def _dispatch(self, event: str, *args: Any) -> None:
        """Deliver an inbound event to its handlers in registration order."""
        payload = list(args)
        handlers = list(self._handlers.get(event, ()))
        if not handlers:
            logger.debug("No handler for event %r", event)
            return
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                logger.exception("Handler for event %r failed", event)
