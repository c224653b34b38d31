"""In-memory relay connection.

A loopback stand-in for the relay server. Published events are re-delivered
to subscribers on a later loop iteration, the way the real relay broadcasts
them back to every client, including the sender.
Suitable for testing and offline demos.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .base import CONNECT_EVENT, DISCONNECT_EVENT, ConnectionManager
from .models import ConnectionConfig, ConnectionState

logger = logging.getLogger(__name__)

DEFAULT_RELAY_ROUTES = {"sendMessage": "receiveMessage"}


class InMemoryConnectionManager(ConnectionManager):
    """Loopback relay connection (process-local).

    Args:
        config: Endpoint configuration, used for log messages only
        echo: Re-deliver published events to subscribers
        reachable: When False every connect attempt fails
        routes: Maps published event names to the inbound name they come back as
    """

    def __init__(
        self,
        config: ConnectionConfig | None = None,
        echo: bool = True,
        reachable: bool = True,
        routes: dict[str, str] | None = None,
    ) -> None:
        super().__init__()
        self._config = config or ConnectionConfig()
        self._echo = echo
        self._reachable = reachable
        self._routes = dict(DEFAULT_RELAY_ROUTES if routes is None else routes)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._pending = 0
        self.sent: list[tuple[str, dict[str, Any]]] = []

    @property
    def backend_type(self) -> str:
        return "memory"

    def connect(self) -> None:
        if self._state is not ConnectionState.DISCONNECTED:
            return
        self._loop = asyncio.get_running_loop()
        self._state = ConnectionState.CONNECTING
        logger.info("Connecting to in-memory relay %s", self._config.url)
        self._schedule(self._complete_connect)

    def disconnect(self) -> None:
        if self._state is ConnectionState.DISCONNECTED:
            return
        self._state = ConnectionState.DISCONNECTED
        logger.info("Disconnected from in-memory relay %s", self._config.url)
        self._schedule(self._dispatch, DISCONNECT_EVENT)

    def send(self, event: str, payload: dict[str, Any]) -> None:
        if not self.is_connected:
            logger.warning(
                "Dropping %r event: not connected to %s (state: %s)",
                event, self._config.url, self._state.value
            )
            return
        self.sent.append((event, payload))
        inbound = self._routes.get(event)
        if self._echo and inbound is not None:
            self._schedule(self._dispatch, inbound, dict(payload))

    def deliver(self, event: str, *args: Any) -> None:
        """Inject an inbound event as if the relay had sent it.

        Safe to call from any thread; delivery happens on the loop that
        connected, in call order.
        """
        loop = self._loop
        if loop is None:
            self._dispatch(event, *args)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._dispatch(event, *args)
        else:
            loop.call_soon_threadsafe(self._dispatch, event, *args)

    async def flush(self) -> None:
        """Wait until every scheduled delivery has run."""
        while self._pending:
            await asyncio.sleep(0)

    async def close(self) -> None:
        self.disconnect()
        await self.flush()

    def _schedule(self, callback: Callable[..., None], *args: Any) -> None:
        self._pending += 1

        def run() -> None:
            self._pending -= 1
            callback(*args)

        self._loop.call_soon(run)

    def _complete_connect(self) -> None:
        if self._state is not ConnectionState.CONNECTING:
            return
        if not self._reachable:
            self._state = ConnectionState.DISCONNECTED
            logger.warning("Connection to %s failed: relay unreachable", self._config.url)
            return
        self._state = ConnectionState.CONNECTED
        logger.info("Socket connected to in-memory relay %s", self._config.url)
        self._dispatch(CONNECT_EVENT)
