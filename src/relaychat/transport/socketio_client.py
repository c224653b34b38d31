"""Socket.IO relay connection.

Wraps python-socketio's AsyncClient. All client work runs as tasks on the
event loop that called connect(); the public methods only schedule them.
"""

import asyncio
import contextlib
import logging
from collections.abc import Coroutine
from functools import partial
from typing import Any

import socketio
from socketio.exceptions import SocketIOError

from .base import CONNECT_EVENT, DISCONNECT_EVENT, ConnectionManager
from .models import ConnectionConfig, ConnectionState

logger = logging.getLogger(__name__)


class SocketIOConnectionManager(ConnectionManager):
    """Single Socket.IO connection to the relay server."""

    def __init__(self, config: ConnectionConfig | None = None) -> None:
        super().__init__()
        self._config = config or ConnectionConfig()
        policy = self._config.reconnect
        self._client = socketio.AsyncClient(
            reconnection=policy.enabled,
            reconnection_attempts=policy.attempts,
            reconnection_delay=policy.delay,
            reconnection_delay_max=policy.delay_max,
            logger=logger if self._config.log_wire else False,
            engineio_logger=logger if self._config.log_wire else False,
        )
        self._tasks: set[asyncio.Task] = set()
        self._connect_task: asyncio.Task | None = None
        self._release_task: asyncio.Task | None = None
        self._reconnect_after_release = False
        self._closing = False

        namespace = self._config.namespace
        self._client.on("connect", self._handle_connect, namespace=namespace)
        self._client.on("disconnect", self._handle_disconnect, namespace=namespace)
        self._client.on("connect_error", self._handle_connect_error, namespace=namespace)

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def backend_type(self) -> str:
        return "socketio"

    def connect(self) -> None:
        if self._release_task is not None:
            # Handshake starts once the pending release has finished
            self._reconnect_after_release = True
            return
        if self._state is not ConnectionState.DISCONNECTED:
            return
        self._closing = False
        self._state = ConnectionState.CONNECTING
        logger.info("Connecting to %s", self._config.url)
        self._connect_task = self._spawn(self._establish())

    def disconnect(self) -> None:
        if self._release_task is not None:
            self._reconnect_after_release = False
            return
        if self._state is ConnectionState.DISCONNECTED and self._connect_task is None:
            return
        self._closing = True
        self._state = ConnectionState.DISCONNECTED
        self._release_task = self._spawn(self._release())

    def send(self, event: str, payload: dict[str, Any]) -> None:
        if not self.is_connected:
            logger.warning(
                "Dropping %r event: not connected to %s (state: %s)",
                event, self._config.url, self._state.value
            )
            return
        self._spawn(self._emit(event, payload))

    async def close(self) -> None:
        self.disconnect()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_first_subscribe(self, event: str) -> None:
        self._client.on(
            event,
            handler=partial(self._dispatch, event),
            namespace=self._config.namespace,
        )

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _establish(self) -> None:
        try:
            await self._client.connect(
                self._config.url,
                namespaces=[self._config.namespace],
                transports=self._config.transports,
                wait_timeout=self._config.wait_timeout,
                retry=self._config.reconnect.enabled,
            )
        except SocketIOError as e:
            logger.warning("Connection to %s failed: %s", self._config.url, e)
        except asyncio.CancelledError:
            logger.debug("Connection attempt to %s cancelled", self._config.url)
            raise
        except Exception:
            logger.exception("Connection to %s failed", self._config.url)
        finally:
            self._connect_task = None
            if not self._client.connected:
                self._state = ConnectionState.DISCONNECTED

    async def _release(self) -> None:
        if self._connect_task is not None:
            self._connect_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._connect_task
            self._connect_task = None
        try:
            await self._client.disconnect()
        except SocketIOError as e:
            logger.warning("Disconnect from %s failed: %s", self._config.url, e)
        finally:
            self._state = ConnectionState.DISCONNECTED
            self._release_task = None
        if self._reconnect_after_release:
            self._reconnect_after_release = False
            self.connect()

    async def _emit(self, event: str, payload: dict[str, Any]) -> None:
        try:
            await self._client.emit(event, payload, namespace=self._config.namespace)
        except SocketIOError as e:
            logger.warning("Publishing %r to %s failed: %s", event, self._config.url, e)

    def _handle_connect(self) -> None:
        self._state = ConnectionState.CONNECTED
        logger.info("Socket connected to %s", self._config.url)
        self._dispatch(CONNECT_EVENT)

    def _handle_disconnect(self, *args: Any) -> None:
        reason = args[0] if args else "unknown"
        if self._closing or not self._config.reconnect.enabled:
            self._state = ConnectionState.DISCONNECTED
        else:
            self._state = ConnectionState.CONNECTING
        logger.info("Socket disconnected from %s (%s)", self._config.url, reason)
        self._dispatch(DISCONNECT_EVENT)

    def _handle_connect_error(self, data: Any = None) -> None:
        logger.warning("Relay at %s rejected the connection: %s", self._config.url, data)
