"""Chat session: the message synchronization engine.

Turns outbound sends and inbound relay events into transcript mutations.

Hidden design decisions:
- Session identity generation
- Local echo and self-echo suppression
- How inbound events reach the transcript (an inbox drained by one task)
- Which execution context runs listeners (the session's event loop)
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any
from uuid import uuid4

from ..transport import CONNECT_EVENT, DISCONNECT_EVENT, ConnectionManager, ConnectionState
from .models import RECEIVE_EVENT, SEND_EVENT, Message, MessagePayload
from .notifier import ChangeNotifier, Listener
from .transcript import Transcript

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle of a chat session."""

    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"
    CLOSED = "closed"


_SESSION_STATES = {
    ConnectionState.CONNECTED: SessionState.ACTIVE,
    ConnectionState.CONNECTING: SessionState.CONNECTING,
    ConnectionState.DISCONNECTED: SessionState.DISCONNECTED,
}


class ChatSession:
    """Single chat session bound to a relay connection.

    Must be created inside a running event loop. That loop is the owner
    context: every transcript mutation and every listener call happens on
    it. Transport handlers only post inbound payloads to the session inbox,
    from whatever task or thread the transport delivers on.

    The connection is borrowed, not owned: the session connects it on
    construction and never disconnects it.

    Example:
        session = ChatSession(connection)
        session.on_messages_updated = view.reload
        session.send_message("hi")
    """

    def __init__(self, connection: ConnectionManager, user_id: str | None = None) -> None:
        self._state = SessionState.UNINITIALIZED
        self._loop = asyncio.get_running_loop()
        self._owner_thread = threading.get_ident()
        self._connection = connection
        self._user_id = user_id or str(uuid4())
        self._transcript = Transcript()
        self._notifier = ChangeNotifier()
        self._inbox: asyncio.Queue[list[Any]] = asyncio.Queue()

        self._unsubscribers = [
            connection.subscribe(RECEIVE_EVENT, self._post_inbound),
            connection.subscribe(CONNECT_EVENT, self._on_transport_change),
            connection.subscribe(DISCONNECT_EVENT, self._on_transport_change),
        ]
        self._drain_task = self._loop.create_task(self._drain_inbox())

        self._state = SessionState.ACTIVE if connection.is_connected else SessionState.CONNECTING
        logger.info("Chat session %s started", self._user_id)
        connection.connect()

    @property
    def current_user_id(self) -> str:
        """Identity of the local user for this session."""
        return self._user_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def messages(self) -> Transcript:
        """The transcript, in display order."""
        return self._transcript

    @property
    def message_count(self) -> int:
        return len(self._transcript)

    def message_at(self, index: int) -> Message:
        return self._transcript[index]

    def is_own(self, message: Message) -> bool:
        """Return True if ``message`` was authored in this session."""
        return message.is_from(self._user_id)

    @property
    def on_messages_updated(self) -> Listener | None:
        """Single change callback slot. Setting it replaces the previous one."""
        return self._notifier.slot

    @on_messages_updated.setter
    def on_messages_updated(self, listener: Listener | None) -> None:
        self._notifier.slot = listener

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register an additional change listener.

        Returns:
            Callable that removes the listener
        """
        return self._notifier.subscribe(listener)

    def send_message(self, text: str) -> Message:
        """Publish ``text`` and append it to the transcript immediately.

        The caller is responsible for rejecting empty input. The relay may
        echo the message back; that echo is discarded on arrival.

        Returns:
            The appended message
        """
        self._ensure_usable()
        if threading.get_ident() != self._owner_thread:
            raise RuntimeError("send_message must be called from the session's event loop thread")

        payload = MessagePayload(userId=self._user_id, message=text)
        self._connection.send(SEND_EVENT, payload.to_wire())

        message = self._transcript.record(self._user_id, text)
        logger.debug("Sent message #%d (%d chars)", message.sequence, len(text))
        self._notifier.notify()
        return message

    async def wait_idle(self) -> None:
        """Wait until every inbound event posted so far has been processed."""
        await self._inbox.join()

    async def close(self) -> None:
        """Detach from the connection and stop processing inbound events."""
        if self._state is SessionState.CLOSED:
            return
        self._state = SessionState.CLOSED
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

        self._drain_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._drain_task
        self._transcript.release()
        logger.info("Chat session %s closed", self._user_id)

    def _ensure_usable(self) -> None:
        if self._state is SessionState.CLOSED:
            raise RuntimeError("Chat session is closed")

    def _call_owner(self, func: Callable[..., Any], *args: Any) -> None:
        """Run ``func`` on the owner loop, immediately if already there."""
        if threading.get_ident() == self._owner_thread:
            func(*args)
        else:
            self._loop.call_soon_threadsafe(func, *args)

    def _post_inbound(self, payload: list[Any]) -> None:
        if self._state is SessionState.CLOSED:
            return
        self._call_owner(self._inbox.put_nowait, payload)

    def _on_transport_change(self, _payload: list[Any]) -> None:
        self._call_owner(self._sync_state)

    def _sync_state(self) -> None:
        """Mirror the connection state; CONNECTING after a drop means a retry is pending."""
        state = _SESSION_STATES[self._connection.state]
        if self._state is SessionState.CLOSED or self._state is state:
            return
        logger.debug("Session %s: %s -> %s", self._user_id, self._state.value, state.value)
        self._state = state

    async def _drain_inbox(self) -> None:
        while True:
            payload = await self._inbox.get()
            try:
                self._accept(payload)
            finally:
                self._inbox.task_done()

    def _accept(self, payload: list[Any]) -> bool:
        """Apply one inbound event. Returns True if the transcript changed."""
        incoming = MessagePayload.from_event(payload)
        if incoming is None:
            logger.debug("Ignoring malformed %s payload: %r", RECEIVE_EVENT, payload)
            return False

        if incoming.user_id == self._user_id:
            logger.debug("Suppressed relay echo of own message")
            return False

        message = self._transcript.record(incoming.user_id, incoming.message)
        logger.debug("Received message #%d from %s", message.sequence, incoming.user_id)
        self._notifier.notify()
        return True
