"""Pytest configuration and shared fixtures."""
import asyncio
import os

import pytest
import pytest_asyncio

from relaychat.chat import RECEIVE_EVENT, ChatSession
from relaychat.transport import InMemoryConnectionManager
from relaychat.transport.socketio_client import SocketIOConnectionManager


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless a relay is configured."""
    if os.getenv("RELAYCHAT_TEST_SERVER_URL"):
        return
    skip = pytest.mark.skip(reason="RELAYCHAT_TEST_SERVER_URL not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def relay_url():
    """Return the URL of a running relay for integration tests."""
    return os.getenv("RELAYCHAT_TEST_SERVER_URL")


@pytest.fixture
def relay():
    """Return a loopback relay connection that echoes published messages."""
    return InMemoryConnectionManager()


@pytest_asyncio.fixture
async def session(relay):
    """Return a connected chat session for user "A"."""
    chat = ChatSession(relay, user_id="A")
    await relay.flush()
    yield chat
    await chat.close()
    await relay.close()


@pytest.fixture
def deliver(relay):
    """Return a helper that delivers a receiveMessage event from the relay."""
    def _deliver(user_id, message):
        relay.deliver(RECEIVE_EVENT, {"userId": user_id, "message": message})
    return _deliver


class FakeSocketClient:
    """Stands in for socketio.AsyncClient; handshakes complete on the next loop turn."""

    def __init__(self, manager, error=None):
        self.manager = manager
        self.error = error
        self.connected = False
        self.connect_calls = 0
        self.emitted = []

    def on(self, event, handler=None, namespace=None):
        pass

    async def connect(self, url, **kwargs):
        self.connect_calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        self.connected = True
        self.manager._handle_connect()

    async def disconnect(self):
        await asyncio.sleep(0)
        if self.connected:
            self.connected = False
            self.manager._handle_disconnect("client disconnect")

    async def emit(self, event, data=None, namespace=None):
        self.emitted.append((event, data))


@pytest.fixture
def socket_connection():
    """Return a factory for Socket.IO connections backed by FakeSocketClient."""
    def _make(config=None, error=None):
        connection = SocketIOConnectionManager(config)
        connection._client = FakeSocketClient(connection, error)
        return connection
    return _make