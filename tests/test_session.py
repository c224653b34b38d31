"""Unit tests for the chat session."""
import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from relaychat.chat import RECEIVE_EVENT, SEND_EVENT, ChatSession, SessionState
from relaychat.transport import (
    ConnectionConfig,
    ConnectionState,
    InMemoryConnectionManager,
    ReconnectPolicy,
)


async def settle(relay, session):
    """Let the relay deliver everything and the session process it."""
    await relay.flush()
    await session.wait_idle()


class Counter:
    """Change listener that counts notifications."""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


class TestChatSessionSetup:
    """Tests for session construction and lifecycle."""

    def test_requires_running_loop(self):
        """Test that a session cannot be created outside an event loop."""
        with pytest.raises(RuntimeError):
            ChatSession(InMemoryConnectionManager())

    @pytest.mark.asyncio
    async def test_generates_identity(self):
        """Test that each session gets its own random identity."""
        relay = InMemoryConnectionManager()
        first = ChatSession(relay)
        second = ChatSession(relay)
        try:
            assert first.current_user_id
            assert first.current_user_id != second.current_user_id
        finally:
            await first.close()
            await second.close()

    @pytest.mark.asyncio
    async def test_connects_on_creation(self):
        """Test that creating a session starts the handshake."""
        relay = InMemoryConnectionManager()
        session = ChatSession(relay, user_id="A")

        assert session.state is SessionState.CONNECTING
        assert relay.state is ConnectionState.CONNECTING

        await relay.flush()
        await asyncio.sleep(0)

        assert session.state is SessionState.ACTIVE
        await session.close()

    @pytest.mark.asyncio
    async def test_session_on_connected_relay_is_active(self, session, relay):
        """Test that joining an open connection is immediately active."""
        other = ChatSession(relay, user_id="C")
        try:
            assert other.state is SessionState.ACTIVE
        finally:
            await other.close()

    @pytest.mark.asyncio
    async def test_disconnect_without_reconnect_is_disconnected(self, session, relay):
        """Test that a drop nothing will retry shows as disconnected."""
        relay.disconnect()
        await relay.flush()

        assert session.state is SessionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_drop_with_reconnect_policy_is_connecting(self, socket_connection):
        """Test that a drop the client will retry shows as connecting."""
        connection = socket_connection(ConnectionConfig(reconnect=ReconnectPolicy(enabled=True)))
        session = ChatSession(connection, user_id="A")
        for _ in range(20):
            await asyncio.sleep(0)
        assert session.state is SessionState.ACTIVE

        connection._client.connected = False
        connection._handle_disconnect("transport close")

        assert session.state is SessionState.CONNECTING
        await session.close()

    @pytest.mark.asyncio
    async def test_reconnect_after_drop_is_active(self, session, relay):
        """Test that the session follows the connection back up."""
        relay.disconnect()
        await relay.flush()
        relay.connect()
        await relay.flush()

        assert session.state is SessionState.ACTIVE

    @pytest.mark.asyncio
    async def test_starts_empty(self, session):
        """Test the initial transcript."""
        assert session.message_count == 0
        assert list(session.messages) == []
        assert session.on_messages_updated is None

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, session):
        """Test that closing twice is harmless."""
        await session.close()
        await session.close()

        assert session.state is SessionState.CLOSED

    @pytest.mark.asyncio
    async def test_send_after_close_raises(self, session):
        """Test that a closed session rejects sends."""
        await session.close()

        with pytest.raises(RuntimeError):
            session.send_message("late")

    @pytest.mark.asyncio
    async def test_closed_session_ignores_inbound(self, session, relay, deliver):
        """Test that a closed session no longer receives."""
        counter = Counter()
        session.on_messages_updated = counter
        await session.close()

        deliver("B", "anyone?")
        await relay.flush()

        assert counter.calls == 0
        assert session.message_count == 0

    @pytest.mark.asyncio
    async def test_send_from_other_thread_raises(self, session):
        """Test that sends must come from the owner loop."""
        with pytest.raises(RuntimeError):
            await asyncio.to_thread(session.send_message, "wrong thread")

        assert session.message_count == 0


class TestSendMessage:
    """Tests for the outbound path."""

    @pytest.mark.asyncio
    async def test_local_echo(self, session, relay):
        """Test that a sent message is appended and published at once."""
        counter = Counter()
        session.on_messages_updated = counter

        message = session.send_message("hi")

        assert session.message_count == 1
        assert session.message_at(0) is message
        assert message.user_id == "A"
        assert message.text == "hi"
        assert counter.calls == 1
        assert relay.sent == [(SEND_EVENT, {"userId": "A", "message": "hi"})]

    @pytest.mark.asyncio
    async def test_send_while_disconnected_still_echoes_locally(self):
        """Test that an unreachable relay never blocks or breaks the send path."""
        relay = InMemoryConnectionManager(reachable=False)
        session = ChatSession(relay, user_id="A")
        await relay.flush()

        session.send_message("into the void")

        assert session.message_count == 1
        assert relay.sent == []
        await session.close()

    @pytest.mark.asyncio
    async def test_messages_keep_send_order(self, session):
        """Test that consecutive sends appear in call order."""
        for text in ("one", "two", "three"):
            session.send_message(text)

        assert [m.text for m in session.messages] == ["one", "two", "three"]
        assert [m.sequence for m in session.messages] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_is_own(self, session, relay, deliver):
        """Test attribution for display."""
        mine = session.send_message("hi")
        deliver("B", "yo")
        await settle(relay, session)

        assert session.is_own(mine)
        assert not session.is_own(session.message_at(1))


class TestReceiveMessage:
    """Tests for the inbound path."""

    @pytest.mark.asyncio
    async def test_echo_then_peer_scenario(self, session, relay, deliver):
        """Test own echo suppression followed by a peer message."""
        counter = Counter()
        session.on_messages_updated = counter

        session.send_message("hi")
        assert [(m.user_id, m.text) for m in session.messages] == [("A", "hi")]
        assert counter.calls == 1

        # The loopback relay echoes "hi" back as user A
        await settle(relay, session)
        assert session.message_count == 1
        assert counter.calls == 1

        deliver("B", "yo")
        await settle(relay, session)
        assert [(m.user_id, m.text) for m in session.messages] == [("A", "hi"), ("B", "yo")]
        assert counter.calls == 2

    @pytest.mark.asyncio
    async def test_missing_message_field_is_ignored(self, session, relay):
        """Test that a payload without text changes nothing."""
        counter = Counter()
        session.on_messages_updated = counter

        relay.deliver(RECEIVE_EVENT, {"userId": "B"})
        await settle(relay, session)

        assert session.message_count == 0
        assert counter.calls == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("args", [
        (),
        ({"message": "who"},),
        ({"userId": 3, "message": "x"},),
        ("plain text",),
        ({"userId": "B", "message": "a"}, {"userId": "B", "message": "b"}),
    ])
    async def test_malformed_payloads_are_dropped(self, session, relay, args):
        """Test that malformed events never raise and never notify."""
        counter = Counter()
        session.on_messages_updated = counter

        relay.deliver(RECEIVE_EVENT, *args)
        await settle(relay, session)

        assert session.message_count == 0
        assert counter.calls == 0

    @pytest.mark.asyncio
    async def test_peer_empty_text_is_accepted(self, session, relay, deliver):
        """Test that the core does not filter empty inbound text."""
        deliver("B", "")
        await settle(relay, session)

        assert session.message_count == 1
        assert session.message_at(0).text == ""

    @pytest.mark.asyncio
    async def test_arrival_order_is_preserved(self, session, relay, deliver):
        """Test that inbound messages are appended in arrival order."""
        for i in range(5):
            deliver("B", f"m{i}")
        await settle(relay, session)

        assert [m.text for m in session.messages] == [f"m{i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_receive_from_worker_thread(self, session, relay, deliver):
        """Test that deliveries from another thread reach the owner loop."""
        loop = asyncio.get_running_loop()
        seen = []
        session.on_messages_updated = lambda: seen.append(asyncio.get_running_loop())

        await asyncio.to_thread(deliver, "B", "from a thread")
        for _ in range(20):
            if seen:
                break
            await asyncio.sleep(0.01)
        await session.wait_idle()

        assert seen == [loop]
        assert session.message_at(0).text == "from a thread"


class TestNotification:
    """Tests for change notification."""

    @pytest.mark.asyncio
    async def test_slot_is_last_writer_wins(self, session):
        """Test that assigning the slot replaces the previous callback."""
        first, second = Counter(), Counter()
        session.on_messages_updated = first
        session.on_messages_updated = second

        session.send_message("hi")

        assert (first.calls, second.calls) == (0, 1)

    @pytest.mark.asyncio
    async def test_subscribers_and_slot_both_notified(self, session):
        """Test that additional listeners see every mutation."""
        slot, extra = Counter(), Counter()
        session.on_messages_updated = slot
        unsubscribe = session.subscribe(extra)

        session.send_message("one")
        unsubscribe()
        session.send_message("two")

        assert slot.calls == 2
        assert extra.calls == 1

    @pytest.mark.asyncio
    async def test_listener_sees_updated_transcript(self, session, relay, deliver):
        """Test that the transcript already holds the message when notified."""
        counts = []
        session.on_messages_updated = lambda: counts.append(session.message_count)

        session.send_message("hi")
        deliver("B", "yo")
        await settle(relay, session)

        assert counts == [1, 2]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_session(self, session, relay, deliver):
        """Test that an exception in a listener is contained."""
        def broken():
            raise RuntimeError("render failed")

        session.on_messages_updated = broken
        session.send_message("hi")
        deliver("B", "yo")
        await settle(relay, session)

        assert session.message_count == 2


operations = st.lists(
    st.one_of(
        st.tuples(st.just("send"), st.text(max_size=20)),
        st.tuples(st.just("echo"), st.text(max_size=20)),
        st.tuples(st.just("peer"), st.text(max_size=20)),
        st.tuples(st.just("malformed"), st.sampled_from([{}, {"userId": "B"}, {"message": "x"}])),
    ),
    max_size=25,
)


def run_operations(ops):
    """Apply operations to a fresh session; return (sent, lengths, notifications, messages)."""
    async def _run():
        relay = InMemoryConnectionManager(echo=False)
        session = ChatSession(relay, user_id="A")
        await relay.flush()
        counter = Counter()
        session.on_messages_updated = counter

        sent = []
        lengths = [session.message_count]
        accepted = 0
        for kind, value in ops:
            if kind == "send":
                session.send_message(value)
                sent.append(value)
                accepted += 1
            elif kind == "echo":
                relay.deliver(RECEIVE_EVENT, {"userId": "A", "message": value})
            elif kind == "peer":
                relay.deliver(RECEIVE_EVENT, {"userId": "B", "message": value})
                accepted += 1
            else:
                relay.deliver(RECEIVE_EVENT, value)
            await session.wait_idle()
            lengths.append(session.message_count)

        messages = list(session.messages)
        await session.close()
        return sent, lengths, counter.calls, accepted, messages

    return asyncio.run(_run())


class TestSessionProperties:
    """Property tests over random send/receive sequences."""

    @given(operations)
    @settings(max_examples=50, deadline=None)
    def test_append_only(self, ops):
        """Property test: transcript length never decreases."""
        _, lengths, _, _, _ = run_operations(ops)
        assert lengths == sorted(lengths)

    @given(operations)
    @settings(max_examples=50, deadline=None)
    def test_notification_fidelity(self, ops):
        """Property test: one notification per accepted mutation."""
        _, lengths, calls, accepted, _ = run_operations(ops)
        assert calls == accepted
        assert lengths[-1] == accepted

    @given(operations)
    @settings(max_examples=50, deadline=None)
    def test_attribution(self, ops):
        """Property test: own messages are exactly the sent ones."""
        sent, _, _, _, messages = run_operations(ops)
        assert [m.text for m in messages if m.user_id == "A"] == sent

    @given(st.lists(st.text(max_size=20), max_size=15))
    @settings(max_examples=50, deadline=None)
    def test_self_echo_suppressed(self, texts):
        """Property test: each sent message appears once despite the relay echo."""
        async def _run():
            relay = InMemoryConnectionManager()
            session = ChatSession(relay, user_id="A")
            await relay.flush()
            for text in texts:
                session.send_message(text)
            await settle(relay, session)
            result = [m.text for m in session.messages]
            await session.close()
            return result

        assert asyncio.run(_run()) == texts
