"""Chat session module for relaychat.

Owns the transcript and the session identity, and applies the
send/receive protocol on top of a relay connection.
"""

from .models import RECEIVE_EVENT, SEND_EVENT, Message, MessagePayload
from .notifier import ChangeNotifier
from .session import ChatSession, SessionState
from .transcript import Transcript

__all__ = [
    "RECEIVE_EVENT",
    "SEND_EVENT",
    "ChangeNotifier",
    "ChatSession",
    "Message",
    "MessagePayload",
    "SessionState",
    "Transcript",
]
