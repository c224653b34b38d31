"""Data models for the TUI.

Hides how a transcript message is turned into something displayable.
"""

from dataclasses import dataclass
from datetime import datetime

from ..chat import Message
from .config import OWN_AUTHOR_LABEL, PEER_ID_PREVIEW


@dataclass(frozen=True)
class ChatBubble:
    """A transcript message as the chat view shows it."""

    author: str
    text: str
    is_own: bool  # authored in this session: rendered on the right
    timestamp: datetime

    @classmethod
    def from_message(cls, message: Message, current_user_id: str) -> "ChatBubble":
        is_own = message.is_from(current_user_id)
        author = OWN_AUTHOR_LABEL if is_own else message.user_id[:PEER_ID_PREVIEW]
        return cls(
            author=author,
            text=message.text,
            is_own=is_own,
            timestamp=message.received_at,
        )
