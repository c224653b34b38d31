"""Append-only message transcript."""

from collections.abc import Iterator, Sequence

from .models import Message


class Transcript(Sequence[Message]):
    """Ordered record of every message shown to the user.

    Consumers get read-only sequence access. Only the owning session
    records new messages; nothing removes a single message.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def record(self, user_id: str, text: str) -> Message:
        """Append a message at the next sequence position."""
        message = Message(user_id=user_id, text=text, sequence=len(self._messages))
        self._messages.append(message)
        return message

    def release(self) -> None:
        """Drop all messages. Only used on session teardown."""
        self._messages.clear()

    def __getitem__(self, index):
        # Slices return a list copy
        return self._messages[index]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))
