"""Data models for chat messages.

Message is what the transcript holds; MessagePayload is what travels over
the relay. Keeping them apart hides the wire field names from consumers.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

SEND_EVENT = "sendMessage"
RECEIVE_EVENT = "receiveMessage"


class Message(BaseModel):
    """A single transcript entry. Immutable once appended."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(description="Opaque identifier of the author")
    text: str = Field(description="User-authored content")
    sequence: int = Field(ge=0, description="Position in the transcript")
    received_at: datetime = Field(default_factory=datetime.now)

    def is_from(self, user_id: str) -> bool:
        """Return True if this message was authored by ``user_id``."""
        return self.user_id == user_id


class MessagePayload(BaseModel):
    """Wire shape of sendMessage / receiveMessage events."""

    model_config = ConfigDict(extra="ignore")

    user_id: StrictStr = Field(alias="userId")
    message: StrictStr

    def to_wire(self) -> dict[str, str]:
        """Serialize with the relay's field names."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_event(cls, payload: Any) -> "MessagePayload | None":
        """Parse an inbound event payload.

        The relay sends a single data argument, so the payload must be a
        one-element list holding a mapping with string ``userId`` and
        ``message`` fields.

        Returns:
            Parsed payload, or None if the event is malformed
        """
        if not isinstance(payload, (list, tuple)) or len(payload) != 1:
            return None
        body = payload[0]
        if not isinstance(body, Mapping):
            return None
        try:
            return cls.model_validate(dict(body))
        except ValidationError:
            return None
