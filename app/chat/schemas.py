"""Wire schemas for the chat channel."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ChatEvent(str, Enum):
    """Event names carried in the ``type`` field of every frame."""

    # client -> server
    REQUEST_HISTORY = "request-history"
    SUBMIT_MESSAGE = "submit-message"
    # server -> client
    HISTORY_SNAPSHOT = "history-snapshot"
    MESSAGE_BROADCAST = "message-broadcast"
    STATUS = "status"
    ERROR = "error"


class MessageRecord(BaseModel):
    """A persisted chat message as sent to clients.

    ``text`` and ``attachment`` are independent; an absent value is an
    explicit ``None`` (``null`` on the wire), never an omitted key.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    sender: str
    text: Optional[str] = None
    attachment: Optional[str] = None
    time: str


class SubmitMessageRequest(BaseModel):
    """Payload of a ``submit-message`` frame. Unknown keys are ignored."""

    sender: str
    text: Optional[str] = None
    attachment: Optional[str] = None

    @field_validator("sender")
    @classmethod
    def validate_sender(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Sender is required")
        return v

    @field_validator("text", "attachment")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def history_snapshot_event(messages: Iterable[MessageRecord]) -> Dict[str, Any]:
    return {
        "type": ChatEvent.HISTORY_SNAPSHOT.value,
        "messages": [m.model_dump() for m in messages],
    }


def message_broadcast_event(message: MessageRecord) -> Dict[str, Any]:
    return {
        "type": ChatEvent.MESSAGE_BROADCAST.value,
        "message": message.model_dump(),
    }


def status_event(status: str, connection_id: str) -> Dict[str, Any]:
    return {
        "type": ChatEvent.STATUS.value,
        "status": status,
        "connection_id": connection_id,
        "timestamp": _timestamp(),
    }


def error_event(message: str) -> Dict[str, Any]:
    return {
        "type": ChatEvent.ERROR.value,
        "message": message,
    }
