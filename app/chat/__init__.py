"""Real-time group chat: message log, live connections, broadcast and history replay."""

from .broadcaster import Broadcaster
from .exceptions import ChatError, ConnectionLostError, StorageError, ValidationError
from .history import HistoryReplay
from .models import Message
from .registry import Connection, ConnectionRegistry, ConnectionState
from .schemas import ChatEvent, MessageRecord, SubmitMessageRequest
from .store import MessageStore

__all__ = [
    "Broadcaster",
    "ChatError",
    "ChatEvent",
    "Connection",
    "ConnectionLostError",
    "ConnectionRegistry",
    "ConnectionState",
    "HistoryReplay",
    "Message",
    "MessageRecord",
    "MessageStore",
    "StorageError",
    "SubmitMessageRequest",
    "ValidationError",
]
