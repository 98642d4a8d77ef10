"""Errors raised by the chat relay core."""


class ChatError(Exception):
    """Base class for chat relay errors."""


class ValidationError(ChatError):
    """A submit-message request is malformed (e.g. missing or empty sender)."""


class StorageError(ChatError):
    """The message log could not be read or written."""


class ConnectionLostError(ChatError):
    """A frame could not be delivered because the channel is gone."""

    def __init__(self, connection_id: str, reason: str = "connection closed"):
        super().__init__(f"Connection {connection_id}: {reason}")
        self.connection_id = connection_id
