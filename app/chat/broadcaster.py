"""Turns submit-message requests into stored, broadcast messages."""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from .exceptions import StorageError, ValidationError
from .registry import ConnectionRegistry
from .schemas import MessageRecord, SubmitMessageRequest, message_broadcast_event
from .store import MessageStore


logger = logging.getLogger("app.chat.broadcaster")


class Broadcaster:
    """Validates, persists and fans out chat messages.

    Delivery contract: fire-and-forget, at most once. The submitter gets no
    acknowledgement and no error frame; an invalid request or a failed write
    is logged and dropped. A stored message is pushed once to every
    connection live when the fan-out starts, the submitter included, and a
    failed delivery is never retried.
    """

    def __init__(
        self,
        store: MessageStore,
        registry: ConnectionRegistry,
        clock: Callable[[], datetime] = datetime.now,
        time_format: str = settings.MESSAGE_TIME_FORMAT,
    ):
        self._store = store
        self._registry = registry
        self._clock = clock
        self._time_format = time_format

    async def submit(self, payload: Any) -> Optional[MessageRecord]:
        """Handle one ``submit-message`` payload.

        Returns the stored message, or ``None`` when the request was dropped.
        """
        try:
            request = self.validate(payload)
        except ValidationError as exc:
            logger.warning("Dropping message: %s (payload=%r)", exc, payload)
            return None

        candidate = self.build_message(request)

        try:
            stored = await self._store.append(candidate)
        except StorageError as exc:
            logger.error("Failed to save message from %s: %s", candidate.sender, exc, exc_info=True)
            return None

        await self.broadcast(stored)
        return stored

    @staticmethod
    def validate(payload: Any) -> SubmitMessageRequest:
        if not isinstance(payload, dict):
            raise ValidationError("Message payload must be a JSON object")
        try:
            return SubmitMessageRequest.model_validate(payload)
        except PydanticValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise ValidationError(details) from exc

    def build_message(self, request: SubmitMessageRequest) -> MessageRecord:
        return MessageRecord(
            id=str(uuid.uuid4()),
            sender=request.sender,
            text=request.text,
            attachment=request.attachment,
            time=self._clock().strftime(self._time_format),
        )

    async def broadcast(self, message: MessageRecord) -> int:
        """Send a stored message to every live connection.

        Returns:
            Number of connections that received the message
        """
        connections = list(self._registry.all())
        if not connections:
            return 0

        event = message_broadcast_event(message)
        results = await asyncio.gather(
            *[connection.send_json(event) for connection in connections],
            return_exceptions=True,
        )

        sent_count = 0
        for connection, result in zip(connections, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Failed to deliver message %s to connection %s: %s",
                    message.id,
                    connection.connection_id,
                    result,
                )
                self._registry.unregister(connection)
            else:
                sent_count += 1

        logger.info("Message broadcast: message_id=%s, delivered=%d/%d", message.id, sent_count, len(connections))
        return sent_count
