"""Sends the stored message log to a single connection."""

import logging
from typing import Optional

from .exceptions import StorageError
from .registry import Connection
from .schemas import history_snapshot_event
from .store import MessageStore


logger = logging.getLogger("app.chat.history")


class HistoryReplay:
    """Replies to ``request-history`` with the full ordered log, requester only."""

    def __init__(self, store: MessageStore):
        self._store = store

    async def replay(self, connection: Connection) -> Optional[int]:
        """Send the history snapshot; returns the number of messages sent.

        A failed read is logged and nothing is sent (``None`` is returned).
        ConnectionLostError from the send propagates to the caller.
        """
        try:
            messages = await self._store.query_all()
        except StorageError as exc:
            logger.error(
                "Fetching chat history failed for connection %s: %s",
                connection.connection_id,
                exc,
                exc_info=True,
            )
            return None

        await connection.send_json(history_snapshot_event(messages))
        logger.info("History sent: connection_id=%s, messages=%d", connection.connection_id, len(messages))
        return len(messages)
