"""Durable, append-only message log."""

import logging
from typing import Callable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.core.database import SessionLocal
from .exceptions import StorageError
from .models import Message
from .schemas import MessageRecord


logger = logging.getLogger("app.chat.store")


class MessageStore:
    """Insertion-ordered message log backed by the ``messages`` table.

    Only ``append`` and ``query_all`` are exposed; rows are never updated or
    deleted. Database work runs in the threadpool so the event loop is only
    suspended, never blocked, while a write or read is in flight.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    async def append(self, message: MessageRecord) -> MessageRecord:
        """Persist one message and return the stored record.

        Raises:
            StorageError: the insert failed (constraint violation, lost connection).
        """
        return await run_in_threadpool(self._append, message)

    async def query_all(self) -> List[MessageRecord]:
        """Return every stored message in insertion order.

        Raises:
            StorageError: the read failed.
        """
        return await run_in_threadpool(self._query_all)

    def _append(self, message: MessageRecord) -> MessageRecord:
        db = self._session_factory()
        try:
            row = Message(**message.model_dump())
            db.add(row)
            db.commit()
            db.refresh(row)
            stored = MessageRecord.model_validate(row)
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageError(f"Failed to persist message {message.id}") from exc
        finally:
            db.close()

        logger.info("Message stored: message_id=%s, seq=%s, sender=%s", stored.id, row.seq, stored.sender)
        return stored

    def _query_all(self) -> List[MessageRecord]:
        db = self._session_factory()
        try:
            rows = db.query(Message).order_by(Message.seq).all()
            return [MessageRecord.model_validate(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StorageError("Failed to read message history") from exc
        finally:
            db.close()
