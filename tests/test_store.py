"""Tests for the durable message log."""

import uuid

import pytest
from sqlalchemy import Text, create_engine
from sqlalchemy.orm import sessionmaker

from app.chat import MessageRecord, MessageStore, StorageError
from app.chat.models import Message


def _record(sender: str = "alice", text: str | None = "hi", attachment: str | None = None) -> MessageRecord:
    return MessageRecord(
        id=str(uuid.uuid4()),
        sender=sender,
        text=text,
        attachment=attachment,
        time="10:30",
    )


@pytest.fixture
def broken_store() -> MessageStore:
    """A store whose database has no tables, so every statement fails."""
    bare_engine = create_engine("sqlite://")
    return MessageStore(sessionmaker(bind=bare_engine))


class TestAppend:
    @pytest.mark.asyncio
    async def test_append_returns_stored_record(self, store):
        candidate = _record(attachment="/uploads/1-cat.png")

        stored = await store.append(candidate)

        assert stored == candidate
        assert stored.attachment == "/uploads/1-cat.png"

    @pytest.mark.asyncio
    async def test_absent_fields_are_stored_as_null(self, store):
        stored = await store.append(_record(text=None, attachment=None))

        assert stored.text is None
        assert stored.attachment is None
        assert stored.model_dump()["text"] is None

    @pytest.mark.asyncio
    async def test_duplicate_id_raises_storage_error(self, store):
        candidate = await store.append(_record())

        with pytest.raises(StorageError):
            await store.append(candidate)

        # The failed insert leaves the log intact and usable
        assert [m.id for m in await store.query_all()] == [candidate.id]
        await store.append(_record(sender="bob"))
        assert len(await store.query_all()) == 2

    def test_identity_columns_are_unbounded(self):
        # Any non-empty sender is valid, so no backend may reject it for length
        columns = Message.__table__.c
        assert isinstance(columns.sender.type, Text)
        assert isinstance(columns.attachment.type, Text)
        assert columns.sender.type.length is None
        assert columns.attachment.type.length is None

    @pytest.mark.asyncio
    async def test_long_sender_and_attachment(self, store):
        stored = await store.append(_record(sender="s" * 1000, attachment="/uploads/" + "a" * 5000))

        assert len(stored.sender) == 1000
        assert (await store.query_all()) == [stored]

    @pytest.mark.asyncio
    async def test_write_failure_raises_storage_error(self, broken_store):
        with pytest.raises(StorageError) as exc_info:
            await broken_store.append(_record())

        assert exc_info.value.__cause__ is not None


class TestQueryAll:
    @pytest.mark.asyncio
    async def test_empty_log(self, store):
        assert await store.query_all() == []

    @pytest.mark.asyncio
    async def test_returns_messages_in_insertion_order(self, store):
        first = await store.append(_record(sender="alice", text="one"))
        second = await store.append(_record(sender="bob", text="two"))
        third = await store.append(_record(sender="alice", text="three"))

        assert await store.query_all() == [first, second, third]

    @pytest.mark.asyncio
    async def test_repeated_reads_are_identical(self, store):
        await store.append(_record(text="one"))
        await store.append(_record(text="two"))

        assert await store.query_all() == await store.query_all()

    @pytest.mark.asyncio
    async def test_read_failure_raises_storage_error(self, broken_store):
        with pytest.raises(StorageError):
            await broken_store.query_all()
