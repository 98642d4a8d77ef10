"""Tests for message submission and fan-out."""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from app.chat import Broadcaster, MessageStore, StorageError, ValidationError


@pytest.fixture
def connections(registry, make_connection):
    """Three live connections; the first acts as the submitter."""
    live = [make_connection() for _ in range(3)]
    for connection in live:
        registry.register(connection)
    return live


class TestSubmit:
    @pytest.mark.asyncio
    async def test_valid_submit_persists_and_broadcasts(self, broadcaster, store, connections, sent_frames):
        stored = await broadcaster.submit({"sender": "alice", "text": "hi"})

        assert stored is not None
        assert stored.sender == "alice"
        assert stored.text == "hi"
        assert stored.attachment is None
        assert await store.query_all() == [stored]

        expected = {"type": "message-broadcast", "message": stored.model_dump()}
        for connection in connections:
            assert sent_frames(connection) == [expected]

    @pytest.mark.asyncio
    async def test_broadcast_carries_explicit_nulls(self, broadcaster, connections, sent_frames):
        await broadcaster.submit({"type": "submit-message", "sender": "bob", "attachment": "/uploads/1-a.png"})

        message = sent_frames(connections[0])[0]["message"]
        assert set(message) == {"id", "sender", "text", "attachment", "time"}
        assert message["text"] is None
        assert message["attachment"] == "/uploads/1-a.png"

    @pytest.mark.asyncio
    async def test_text_and_attachment_together(self, broadcaster):
        stored = await broadcaster.submit({"sender": "carol", "text": "look", "attachment": "/uploads/2-b.pdf"})

        assert (stored.text, stored.attachment) == ("look", "/uploads/2-b.pdf")

    @pytest.mark.asyncio
    async def test_empty_strings_become_null(self, broadcaster):
        stored = await broadcaster.submit({"sender": "dave", "text": "", "attachment": ""})

        assert stored.text is None
        assert stored.attachment is None

    @pytest.mark.asyncio
    async def test_client_supplied_id_is_ignored(self, broadcaster):
        stored = await broadcaster.submit({"sender": "alice", "text": "hi", "id": "client-chosen"})

        assert stored.id != "client-chosen"

    @pytest.mark.asyncio
    async def test_time_is_hour_and_minute(self, store, registry):
        broadcaster = Broadcaster(store, registry, clock=lambda: datetime(2024, 5, 1, 9, 5, 42))

        stored = await broadcaster.submit({"sender": "alice", "text": "hi"})

        assert stored.time == "09:05"

    @pytest.mark.parametrize(
        "payload",
        [
            {"text": "no sender"},
            {"sender": "", "text": "empty sender"},
            {"sender": "   ", "text": "blank sender"},
            {"sender": None, "text": "null sender"},
            {"sender": 42, "text": "numeric sender"},
            "not an object",
            None,
        ],
    )
    @pytest.mark.asyncio
    async def test_invalid_request_is_dropped(self, broadcaster, store, connections, payload):
        assert await broadcaster.submit(payload) is None

        assert await store.query_all() == []
        for connection in connections:
            connection.websocket.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_storage_failure_is_dropped_without_broadcast(self, registry, connections):
        store = AsyncMock(spec=MessageStore)
        store.append.side_effect = StorageError("database unavailable")
        broadcaster = Broadcaster(store, registry)

        assert await broadcaster.submit({"sender": "alice", "text": "hi"}) is None

        store.append.assert_awaited_once()
        for connection in connections:
            connection.websocket.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_submits_get_distinct_ids(self, broadcaster, store, connections, sent_frames):
        first, second = await asyncio.gather(
            broadcaster.submit({"sender": "alice", "text": "one"}),
            broadcaster.submit({"sender": "bob", "text": "two"}),
        )

        assert first.id != second.id
        assert {m.id for m in await store.query_all()} == {first.id, second.id}
        for connection in connections:
            assert len(sent_frames(connection)) == 2


class TestValidate:
    def test_returns_request(self):
        request = Broadcaster.validate({"sender": "alice", "text": "hi"})

        assert request.sender == "alice"
        assert request.attachment is None

    def test_missing_sender_raises(self):
        with pytest.raises(ValidationError, match="sender"):
            Broadcaster.validate({"text": "hi"})


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_failed_delivery_does_not_stop_others(self, broadcaster, registry, connections, make_connection, sent_frames):
        broken = make_connection(fail=True)
        registry.register(broken)

        stored = await broadcaster.submit({"sender": "alice", "text": "hi"})

        assert stored is not None
        for connection in connections:
            assert sent_frames(connection)[0]["message"]["id"] == stored.id
        assert broken not in registry
        assert registry.count() == len(connections)

    @pytest.mark.asyncio
    async def test_connection_closed_after_snapshot(self, broadcaster, registry, connections, sent_frames):
        # Still registered, but its socket went away before the send
        gone = connections[1]
        gone.mark_disconnected()

        stored = await broadcaster.submit({"sender": "alice", "text": "hi"})

        delivered = await broadcaster.broadcast(stored)
        assert delivered == 2
        assert gone not in registry
        assert sent_frames(gone) == []
        assert len(sent_frames(connections[0])) == 2

    @pytest.mark.asyncio
    async def test_no_connections(self, broadcaster, store):
        stored = await broadcaster.submit({"sender": "alice", "text": "hi"})

        assert await broadcaster.broadcast(stored) == 0
        assert await store.query_all() == [stored]
