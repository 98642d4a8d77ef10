"""Pytest configuration and fixtures for the chat relay tests."""

import os
import tempfile

# Settings are read once at import time, so the environment must be in place first
_TEST_DIR = tempfile.mkdtemp(prefix="chat-relay-tests-")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["DATABASE_AUTO_CREATE"] = "false"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DIR, "uploads")

from typing import Callable  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.chat import Broadcaster, Connection, ConnectionRegistry, HistoryReplay, MessageStore  # noqa: E402
from app.chat.models import Message  # noqa: E402,F401
from app.core.database import engine  # noqa: E402
from app.models import Base  # noqa: E402


# ============================================================================
# Database
# ============================================================================


@pytest.fixture(autouse=True)
def db_tables():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


# ============================================================================
# Chat services
# ============================================================================


@pytest.fixture
def store() -> MessageStore:
    return MessageStore()


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def broadcaster(store, registry) -> Broadcaster:
    return Broadcaster(store, registry)


@pytest.fixture
def history(store) -> HistoryReplay:
    return HistoryReplay(store)


@pytest.fixture
def make_connection() -> Callable[..., Connection]:
    """Build a Connection over a mocked WebSocket.

    ``fail=True`` makes every send raise as a closed socket would.
    """

    def _make(fail: bool = False) -> Connection:
        websocket = AsyncMock()
        if fail:
            websocket.send_json.side_effect = RuntimeError('Cannot call "send" once a close message has been sent.')
        return Connection(websocket)

    return _make


@pytest.fixture
def sent_frames() -> Callable[[Connection], list]:
    """JSON frames passed to a mocked connection's WebSocket, in order."""

    def _frames(connection: Connection) -> list:
        return [call.args[0] for call in connection.websocket.send_json.await_args_list]

    return _frames


# ============================================================================
# HTTP / WebSocket client
# ============================================================================


@pytest.fixture
def client():
    """TestClient with the application lifespan running."""
    from main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client
