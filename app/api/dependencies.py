from __future__ import annotations

from starlette.requests import HTTPConnection

from app.chat import Broadcaster, ConnectionRegistry, HistoryReplay


# Chat services are built in the application lifespan and live on app.state


def get_registry(conn: HTTPConnection) -> ConnectionRegistry:
    return conn.app.state.registry


def get_broadcaster(conn: HTTPConnection) -> Broadcaster:
    return conn.app.state.broadcaster


def get_history_replay(conn: HTTPConnection) -> HistoryReplay:
    return conn.app.state.history
