"""WebSocket endpoint for the real-time group chat."""

import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app.api.dependencies import get_broadcaster, get_history_replay, get_registry
from app.chat import (
    Broadcaster,
    ChatEvent,
    Connection,
    ConnectionLostError,
    ConnectionRegistry,
    HistoryReplay,
)
from app.chat.schemas import error_event, status_event
from app.core.messages import WS_INVALID_JSON, WS_UNKNOWN_EVENT


logger = logging.getLogger("app.chat.websocket")

router = APIRouter()


@router.websocket("/ws/chat")
async def chat_websocket(
    websocket: WebSocket,
    registry: ConnectionRegistry = Depends(get_registry),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    history: HistoryReplay = Depends(get_history_replay),
):
    """
    WebSocket endpoint for the group chat.

    Connection URL: ws://localhost:5000/api/v1/ws/chat

    Events (Client → Server):
    {"type": "request-history"}
    {"type": "submit-message", "sender": "alice", "text": "hi", "attachment": null}

    Events (Server → Client):
    {"type": "history-snapshot", "messages": [...Message...]}   requester only
    {"type": "message-broadcast", "message": {...Message...}}   every live connection
    {"type": "status" | "error", ...}

    A submit-message that fails validation or persistence is dropped without
    any reply to the submitter.
    """
    await websocket.accept()
    connection = Connection(websocket)
    registry.register(connection)

    try:
        await connection.send_json(status_event("connected", connection.connection_id))

        # Events from one connection are handled strictly in arrival order
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))

            data = message.get("text")
            if data is None:
                # Binary frames carry no JSON event
                await connection.send_json(error_event(WS_INVALID_JSON))
                continue

            try:
                event = json.loads(data)
            except json.JSONDecodeError:
                await connection.send_json(error_event(WS_INVALID_JSON))
                continue

            event_type = event.get("type") if isinstance(event, dict) else None

            if event_type == ChatEvent.REQUEST_HISTORY.value:
                await history.replay(connection)
            elif event_type == ChatEvent.SUBMIT_MESSAGE.value:
                await broadcaster.submit(event)
            else:
                await connection.send_json(error_event(WS_UNKNOWN_EVENT.format(event=event_type)))

    except WebSocketDisconnect as exc:
        logger.info("WebSocket closed by client: connection_id=%s, code=%s", connection.connection_id, exc.code)
    except ConnectionLostError as exc:
        logger.info("WebSocket lost: %s", exc)
    except Exception as e:
        logger.error("WebSocket error: connection_id=%s, %s", connection.connection_id, e, exc_info=True)
        await connection.close(code=1011)
    finally:
        registry.unregister(connection)
