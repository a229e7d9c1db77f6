"""WebSocket endpoint for real-time notifications.

Clients connect to /ws, then send {"event": "authenticate", "data": "<user id>"}
to start receiving events addressed to that user.
"""

import json
from typing import cast

import structlog
from fastapi import APIRouter, WebSocket

from finman.app import App

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["realtime"])

ORIGIN_REJECTED = 4003


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket) -> None:
    app = cast(App, websocket.app.state.app)

    origin = websocket.headers.get("origin")
    if not app.is_socket_origin_allowed(origin):
        logger.info("socket_origin_rejected", origin=origin)
        await websocket.close(code=ORIGIN_REJECTED)
        return

    await websocket.accept()
    connection = app.open_socket(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            text = message.get("text")
            if text is None:
                app.report_socket_error(connection, "binary frames are not supported")
                continue
            try:
                payload = json.loads(text)
            except json.JSONDecodeError as e:
                app.report_socket_error(connection, e)
                continue
            await app.receive_socket_message(connection, payload)
    finally:
        app.close_socket(connection)
