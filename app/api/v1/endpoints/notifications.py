"""
Notifications WebSocket Endpoint

Clients connect to ``/ws/notifications?user_id=<id>`` and receive events as
``{"event": <name>, "data": <payload>}`` messages. Sending
``{"type": "join-admin"}`` subscribes the connection to admin notifications.
"""

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.services.notification_service import ADMIN_ROOM, notification_hub, user_room

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, user_id: Optional[str] = None):
    await websocket.accept()

    async def send(event: str, payload: Dict[str, Any]) -> None:
        await websocket.send_json({"event": event, "data": payload})

    connection_id = notification_hub.attach(send)
    if user_id:
        notification_hub.join(connection_id, user_room(user_id))
    logger.info("WebSocket connection %s opened (user=%s)", connection_id, user_id)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                logger.debug("Ignoring non-JSON message on connection %s", connection_id)
                continue
            if not isinstance(message, dict):
                continue

            if message.get("type") == "join-admin":
                room = ADMIN_ROOM
            elif message.get("type") == "join-user" and message.get("user_id"):
                room = user_room(message["user_id"])
            else:
                continue

            if not notification_hub.is_attached(connection_id):
                # Dropped by the hub after a failed send
                logger.info("Closing connection %s dropped by the hub", connection_id)
                await websocket.close()
                break
            notification_hub.join(connection_id, room)
            await websocket.send_json({"event": "joined", "data": {"room": room}})
    except WebSocketDisconnect:
        logger.info("WebSocket connection %s closed", connection_id)
    finally:
        notification_hub.detach(connection_id)
