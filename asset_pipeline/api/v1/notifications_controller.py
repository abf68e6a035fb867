"""Notifications endpoint: authenticated WebSocket receiving asset_processed events"""

# Standard library imports
import logging

# External package imports
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

# Local application imports
from ...infrastructure.notifications.event_broadcaster import EventBroadcaster, POLICY_VIOLATION

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


@router.websocket("/ws")
async def websocket_notifications(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for receiving asset processing events.

    Usage:
        connect to ws://host/api/v1/notifications/ws and send
        {"auth": {"token": "<jwt>"}} as the first frame.
    """
    container = getattr(websocket.app.state, "container", None)
    if container is None:
        await websocket.close(code=POLICY_VIOLATION, reason="Service not initialized")
        return

    broadcaster: EventBroadcaster = container.get(EventBroadcaster)
    connection = await broadcaster.authenticate(websocket)
    if connection is None:
        return

    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
            elif message != "pong":
                logger.debug(f"Received message on {connection.room}: {message}")
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected connection={connection.connection_id} room={connection.room}")
    except Exception as e:
        logger.error(f"Error in WebSocket connection {connection.connection_id}: {e}", exc_info=True)
    finally:
        await broadcaster.disconnect(connection)
