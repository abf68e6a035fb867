"""
Event Broadcaster
=================

Authenticates live connections, places each into its identity's room and
pushes completion events to that room.

Handshake
---------
After the socket is accepted the client sends one JSON frame:

    {"auth": {"token": "<jwt>"}}

The frame must arrive within the handshake timeout. Rejections are reported as

    {"type": "connect_error", "message": "Authentication required" | "Token expired" | "Invalid token"}

followed by a close with code 1008.
"""

# Standard library imports
import asyncio
import json
import logging
from typing import Any, Optional

# External package imports
from fastapi import WebSocket, WebSocketDisconnect

# Local application imports
from ...core.config import get_settings
from ...core.security import verify_identity_token
from ...domain.exceptions import AuthenticationError, AuthenticationRequiredError
from ...domain.models.connection import Connection, room_for
from ...domain.models.events import CompletionEvent
from .websocket_manager import WebSocketManager

logger = logging.getLogger(__name__)

POLICY_VIOLATION = 1008
GOING_AWAY = 1001


def parse_handshake_token(raw: Any) -> Optional[str]:
    """
    Pull the token out of a handshake frame.

    Args:
        raw: Text of the first frame

    Returns:
        Token string, or None if the frame carries none
    """
    if not isinstance(raw, str) or not raw:
        return None
    try:
        frame = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(frame, dict):
        return None
    auth = frame.get("auth")
    if not isinstance(auth, dict):
        return None
    token = auth.get("token")
    return token if isinstance(token, str) and token else None


async def _receive_frame_text(websocket: WebSocket) -> Optional[str]:
    """Next client frame as text; binary frames come back as None."""
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(code=message.get("code", 1000), reason=message.get("reason"))
    return message.get("text")


class EventBroadcaster:
    """
    Delivers completion events to the live connections of one identity.

    Emitting before initialize() is a logged no-op, and emit never raises,
    so job processing is unaffected by delivery problems.
    """

    def __init__(self, handshake_timeout: Optional[float] = None):
        settings = get_settings()
        self.handshake_timeout = (
            handshake_timeout if handshake_timeout is not None else settings.ws_handshake_timeout_seconds
        )
        self._manager: Optional[WebSocketManager] = None

    @property
    def is_initialized(self) -> bool:
        return self._manager is not None

    @property
    def manager(self) -> Optional[WebSocketManager]:
        return self._manager

    def initialize(self, manager: Optional[WebSocketManager] = None) -> WebSocketManager:
        """
        Attach the broadcaster to a connection registry.

        Calling again returns the existing registry.

        Args:
            manager: Registry to use; a new one is created if omitted

        Returns:
            The active WebSocketManager
        """
        if self._manager is None:
            self._manager = manager or WebSocketManager()
            logger.info("Event broadcaster initialized")
        return self._manager

    async def authenticate(self, websocket: WebSocket) -> Optional[Connection]:
        """
        Run the handshake on an incoming socket.

        Accepts the socket, verifies the identity token and joins the
        connection to room "user:<owner_id>".

        Returns:
            The Connection, or None if the socket was rejected or went away
        """
        if self._manager is None:
            await websocket.close(code=POLICY_VIOLATION, reason="Event broadcaster not available")
            return None

        await websocket.accept()

        try:
            raw = await asyncio.wait_for(_receive_frame_text(websocket), timeout=self.handshake_timeout)
            token = parse_handshake_token(raw)
            owner_id = verify_identity_token(token)
        except asyncio.TimeoutError:
            await self._reject(websocket, AuthenticationRequiredError("Handshake timed out"))
            return None
        except AuthenticationError as e:
            await self._reject(websocket, e)
            return None
        except WebSocketDisconnect:
            logger.info("WebSocket closed during handshake")
            return None

        connection = await self._manager.add_connection(owner_id, websocket)
        try:
            await websocket.send_json({
                "type": "connection_established",
                "message": "Connected to notifications service",
                "room": connection.room,
                "connection_id": connection.connection_id,
            })
        except Exception as e:
            logger.warning(f"WebSocket {connection.connection_id} went away before confirmation: {e}")
            await self._manager.remove_connection(connection)
            return None
        return connection

    async def disconnect(self, connection: Connection) -> None:
        if self._manager is not None:
            await self._manager.remove_connection(connection)

    async def emit(self, owner_id: str, event: CompletionEvent) -> int:
        """
        Send a completion event to every live connection of one identity.

        Args:
            owner_id: Identity whose room receives the event
            event: SuccessEvent or FailureEvent

        Returns:
            Number of connections reached (0 if none, or if not initialized)
        """
        if self._manager is None:
            logger.warning(f"Event broadcaster not initialized; dropping event for asset {event.asset_id}")
            return 0

        try:
            sent = await self._manager.send_to_room(room_for(owner_id), event.to_payload())
        except Exception as e:
            logger.error(f"Failed to emit event for asset {event.asset_id}: {e}", exc_info=True)
            return 0

        logger.info(f"Emitted {event.status} event for asset {event.asset_id} to {sent} connection(s)")
        return sent

    async def shutdown(self) -> None:
        """Close every live connection and detach from the registry."""
        if self._manager is None:
            return
        manager, self._manager = self._manager, None
        closed = await manager.close_all(code=GOING_AWAY, reason="Server shutting down")
        logger.info(f"Event broadcaster shut down ({closed} connection(s) closed)")

    async def _reject(self, websocket: WebSocket, error: AuthenticationError) -> None:
        logger.warning(f"Rejected WebSocket connection: {error.message}")
        try:
            await websocket.send_json({"type": "connect_error", "message": error.reason})
            await websocket.close(code=POLICY_VIOLATION, reason=error.reason)
        except Exception as e:
            logger.debug(f"Error closing rejected WebSocket: {e}")
