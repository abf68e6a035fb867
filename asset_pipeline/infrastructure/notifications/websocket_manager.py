"""Room registry for live WebSocket connections"""

# Standard library imports
import json
import logging
import uuid
from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, List, Optional

# External package imports
from fastapi import WebSocket

# Local application imports
from ...domain.models.connection import Connection, room_for
from ...utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class _Member:
    connection: Connection
    websocket: WebSocket


class WebSocketManager:
    """
    Tracks authenticated connections grouped into per-identity rooms.

    Every connection of identity X sits in room "user:X" and nowhere else,
    so delivering to a room can never reach another identity's sockets.
    """

    def __init__(self):
        # room -> connection_id -> member
        self._rooms: Dict[str, Dict[str, _Member]] = {}
        self._lock = Lock()
        logger.info("WebSocketManager initialized")

    async def add_connection(self, owner_id: str, websocket: WebSocket) -> Connection:
        """
        Register an authenticated socket in its identity's room.

        Args:
            owner_id: Identity the socket authenticated as
            websocket: Accepted WebSocket

        Returns:
            The Connection record
        """
        connection = Connection(
            connection_id=uuid.uuid4().hex,
            owner_id=owner_id,
            joined_at=utc_now(),
        )
        with self._lock:
            self._rooms.setdefault(connection.room, {})[connection.connection_id] = _Member(
                connection=connection, websocket=websocket
            )

        logger.info(
            f"Connection {connection.connection_id} joined {connection.room}. "
            f"Total connections: {self.get_total_connections()}"
        )
        return connection

    async def remove_connection(self, connection: Connection) -> None:
        """Remove a connection from its room; empty rooms are dropped."""
        with self._lock:
            members = self._rooms.get(connection.room)
            if members is not None:
                members.pop(connection.connection_id, None)
                if not members:
                    del self._rooms[connection.room]

        logger.info(
            f"Connection {connection.connection_id} left {connection.room}. "
            f"Total connections: {self.get_total_connections()}"
        )

    async def send_to_room(self, room: str, message: Dict[str, Any]) -> int:
        """
        Send a message to every connection in a room.

        Sockets that fail to receive are treated as gone and removed.

        Returns:
            Number of connections the message was delivered to
        """
        with self._lock:
            members = list(self._rooms.get(room, {}).values())

        if not members:
            logger.debug(f"No connections in room {room}")
            return 0

        try:
            message_json = json.dumps(message)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize message to JSON: {e}")
            return 0

        sent_count = 0
        dead: List[_Member] = []
        for member in members:
            try:
                await member.websocket.send_text(message_json)
                sent_count += 1
            except Exception as e:
                logger.warning(
                    f"Failed to send to connection {member.connection.connection_id} in {room}: {e}"
                )
                dead.append(member)

        for member in dead:
            await self.remove_connection(member.connection)

        logger.debug(f"Sent message to {sent_count}/{len(members)} connections in {room}")
        return sent_count

    async def send_to_owner(self, owner_id: str, message: Dict[str, Any]) -> int:
        return await self.send_to_room(room_for(owner_id), message)

    async def close_all(self, code: int = 1001, reason: Optional[str] = None) -> int:
        """
        Close every registered socket and empty all rooms.

        Returns:
            Number of sockets that were registered
        """
        with self._lock:
            members = [member for room in self._rooms.values() for member in room.values()]
            self._rooms.clear()

        for member in members:
            try:
                await member.websocket.close(code=code, reason=reason)
            except Exception as e:
                logger.debug(f"Error closing connection {member.connection.connection_id}: {e}")

        if members:
            logger.info(f"Closed {len(members)} WebSocket connections")
        return len(members)

    def get_room_connections(self, room: str) -> List[Connection]:
        with self._lock:
            return [member.connection for member in self._rooms.get(room, {}).values()]

    def get_connected_owners(self) -> List[str]:
        """
        Get identities that currently have at least one connection.

        Returns:
            List of owner IDs
        """
        with self._lock:
            return [
                next(iter(members.values())).connection.owner_id
                for members in self._rooms.values()
                if members
            ]

    def get_total_connections(self) -> int:
        with self._lock:
            return sum(len(members) for members in self._rooms.values())

    def has_connections(self, owner_id: str) -> bool:
        """
        Check if an identity has any active connections.

        Args:
            owner_id: Identity to check

        Returns:
            True if the identity's room is non-empty
        """
        with self._lock:
            return bool(self._rooms.get(room_for(owner_id)))
