from .websocket_manager import WebSocketManager
from .event_broadcaster import EventBroadcaster, parse_handshake_token

__all__ = ["WebSocketManager", "EventBroadcaster", "parse_handshake_token"]
