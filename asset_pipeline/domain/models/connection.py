# Standard library imports
from dataclasses import dataclass
from datetime import datetime

ROOM_PREFIX = "user:"


def room_for(owner_id: str) -> str:
    """Name of the room holding every live connection of one identity."""
    return f"{ROOM_PREFIX}{owner_id}"


@dataclass(frozen=True)
class Connection:
    """An authenticated live connection. Exists only in memory."""
    connection_id: str
    owner_id: str
    joined_at: datetime

    @property
    def room(self) -> str:
        return room_for(self.owner_id)
