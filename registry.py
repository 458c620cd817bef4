import asyncio
import uuid
from typing import Dict, Optional

from constants import OUTBOX_SIZE
from logging_config import get_logger
from schemas.messages import ServerMessage

logger = get_logger(__name__)


def new_connection_id() -> str:
    return str(uuid.uuid4())


class Connection:
    """One live client link.

    Outbound messages are queued on a bounded outbox that the transport drains.
    `room_id` is written only by the RoomManager.
    """

    def __init__(self, connection_id: Optional[str] = None, outbox_size: int = OUTBOX_SIZE):
        self.id = connection_id or new_connection_id()
        self.room_id: Optional[str] = None
        self.outbox: asyncio.Queue = asyncio.Queue(maxsize=outbox_size)
        self.open = True

    def writable(self) -> bool:
        return self.open and not self.outbox.full()

    def send(self, message: ServerMessage) -> bool:
        """Queue a message for delivery. Returns False if it was dropped."""
        if not self.writable():
            logger.debug(f"Dropping {message.type} for connection {self.id}: not writable")
            return False
        self.outbox.put_nowait(message.to_wire())
        return True

    def close(self):
        self.open = False

    def __repr__(self):
        return f"Connection({self.id!r}, room_id={self.room_id!r})"


class ConnectionRegistry:
    def __init__(self):
        self.connections: Dict[str, Connection] = {}

    def add(self, connection: Connection):
        self.connections[connection.id] = connection
        logger.debug(f"Registered connection {connection.id} (online: {len(self.connections)})")

    def remove(self, connection: Connection):
        removed = self.connections.pop(connection.id, None)
        if removed:
            logger.debug(f"Unregistered connection {connection.id} (online: {len(self.connections)})")

    def broadcast(self, message: ServerMessage) -> int:
        """Send to every registered connection. Returns how many accepted it."""
        delivered = 0
        for connection in list(self.connections.values()):
            if connection.send(message):
                delivered += 1
        logger.debug(f"Broadcasted {message.type} to {delivered}/{len(self.connections)} connections")
        return delivered

    @property
    def online_count(self) -> int:
        return len(self.connections)

    def __len__(self):
        return len(self.connections)

    def __contains__(self, connection_id: str):
        return connection_id in self.connections
