import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from logging_config import get_logger
from registry import Connection, ConnectionRegistry
from schemas.messages import (
    ChatRelayMessage,
    MatchFoundMessage,
    PartnerLeftMessage,
    RoomsCountMessage,
    ServerMessage,
    SignalRelayMessage,
)

logger = get_logger(__name__)


@dataclass
class Room:
    room_id: str
    members: Tuple[Connection, Connection]

    def peer_of(self, connection: Connection) -> Optional[Connection]:
        a, b = self.members
        if a is connection:
            return b
        if b is connection:
            return a
        return None


class RoomManager:
    """Owns the pair registry and every connection's room back-reference.

    A room is stored iff both members' `room_id` point at it.
    """

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self.rooms: Dict[str, Room] = {}

    def create_room(self, a: Connection, b: Connection) -> str:
        room_id = uuid.uuid4().hex
        self.rooms[room_id] = Room(room_id, (a, b))
        a.room_id = room_id
        b.room_id = room_id
        logger.info(f"Room {room_id} created for {a.id} and {b.id} (rooms: {len(self.rooms)})")

        a.send(MatchFoundMessage(room_id=room_id, partner_id=b.id))
        b.send(MatchFoundMessage(room_id=room_id, partner_id=a.id))
        self.broadcast_rooms_count()
        return room_id

    def get_room(self, room_id: Optional[str]) -> Optional[Room]:
        if room_id is None:
            return None
        return self.rooms.get(room_id)

    def peer_of(self, connection: Connection) -> Optional[Connection]:
        room = self.get_room(connection.room_id)
        if not room:
            return None
        return room.peer_of(connection)

    def relay_signal(self, sender: Connection, payload: Any) -> bool:
        return self._relay(sender, SignalRelayMessage(from_id=sender.id, payload=payload))

    def relay_chat(self, sender: Connection, text: str) -> bool:
        return self._relay(sender, ChatRelayMessage(from_id=sender.id, text=text))

    def _relay(self, sender: Connection, message: ServerMessage) -> bool:
        peer = self.peer_of(sender)
        if peer is None:
            logger.debug(f"No room for {message.type} from {sender.id}, dropping")
            return False
        return peer.send(message)

    def leave_room(self, connection: Connection) -> bool:
        """Tear down the connection's room. Returns False if it had none."""
        room_id = connection.room_id
        if room_id is None:
            return False
        room = self.rooms.get(room_id)
        if room:
            peer = room.peer_of(connection)
            if peer is not None:
                peer.send(PartnerLeftMessage())
                peer.room_id = None
            del self.rooms[room_id]
        connection.room_id = None
        if not room:
            return False

        logger.info(f"Connection {connection.id} left room {room_id} (rooms: {len(self.rooms)})")
        self.broadcast_rooms_count()
        return True

    def broadcast_rooms_count(self):
        self.registry.broadcast(RoomsCountMessage(rooms_count=self.rooms_count))

    @property
    def rooms_count(self) -> int:
        return len(self.rooms)

    def __len__(self):
        return len(self.rooms)

    def __contains__(self, room_id: str):
        return room_id in self.rooms
