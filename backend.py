import json
from enum import Enum
from typing import Any, Optional, Union

from pydantic import ValidationError

from logging_config import get_logger
from matchmaking import WaitingQueue
from registry import Connection, ConnectionRegistry
from room_manager import RoomManager
from schemas.messages import (
    ChatMessage,
    JoinQueueMessage,
    LeaveQueueMessage,
    NextMessage,
    OnlineCountMessage,
    Preferences,
    RoomsCountMessage,
    SignalMessage,
    client_message_adapter,
)

logger = get_logger(__name__)


class ConnectionState(str, Enum):
    IDLE = "idle"
    QUEUED = "queued"
    PAIRED = "paired"


class MatchmakingBackend:
    """Single owner of the registry, waiting queue and rooms.

    Every method runs to completion without awaiting, so each inbound event is
    applied atomically with respect to every other one on the event loop.
    """

    def __init__(self):
        self.registry = ConnectionRegistry()
        self.queue = WaitingQueue()
        self.rooms = RoomManager(self.registry)
        logger.info("Initializing MatchmakingBackend")

    def connect(self, connection: Connection):
        self.registry.add(connection)
        logger.info(f"Connection {connection.id} opened (online: {self.registry.online_count})")
        self.broadcast_online_count()
        connection.send(RoomsCountMessage(rooms_count=self.rooms.rooms_count))

    def disconnect(self, connection: Connection):
        if connection.id not in self.registry:
            return
        self.registry.remove(connection)
        self.queue.dequeue(connection.id)
        self.rooms.leave_room(connection)
        logger.info(f"Connection {connection.id} closed (online: {self.registry.online_count})")
        self.broadcast_online_count()

    def state(self, connection: Connection) -> ConnectionState:
        if connection.room_id is not None:
            return ConnectionState.PAIRED
        if connection.id in self.queue:
            return ConnectionState.QUEUED
        return ConnectionState.IDLE

    def handle_message(self, connection: Connection, data: Union[str, bytes]):
        """Parse one inbound frame and dispatch it. Malformed frames are ignored."""
        try:
            raw = json.loads(data)
        except (ValueError, RecursionError):
            logger.debug(f"Ignoring unparseable frame from connection {connection.id}")
            return
        try:
            message = client_message_adapter.validate_python(raw)
        except ValidationError as e:
            logger.debug(f"Ignoring invalid message from connection {connection.id}: {e.error_count()} errors")
            return

        if isinstance(message, JoinQueueMessage):
            self.join_queue(connection, message.prefs)
        elif isinstance(message, LeaveQueueMessage):
            self.leave_queue(connection)
        elif isinstance(message, NextMessage):
            self.next(connection, message.prefs)
        elif isinstance(message, SignalMessage):
            self.signal(connection, message.payload)
        elif isinstance(message, ChatMessage):
            self.chat(connection, message.text)

    def join_queue(self, connection: Connection, prefs: Optional[Preferences] = None):
        # Joining while paired abandons the current room first so the peer is told now
        if connection.room_id is not None:
            self.rooms.leave_room(connection)
        self._enqueue_and_match(connection, prefs)

    def leave_queue(self, connection: Connection):
        self.queue.dequeue(connection.id)

    def next(self, connection: Connection, prefs: Optional[Preferences] = None):
        self.rooms.leave_room(connection)
        self._enqueue_and_match(connection, prefs)

    def signal(self, connection: Connection, payload: Any):
        self.rooms.relay_signal(connection, payload)

    def chat(self, connection: Connection, text: str):
        self.rooms.relay_chat(connection, text)

    def _enqueue_and_match(self, connection: Connection, prefs: Optional[Preferences]):
        if connection.id not in self.registry:
            return
        self.queue.enqueue(connection, prefs or Preferences())
        pair = self.queue.find_and_remove_compatible_pair()
        if pair:
            first, second = pair
            self.rooms.create_room(first.connection, second.connection)

    def broadcast_online_count(self):
        self.registry.broadcast(OnlineCountMessage(count=self.registry.online_count))

    def stats(self) -> dict:
        return {
            "online_count": self.registry.online_count,
            "rooms_count": self.rooms.rooms_count,
            "waiting_count": len(self.queue),
        }


matchmaking_backend = MatchmakingBackend()
