from dataclasses import dataclass
from typing import List, Optional, Tuple

from constants import WILDCARD
from logging_config import get_logger
from registry import Connection
from schemas.messages import Preferences

logger = get_logger(__name__)

PREFERENCE_AXES = ("language", "gender", "country")


def compatible(p1: Preferences, p2: Preferences) -> bool:
    """Every axis must be a wildcard on either side or equal on both."""
    for axis in PREFERENCE_AXES:
        a = getattr(p1, axis)
        b = getattr(p2, axis)
        if a != WILDCARD and b != WILDCARD and a != b:
            return False
    return True


@dataclass(frozen=True)
class WaitingEntry:
    connection: Connection
    prefs: Preferences

    @property
    def connection_id(self) -> str:
        return self.connection.id


class WaitingQueue:
    """Ordered waiters. A connection id is present at most once."""

    def __init__(self):
        self._entries: List[WaitingEntry] = []

    def enqueue(self, connection: Connection, prefs: Preferences) -> WaitingEntry:
        self.dequeue(connection.id)
        entry = WaitingEntry(connection, prefs)
        self._entries.append(entry)
        logger.debug(f"Connection {connection.id} queued with {prefs} (waiting: {len(self._entries)})")
        return entry

    def dequeue(self, connection_id: str) -> bool:
        for index, entry in enumerate(self._entries):
            if entry.connection_id == connection_id:
                del self._entries[index]
                logger.debug(f"Connection {connection_id} removed from queue (waiting: {len(self._entries)})")
                return True
        return False

    def find_and_remove_compatible_pair(self) -> Optional[Tuple[WaitingEntry, WaitingEntry]]:
        # First waiter that has any compatible later waiter wins, paired with the
        # earliest such waiter. Quadratic in queue length.
        entries = self._entries
        for i in range(len(entries)):
            for j in range(i + 1, len(entries)):
                if compatible(entries[i].prefs, entries[j].prefs):
                    first, second = entries[i], entries[j]
                    del entries[j]
                    del entries[i]
                    return first, second
        return None

    def entries(self) -> List[WaitingEntry]:
        return list(self._entries)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, connection_id: str):
        return any(entry.connection_id == connection_id for entry in self._entries)
