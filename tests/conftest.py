import pytest
from fastapi.testclient import TestClient

import backend
from backend import MatchmakingBackend
from registry import Connection


def drain(connection: Connection) -> list:
    """Pop every queued outbound message off a connection."""
    messages = []
    while not connection.outbox.empty():
        messages.append(connection.outbox.get_nowait())
    return messages


def of_type(messages: list, message_type: str) -> list:
    return [m for m in messages if m["type"] == message_type]


@pytest.fixture
def matchmaking_backend(monkeypatch):
    fresh = MatchmakingBackend()
    monkeypatch.setattr(backend, "matchmaking_backend", fresh)
    return fresh


@pytest.fixture
def connect(matchmaking_backend):
    """Register a new connection and discard its greeting messages."""
    def _connect(connection_id=None, outbox_size=64):
        connection = Connection(connection_id, outbox_size=outbox_size)
        matchmaking_backend.connect(connection)
        drain(connection)
        return connection
    return _connect


@pytest.fixture
def client(matchmaking_backend):
    from app import app
    with TestClient(app) as test_client:
        yield test_client
