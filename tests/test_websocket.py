"""End-to-end tests through the FastAPI WebSocket endpoint."""

import json
import logging
import time

import pytest
from fastapi.testclient import TestClient

from relay.api.websocket import websocket_endpoint
from relay.core import state
from relay.main import app
from relay.services.room_manager import Space
from relay.services.stats import RelayStats


@pytest.fixture
def client(monkeypatch):
    stats = RelayStats()
    monkeypatch.setattr(state, "stats", stats)
    monkeypatch.setattr(state, "space", Space(stats=stats))
    with TestClient(app) as c:
        yield c


def wait_for(condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def join(roomid=None):
    message = {"request": "joinroom"}
    if roomid is not None:
        message["roomid"] = roomid
    return json.dumps(message)


def test_root_and_health(client):
    assert client.get("/").json()["endpoints"]["health"] == "/health"

    body = client.get("/health").json()
    assert body == {
        "status": "healthy",
        "connections": 0,
        "rooms": 0,
        "active_rooms_with_members": 0,
    }


def test_lobby_broadcast_reaches_peer_only(client):
    with client.websocket_connect("/") as a, client.websocket_connect("/") as b:
        a.send_text(join("lobby"))
        assert wait_for(lambda: state.space.rooms_info().get("lobby") == 1)
        b.send_text(join("lobby"))
        assert wait_for(lambda: state.space.rooms_info().get("lobby") == 2)

        # a also received b's join frame
        assert a.receive_text() == join("lobby")

        a.send_text("hello")
        assert b.receive_text() == "hello"

        b.send_text("hi back")
        assert a.receive_text() == "hi back"

    assert wait_for(lambda: state.space.rooms_info().get("lobby") == 0)


def test_binary_frames_are_relayed_as_text(client):
    with client.websocket_connect("/") as a, client.websocket_connect("/") as b:
        a.send_text(join("r1"))
        assert wait_for(lambda: state.space.rooms_info().get("r1") == 1)
        b.send_text(join("r1"))
        assert wait_for(lambda: state.space.rooms_info().get("r1") == 2)
        assert a.receive_text() == join("r1")

        a.send_bytes(b"plain message")
        assert b.receive_text() == "plain message"


def test_disconnect_releases_membership_and_metrics(client):
    with client.websocket_connect("/") as a:
        a.send_text(join("r1"))
        assert wait_for(lambda: state.space.rooms_info().get("r1") == 1)
        assert client.get("/health").json()["connections"] == 1

    assert wait_for(lambda: state.space.rooms_info().get("r1") == 0)
    assert wait_for(lambda: state.stats.open_connections == 0)

    metrics = client.get("/metrics").json()
    assert metrics["connections_opened"] == 1
    assert metrics["connections_closed"] == 1
    assert metrics["frames_received"] == 1
    assert metrics["frame_faults"] == 0
    assert metrics["rooms"] == {"r1": 0}


class DroppingWebSocket:
    """Accepts, delivers the given frames, then fails like a reset TCP connection."""

    def __init__(self, frames):
        self._frames = list(frames)
        self.sent = []

    async def accept(self):
        pass

    async def receive(self):
        if self._frames:
            return {"type": "websocket.receive", "text": self._frames.pop(0)}
        raise ConnectionResetError("connection reset by peer")

    async def send_text(self, payload):
        self.sent.append(payload)

    async def close(self, code=1000):
        pass


@pytest.mark.asyncio
async def test_abrupt_disconnect_releases_membership(monkeypatch, caplog):
    stats = RelayStats()
    monkeypatch.setattr(state, "stats", stats)
    monkeypatch.setattr(state, "space", Space(stats=stats))

    with caplog.at_level(logging.ERROR, logger="relay.api.websocket"):
        await websocket_endpoint(DroppingWebSocket([join("r1")]))

    assert state.space.rooms_info() == {"r1": 0}
    assert stats.get("lifecycle_faults") == 1
    assert stats.get("connections_closed") == 1
    assert stats.open_connections == 0

    errors = [r for r in caplog.records if r.name == "relay.api.websocket" and r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].exc_info is not None
