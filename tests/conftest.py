"""Pytest bootstrap configuration.

Shared fakes for the relay tests: a socket that records what it is sent
and a socket whose sends always fail.
"""
import os

# Keep the default (retain empty rooms) regardless of a developer's .env
os.environ.setdefault("EVICT_EMPTY_ROOMS", "false")

import pytest

from relay.services.connection_manager import ClientIdGenerator, ConnectionSession
from relay.services.room_manager import Space
from relay.services.stats import RelayStats


class FakeSocket:
    def __init__(self) -> None:
        self.sent = []

    async def send_text(self, payload: str) -> None:
        self.sent.append(payload)


class BrokenSocket:
    async def send_text(self, payload: str) -> None:
        raise ConnectionResetError("peer went away")


@pytest.fixture
def stats():
    return RelayStats()


@pytest.fixture
def space(stats):
    return Space(stats=stats)


@pytest.fixture
def client_ids():
    return ClientIdGenerator()


@pytest.fixture
def make_session(space, client_ids, stats):
    def _make(socket=None):
        return ConnectionSession(socket or FakeSocket(), space, client_ids, stats=stats)

    return _make
