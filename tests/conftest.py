"""Test fixtures — an isolated BoardContext and in-memory connections.

Learn: The core never touches a real WebSocket, only the Connection
protocol. FakeConnection records every frame it is sent (decoded back
to dicts) so tests can assert on exactly what a participant saw.
Each test gets a brand new context, so there is no cross-test state.
"""

import json

import pytest
from fastapi.testclient import TestClient

from feedboard.config import Settings
from feedboard.context import BoardContext
from feedboard.main import create_app
from feedboard.realtime.connection import ConnectionClosedError


class FakeConnection:
    """In-memory stand-in for a live WebSocket."""

    def __init__(self, open: bool = True, responsive: bool = False):
        self.open = open
        # Whether the transport keepalive vouches for the peer
        self.responsive = responsive
        self.sent: list[dict] = []
        self.pings = 0
        self.terminated = False

    @property
    def is_open(self) -> bool:
        return self.open and not self.terminated

    async def send_text(self, data: str) -> None:
        if not self.is_open:
            raise ConnectionClosedError("closed")
        self.sent.append(json.loads(data))

    async def ping(self) -> bool:
        if not self.is_open:
            raise ConnectionClosedError("closed")
        self.pings += 1
        return self.responsive

    async def terminate(self) -> None:
        self.terminated = True

    def actions(self) -> list[str]:
        return [m["action"] for m in self.sent]

    def of(self, action: str) -> list[dict]:
        return [m["payload"] for m in self.sent if m["action"] == action]


@pytest.fixture()
def ctx():
    """Fresh shared state per test."""
    return BoardContext(ping_interval=0.01)


@pytest.fixture()
def make_connection():
    def _make(open: bool = True, responsive: bool = False) -> FakeConnection:
        return FakeConnection(open=open, responsive=responsive)
    return _make


@pytest.fixture()
def app():
    """App with a long sweep interval so the loop never fires mid-test."""
    return create_app(Settings(ping_interval=60.0))


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c
