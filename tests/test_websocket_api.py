"""End-to-end tests over the real FastAPI WebSocket route and health API."""

import time
import uuid

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from feedboard.config import Settings
from feedboard.main import create_app


def test_connect_receives_initial_state(client):
    with client.websocket_connect("/ws") as ws:
        msg = ws.receive_json()
    assert msg["action"] == "initial-state"
    assert uuid.UUID(msg["payload"]["id"])
    assert msg["payload"]["username"] is None
    assert msg["payload"]["feedback"] == []


def test_feedback_and_votes_reach_every_client(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        alice_id = alice.receive_json()["payload"]["id"]
        bob_id = bob.receive_json()["payload"]["id"]

        alice.send_json({"action": "set-username", "payload": "Alice"})
        alice.send_json({"action": "add-feedback",
                         "payload": {"type": "happy", "content": "nice pacing"}})

        added_a = alice.receive_json()
        added_b = bob.receive_json()
        assert added_a == added_b
        assert added_a["action"] == "feedback-added"
        assert added_a["payload"]["username"] == "Alice"
        assert added_a["payload"]["clientId"] == alice_id

        item_id = added_a["payload"]["id"]
        bob.send_json({"action": "add-vote", "payload": item_id})
        bob.send_json({"action": "add-vote", "payload": item_id})
        bob.send_json({"action": "add-feedback", "payload": {"type": "sad", "content": "marker"}})

        # The repeat vote produced nothing, so the next frame is the marker
        for ws in (alice, bob):
            assert ws.receive_json() == {
                "action": "vote-added",
                "payload": {"id": item_id, "votes": [bob_id]},
            }
            assert ws.receive_json()["payload"]["content"] == "marker"


def test_reconnect_with_id_restores_name_and_feedback(client):
    with client.websocket_connect("/ws") as ws:
        pid = ws.receive_json()["payload"]["id"]
        ws.send_json({"action": "set-username", "payload": "Ada"})
        ws.send_json({"action": "add-feedback", "payload": {"type": "sad", "content": "loud room"}})
        ws.receive_json()

    with client.websocket_connect(f"/ws?id={pid}") as ws:
        state = ws.receive_json()["payload"]

    assert state["id"] == pid
    assert state["username"] == "Ada"
    assert [f["content"] for f in state["feedback"]] == ["loud room"]


def test_malformed_frames_do_not_drop_the_connection(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_text("{{{ not json")
        ws.send_bytes(b"\x00\x01")
        ws.send_json({"action": "unknown-thing", "payload": 1})
        ws.send_json({"action": "add-feedback", "payload": {"content": "still here"}})
        msg = ws.receive_json()
    assert msg["action"] == "feedback-added"
    assert msg["payload"]["type"] == "happy"


def test_health_reports_state_and_counters(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_text("garbage")
        ws.send_json({"action": "add-feedback", "payload": {"content": "hi"}})
        ws.receive_json()

        r = client.get("/api/v1/health")

    assert r.status_code == 200
    data = r.json()
    assert data["server"] == "ok"
    assert "version" in data
    assert data["feedback"] == 1
    assert data["participants"] == 1
    assert data["stats"]["malformed_dropped"] == 1
    assert data["stats"]["broadcasts"] == 1


@pytest.mark.asyncio
async def test_health_over_asgi_transport(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/api/v1/health")
    assert r.status_code == 200
    assert r.json()["sessions"] == 0


def test_quiet_client_survives_many_sweeps():
    """A client speaking only board actions is never reaped or sent liveness frames."""
    with TestClient(create_app(Settings(ping_interval=0.05))) as client:
        with client.websocket_connect("/ws") as ws:
            assert ws.receive_json()["action"] == "initial-state"
            ws.send_json({"action": "set-username", "payload": "Quiet"})

            time.sleep(0.4)

            ws.send_json({"action": "add-feedback", "payload": {"content": "still here"}})
            msg = ws.receive_json()

            health = client.get("/api/v1/health").json()

    assert msg["action"] == "feedback-added"
    assert msg["payload"]["username"] == "Quiet"
    assert health["sessions"] == 1
    assert health["stats"]["probes_sent"] > 0
    assert health["stats"]["sessions_reaped"] == 0
