import pytest

fastapi = pytest.importorskip("fastapi")
pytest.importorskip("httpx")
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from rumbleroyale.backend.api import create_app
from rumbleroyale.backend.config import RoyaleSettings
from rumbleroyale.backend.narrative import EchoNarrator


def make_client(admin_key: str | None = None) -> TestClient:
    settings = RoyaleSettings(countdown_seconds=180, cooldown_seconds=60, admin_key=admin_key)
    return TestClient(create_app(settings=settings, narrator=EchoNarrator()))


def receive_until(websocket, message_type: str, limit: int = 20) -> dict:
    for _ in range(limit):
        message = websocket.receive_json()
        if message["type"] == message_type:
            return message
    raise AssertionError(f"no {message_type} message received")


def test_root_and_health() -> None:
    with make_client() as client:
        assert client.get("/").json() == {"message": "RumbleRoyale API", "status": "ok"}
        assert client.get("/health").json()["status"] == "healthy"


def test_websocket_sends_welcome_and_snapshot_after_connect() -> None:
    with make_client() as client:
        with client.websocket_connect("/ws") as websocket:
            welcome = websocket.receive_json()
            snapshot = websocket.receive_json()
            update = receive_until(websocket, "playersUpdate")

    assert welcome["type"] == "welcome"
    assert welcome["admin"] is False
    assert snapshot["type"] == "playersUpdate"
    assert snapshot["state"] == "WAITING"
    assert update["players"] == [{"identity": welcome["identity"], "name": None, "enrolled": False}]


def test_short_name_is_reported_to_sender_only() -> None:
    with make_client() as client:
        with client.websocket_connect("/ws") as websocket:
            receive_until(websocket, "playersUpdate")
            receive_until(websocket, "playersUpdate")
            websocket.send_json({"type": "enroll", "name": "Al"})
            error = receive_until(websocket, "error")

    assert error["code"] == "NAME_TOO_SHORT"


def test_malformed_message_is_rejected() -> None:
    with make_client() as client:
        with client.websocket_connect("/ws") as websocket:
            websocket.send_text("not json")
            error = receive_until(websocket, "error")

    assert error["code"] == "INVALID_MESSAGE"


def test_two_players_enrolling_start_countdown() -> None:
    with make_client() as client:
        with client.websocket_connect("/ws") as first:
            first_id = first.receive_json()["identity"]
            with client.websocket_connect("/ws") as second:
                second.receive_json()
                first.send_json({"type": "enroll", "name": "Alice"})
                enrolled = receive_until(first, "playersUpdate")
                while not any(player["enrolled"] for player in enrolled["players"]):
                    enrolled = receive_until(first, "playersUpdate")

                second.send_json({"type": "enroll", "name": "alice"})
                taken = receive_until(second, "error")

                second.send_json({"type": "enroll", "name": "Bob"})
                countdown = receive_until(second, "countdown")
                state = client.get("/api/state").json()

    assert taken["code"] == "NAME_TAKEN"
    assert countdown["remainingSeconds"] == 180
    assert state["state"] == "COUNTDOWN"
    assert {player["identity"] for player in enrolled["players"] if player["enrolled"]} == {first_id}


def test_admin_endpoints_drive_round_state() -> None:
    with make_client() as client:
        forced = client.post("/admin/force-end")
        assert forced.status_code == 200
        assert forced.json() == {"success": True, "message": "Round ended successfully"}
        assert client.get("/api/state").json()["state"] == "GAME_OVER"

        reset = client.post("/admin/reset")
        assert reset.json()["success"] is True
        assert client.get("/api/state").json()["state"] == "WAITING"

        kicked = client.post("/admin/kick-all")
        assert kicked.json()["success"] is True
        assert client.get("/api/state").json()["players"] == []


def test_start_round_reports_failure_without_countdown() -> None:
    with make_client() as client:
        response = client.post("/admin/start-round")

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "No active round to start"}


def test_admin_key_is_required_when_configured() -> None:
    with make_client(admin_key="secret") as client:
        denied = client.post("/admin/force-end")
        allowed = client.post("/admin/force-end", headers={"X-Admin-Key": "secret"})

    assert denied.status_code == 403
    assert allowed.status_code == 200


def test_admin_websocket_receives_snapshot_and_stats() -> None:
    with make_client(admin_key="secret") as client:
        with client.websocket_connect("/ws/admin?key=secret") as websocket:
            welcome = websocket.receive_json()
            snapshot = websocket.receive_json()
            stats = websocket.receive_json()

    assert welcome["admin"] is True
    assert snapshot["type"] == "playersUpdate"
    assert stats["type"] == "playerStatsUpdate"
    assert len(stats["hourlyStats"]) == 24


def test_admin_websocket_rejects_wrong_key() -> None:
    with make_client(admin_key="secret") as client:
        with pytest.raises(WebSocketDisconnect) as rejected:
            with client.websocket_connect("/ws/admin?key=wrong"):
                pass

    assert rejected.value.code == 1008
