from rumbleroyale.backend.models import Participant, RoundState, Winner
from rumbleroyale.backend.state import (
    admin_log_event,
    build_players_update,
    countdown_event,
    round_ended_event,
)


def test_build_players_update_lists_players_in_order() -> None:
    players = (Participant("id-1", "Alice"), Participant("id-2"))

    update = build_players_update(players, RoundState.COUNTDOWN, None, 3)

    assert update == {
        "type": "playersUpdate",
        "players": [
            {"identity": "id-1", "name": "Alice", "enrolled": True},
            {"identity": "id-2", "name": None, "enrolled": False},
        ],
        "state": "COUNTDOWN",
        "winner": None,
        "roundSequence": 3,
    }


def test_round_ended_event_serialises_winner() -> None:
    event = round_ended_event("done", Winner("id-1", "Alice"))

    assert event["winner"] == {"identity": "id-1", "name": "Alice"}
    assert round_ended_event("forced", None)["winner"] is None


def test_countdown_and_admin_log_shapes() -> None:
    assert countdown_event(42) == {"type": "countdown", "remainingSeconds": 42}

    log = admin_log_event("GAME", "Round 1 started")

    assert log["category"] == "GAME"
    assert log["message"] == "Round 1 started"
    assert log["timestamp"].endswith("+00:00")
