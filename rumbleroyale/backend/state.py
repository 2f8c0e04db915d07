"""Builders for the outbound messages broadcast to observers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable

from .models import Participant, RoundState, Winner


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _winner_dict(winner: Winner | None) -> dict[str, Any] | None:
    return winner.to_dict() if winner is not None else None


def build_players_update(
    players: Iterable[Participant],
    state: RoundState,
    winner: Winner | None,
    round_sequence: int,
) -> dict[str, Any]:
    """Full state snapshot sent whenever the registry or round state changes."""
    return {
        "type": "playersUpdate",
        "players": [player.to_dict() for player in players],
        "state": state.value,
        "winner": _winner_dict(winner),
        "roundSequence": round_sequence,
    }


def countdown_event(remaining_seconds: int) -> dict[str, Any]:
    return {"type": "countdown", "remainingSeconds": remaining_seconds}


def commencing_event() -> dict[str, Any]:
    return {"type": "commencing"}


def draw_started_event() -> dict[str, Any]:
    return {"type": "drawStarted"}


def narrative_line_event(text: str) -> dict[str, Any]:
    return {"type": "narrativeLine", "text": text}


def round_ended_event(message: str, winner: Winner | None) -> dict[str, Any]:
    return {"type": "roundEnded", "message": message, "winner": _winner_dict(winner)}


def round_reset_event(message: str) -> dict[str, Any]:
    return {"type": "roundReset", "message": message}


def admin_log_event(category: str, message: str) -> dict[str, Any]:
    return {"type": "adminLog", "category": category, "message": message, "timestamp": _utc_now_iso()}


def player_stats_event(hourly_stats: list[int]) -> dict[str, Any]:
    return {"type": "playerStatsUpdate", "hourlyStats": list(hourly_stats)}


def welcome_event(identity: str, admin: bool) -> dict[str, Any]:
    return {"type": "welcome", "identity": identity, "admin": admin}


def error_event(code: str, message: str) -> dict[str, Any]:
    return {"type": "error", "code": code, "message": message}
