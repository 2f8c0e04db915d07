"""Domain models for participants, winners and the round record."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RoundState(str, Enum):
    WAITING = "WAITING"
    COUNTDOWN = "COUNTDOWN"
    COMMENCING = "COMMENCING"
    IN_PROGRESS = "IN_PROGRESS"
    GAME_OVER = "GAME_OVER"


@dataclass(frozen=True)
class Participant:
    identity: str
    name: str | None = None

    @property
    def enrolled(self) -> bool:
        return self.name is not None

    def to_dict(self) -> dict[str, Any]:
        return {"identity": self.identity, "name": self.name, "enrolled": self.enrolled}


@dataclass(frozen=True)
class Winner:
    identity: str
    name: str

    @classmethod
    def from_participant(cls, participant: Participant) -> "Winner":
        return cls(identity=participant.identity, name=participant.name or "")

    def to_dict(self) -> dict[str, Any]:
        return {"identity": self.identity, "name": self.name}


@dataclass
class Round:
    """Mutable round record; only the orchestrator writes to it."""

    sequence: int = 0
    state: RoundState = RoundState.WAITING
    winner: Winner | None = None
    roster: tuple[Participant, ...] = ()
    narrative: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AdminResult:
    success: bool
    message: str
