"""In-memory registry of connected participants and their enrollment."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .errors import AlreadyEnrolled, DuplicateIdentity, NameTaken, NameTooShort, UnknownIdentity
from .models import Participant


MIN_NAME_LENGTH = 3


def _name_key(name: str) -> str:
    return name.casefold()


@dataclass
class ParticipantRegistry:
    min_name_length: int = MIN_NAME_LENGTH

    def __post_init__(self) -> None:
        # dict keeps insertion order, which is the broadcast order
        self._participants: dict[str, Participant] = {}

    def __contains__(self, identity: object) -> bool:
        return identity in self._participants

    def __len__(self) -> int:
        return len(self._participants)

    def get(self, identity: str) -> Participant | None:
        return self._participants.get(identity)

    def add(self, identity: str) -> Participant:
        if identity in self._participants:
            raise DuplicateIdentity(identity)
        participant = Participant(identity=identity)
        self._participants[identity] = participant
        return participant

    def set_name(self, identity: str, name: str) -> Participant:
        participant = self._participants.get(identity)
        if participant is None:
            raise UnknownIdentity(identity)
        if participant.enrolled:
            raise AlreadyEnrolled(identity)

        cleaned = name.strip()
        if len(cleaned) < self.min_name_length:
            raise NameTooShort(cleaned, self.min_name_length)

        wanted = _name_key(cleaned)
        for other in self._participants.values():
            if other.identity != identity and other.name is not None and _name_key(other.name) == wanted:
                raise NameTaken(cleaned)

        updated = replace(participant, name=cleaned)
        self._participants[identity] = updated
        return updated

    def clear_name(self, identity: str) -> bool:
        """Unenroll; returns False when there was nothing to clear."""
        participant = self._participants.get(identity)
        if participant is None or not participant.enrolled:
            return False
        self._participants[identity] = replace(participant, name=None)
        return True

    def clear_names(self) -> int:
        cleared = 0
        for identity, participant in self._participants.items():
            if participant.enrolled:
                self._participants[identity] = replace(participant, name=None)
                cleared += 1
        return cleared

    def remove(self, identity: str) -> Participant | None:
        return self._participants.pop(identity, None)

    def clear(self) -> list[str]:
        identities = list(self._participants)
        self._participants.clear()
        return identities

    def snapshot(self) -> tuple[Participant, ...]:
        return tuple(self._participants.values())

    def enrolled_list(self) -> tuple[Participant, ...]:
        return tuple(participant for participant in self._participants.values() if participant.enrolled)

    def enrolled_count(self) -> int:
        return sum(1 for participant in self._participants.values() if participant.enrolled)
