"""Exception hierarchy for the round lifecycle service."""

from __future__ import annotations


class RoyaleError(Exception):
    """Base class for every error raised by the backend."""

    code = "ROYALE_ERROR"


class ValidationError(RoyaleError):
    """Bad client input; reported to the originating connection only."""

    code = "VALIDATION_ERROR"


class NameTooShort(ValidationError):
    code = "NAME_TOO_SHORT"

    def __init__(self, name: str, min_length: int) -> None:
        self.name = name
        self.min_length = min_length
        super().__init__(f"Name must be at least {min_length} characters")


class NameTaken(ValidationError):
    code = "NAME_TAKEN"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Name {name!r} is already taken")


class AlreadyEnrolled(ValidationError):
    code = "ALREADY_ENROLLED"

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__("Already enrolled for this round")


class DuplicateIdentity(ValidationError):
    code = "DUPLICATE_IDENTITY"

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"Identity {identity} is already registered")


class UnknownIdentity(ValidationError):
    code = "UNKNOWN_IDENTITY"

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"Identity {identity} is not registered")


class StateConflict(RoyaleError):
    """Request is legal in general but not in the current round state."""

    code = "STATE_CONFLICT"


class InvariantViolation(RoyaleError):
    """Internal programming error; the orchestrator recovers by resetting."""

    code = "INVARIANT_VIOLATION"


class ClockBusy(InvariantViolation):
    code = "CLOCK_BUSY"


class InvalidTransition(InvariantViolation):
    code = "INVALID_TRANSITION"

    def __init__(self, from_state: str, to_state: str) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Cannot transition from {from_state} to {to_state}")


class CollaboratorFailure(RoyaleError):
    """The narrative collaborator could not produce a line."""

    code = "COLLABORATOR_FAILURE"
