"""Backend package for the RumbleRoyale round lifecycle service."""

from .clock import RoundClock, TimerHandle
from .config import RoyaleSettings, configure_logging, load_settings
from .engine import RoundOrchestrator
from .models import Participant, Round, RoundState, Winner
from .narrative import EchoNarrator, OpenAINarrator, create_narrator, narrate
from .registry import ParticipantRegistry

__all__ = [
    "configure_logging",
    "create_narrator",
    "EchoNarrator",
    "load_settings",
    "narrate",
    "OpenAINarrator",
    "Participant",
    "ParticipantRegistry",
    "Round",
    "RoundClock",
    "RoundOrchestrator",
    "RoundState",
    "RoyaleSettings",
    "TimerHandle",
    "Winner",
]
