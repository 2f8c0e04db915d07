"""Round lifecycle orchestrator: transition table, eligibility and narrative playback."""

from __future__ import annotations

import contextlib
import logging
import random
from functools import partial
from typing import Any, Callable, Iterator

from .clock import RoundClock, Step, TimerHandle
from .config import RoyaleSettings
from .errors import InvalidTransition, InvariantViolation, StateConflict
from .models import Participant, Round, RoundState, Winner
from .narrative import Narrator, narrate, plan_prompts
from .registry import ParticipantRegistry
from .state import (
    admin_log_event,
    build_players_update,
    commencing_event,
    countdown_event,
    draw_started_event,
    narrative_line_event,
    player_stats_event,
    round_ended_event,
    round_reset_event,
)
from .stats import HourlyPlayerStats

logger = logging.getLogger(__name__)

MIN_ENROLLED = 2
ROUND_END_MESSAGE = "Round ended! Click Join Battle to join the next round!"
FORCED_END_MESSAGE = "Round forcefully ended by admin"
NEXT_ROUND_MESSAGE = "A new round is open for enrollment"
RESET_MESSAGE = "Game has been reset by admin"

ALLOWED_TRANSITIONS: dict[RoundState, frozenset[RoundState]] = {
    RoundState.WAITING: frozenset({RoundState.WAITING, RoundState.COUNTDOWN, RoundState.GAME_OVER}),
    RoundState.COUNTDOWN: frozenset({RoundState.WAITING, RoundState.COMMENCING, RoundState.GAME_OVER}),
    RoundState.COMMENCING: frozenset({RoundState.WAITING, RoundState.IN_PROGRESS, RoundState.GAME_OVER}),
    RoundState.IN_PROGRESS: frozenset({RoundState.WAITING, RoundState.GAME_OVER}),
    RoundState.GAME_OVER: frozenset({RoundState.WAITING, RoundState.GAME_OVER}),
}

ENROLLMENT_OPEN = frozenset({RoundState.WAITING, RoundState.COUNTDOWN, RoundState.GAME_OVER})

Publisher = Callable[[dict[str, Any]], None]


class RoundOrchestrator:
    """Single owner of the round record, the clock and the participant registry.

    Every inbound event, timer callback and admin call runs to completion on
    the event loop; the only suspension inside a round is the awaited
    narrative request, which lives in the clock's single chain.
    """

    def __init__(
        self,
        settings: RoyaleSettings,
        narrator: Narrator,
        publish: Publisher,
        clock: RoundClock | None = None,
        registry: ParticipantRegistry | None = None,
        stats: HourlyPlayerStats | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self.narrator = narrator
        self.clock = clock if clock is not None else RoundClock()
        self.registry = registry if registry is not None else ParticipantRegistry()
        self.stats = stats if stats is not None else HourlyPlayerStats()
        self.rng = rng if rng is not None else random.Random()
        self.round = Round()
        self._publish = publish
        self._chain: TimerHandle | None = None
        self._pending_winner: Participant | None = None
        self._prompts: list[str] = []
        self._recovering = False

    @property
    def state(self) -> RoundState:
        return self.round.state

    def players_update(self) -> dict[str, Any]:
        return build_players_update(
            players=self.registry.snapshot(),
            state=self.round.state,
            winner=self.round.winner,
            round_sequence=self.round.sequence,
        )

    def stats_update(self) -> dict[str, Any]:
        return player_stats_event(self.stats.hourly_counts())

    # -- inbound connection events -------------------------------------------

    def connect(self, identity: str) -> Participant:
        participant = self.registry.add(identity)
        self.stats.record(identity)
        self._admin_log("CONNECTION", f"New client connected: {identity}")
        self._publish(self.stats_update())
        self._publish_players()
        return participant

    def disconnect(self, identity: str) -> None:
        if self.registry.remove(identity) is None:
            return
        self._admin_log("CONNECTION", f"Client disconnected: {identity}")
        self._reevaluate()
        self._publish_players()

    def enroll(self, identity: str, name: str) -> Participant:
        if self.round.state not in ENROLLMENT_OPEN:
            raise StateConflict("Enrollment is closed while a round is being fought")
        if identity not in self.registry:
            # the registry was reset while this connection stayed open
            self.registry.add(identity)
        participant = self.registry.set_name(identity, name)
        self._admin_log("PLAYER", f"{participant.name} ({identity}) joined the game")
        self._reevaluate()
        self._publish_players()
        return participant

    def unenroll(self, identity: str) -> bool:
        participant = self.registry.get(identity)
        if participant is None or not self.registry.clear_name(identity):
            return False
        self._admin_log("PLAYER", f"{participant.name} ({identity}) left the game")
        self._reevaluate()
        self._publish_players()
        return True

    # -- administrative overrides --------------------------------------------

    def force_end(self) -> None:
        with self._invariant_guard():
            self.clock.cancel_all()
            self._transition(RoundState.GAME_OVER)
            self.round.winner = None
            self._pending_winner = None
            self._publish(round_ended_event(FORCED_END_MESSAGE, None))
            self._admin_log("ADMIN", "Round forcefully ended")
            self._chain = self.clock.schedule_chain(
                [(self.settings.cooldown_seconds, self._return_to_waiting)],
                on_complete=self._on_chain_complete,
            )
        self._publish_players()

    def reset(self) -> None:
        with self._invariant_guard():
            self.clock.cancel_all()
            self._chain = None
            self._transition(RoundState.WAITING)
            self.registry.clear()
            self.round.winner = None
            self.round.roster = ()
            self.round.narrative = []
            self._pending_winner = None
            self._prompts = []
            self._publish(round_reset_event(RESET_MESSAGE))
            self._admin_log("ADMIN", "Game state reset")
        self._publish_players()

    def kick_all(self) -> list[str]:
        identities = self.registry.clear()
        self._admin_log("ADMIN", f"All players kicked ({len(identities)})")
        self._reevaluate()
        self._publish_players()
        return identities

    def start_round(self) -> bool:
        """Skip the rest of the countdown; only meaningful while counting down."""
        if self.round.state is not RoundState.COUNTDOWN:
            return False
        with self._invariant_guard():
            self.clock.cancel_countdown()
            self._admin_log("ADMIN", "Round started by admin")
            self._enter_commencing()
        self._publish_players()
        return True

    def shutdown(self) -> None:
        self.clock.cancel_all()
        self._chain = None

    # -- eligibility and timer-driven transitions ----------------------------

    def _reevaluate(self) -> bool:
        """Start or abandon the countdown based on the enrolled count."""
        with self._invariant_guard():
            enrolled = self.registry.enrolled_count()
            if self.round.state is RoundState.WAITING and enrolled >= MIN_ENROLLED:
                self._enter_countdown(enrolled)
                return True
            if self.round.state is RoundState.COUNTDOWN and enrolled < MIN_ENROLLED:
                self.clock.cancel_countdown()
                self._transition(RoundState.WAITING)
                self._admin_log("GAME", "Countdown cancelled: not enough players ready")
                return True
        return False

    def _enter_countdown(self, enrolled: int) -> None:
        self._transition(RoundState.COUNTDOWN)
        self.clock.start_countdown(
            self.settings.countdown_seconds,
            on_tick=self._on_tick,
            on_elapsed=self._on_countdown_elapsed,
        )
        self._admin_log("GAME", f"Countdown started with {enrolled} players ready")

    def _on_tick(self, remaining: int) -> None:
        self._publish(countdown_event(remaining))

    def _on_countdown_elapsed(self) -> None:
        with self._invariant_guard():
            self._enter_commencing()
        self._publish_players()

    def _enter_commencing(self) -> None:
        self._transition(RoundState.COMMENCING)
        self._publish(commencing_event())
        self._chain = self.clock.schedule_chain(self._round_steps(), on_complete=self._on_chain_complete)

    def _round_steps(self) -> Iterator[Step]:
        yield self.settings.commencing_delay_seconds, self._start_combat
        if self.round.state is not RoundState.IN_PROGRESS:
            return
        interval = self.settings.narrative_interval_seconds
        for index, prompt in enumerate(self._prompts):
            yield (0.0 if index == 0 else interval), partial(self._play_line, prompt)
        yield interval, self._finish_round
        yield self.settings.cooldown_seconds, self._return_to_waiting

    def _start_combat(self) -> None:
        with self._invariant_guard():
            enrolled = self.registry.enrolled_list()
            if len(enrolled) < MIN_ENROLLED:
                self._transition(RoundState.WAITING)
                self._admin_log("GAME", "Not enough players ready for this round; waiting for the next one")
                self._publish_players()
                return

            self.round.sequence += 1
            self.round.roster = enrolled
            self.round.narrative = []
            self.round.winner = None
            self._pending_winner = self.rng.choice(enrolled)
            self._prompts = plan_prompts(enrolled, self.round.sequence, self._pending_winner, self.rng)
            self._transition(RoundState.IN_PROGRESS)
            self._publish(draw_started_event())
            self._admin_log(
                "GAME",
                f"Round {self.round.sequence} started automatically with {len(enrolled)} players",
            )
            self._publish_players()

    async def _play_line(self, prompt: str) -> None:
        chain = self._chain
        text = await narrate(self.narrator, prompt, self.settings.narrative_timeout_seconds)
        if chain is None or chain.cancelled:
            return
        self.round.narrative.append(text)
        self._publish(narrative_line_event(text))
        self._admin_log("NARRATIVE", text)

    def _finish_round(self) -> None:
        with self._invariant_guard():
            self._transition(RoundState.GAME_OVER)
            winner = self._pending_winner
            self._pending_winner = None
            self.round.winner = Winner.from_participant(winner) if winner is not None else None
            self.registry.clear_names()
            self._publish(round_ended_event(ROUND_END_MESSAGE, self.round.winner))
            winner_name = self.round.winner.name if self.round.winner is not None else "none"
            self._admin_log("GAME", f"Round {self.round.sequence} over - Winner: {winner_name}")
            self._publish_players()

    def _return_to_waiting(self) -> None:
        with self._invariant_guard():
            self._transition(RoundState.WAITING)
            self.round.winner = None
            self._publish(round_reset_event(NEXT_ROUND_MESSAGE))
            self._publish_players()

    def _on_chain_complete(self) -> None:
        self._chain = None
        if self._reevaluate():
            self._publish_players()

    # -- helpers --------------------------------------------------------------

    def _transition(self, target: RoundState) -> None:
        current = self.round.state
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(current.value, target.value)
        self.round.state = target
        logger.info("Round state %s -> %s", current.value, target.value)

    @contextlib.contextmanager
    def _invariant_guard(self) -> Iterator[None]:
        try:
            yield
        except InvariantViolation as exc:
            self._recover(exc)

    def _recover(self, exc: InvariantViolation) -> None:
        logger.error("Invariant violated, forcing round back to WAITING: %s", exc, exc_info=exc)
        self.clock.cancel_all()
        self._chain = None
        self.round.state = RoundState.WAITING
        self.round.winner = None
        self._pending_winner = None
        self._admin_log("ERROR", f"Internal error, round reset to WAITING: {exc}")
        self._publish_players()
        if not self._recovering:
            self._recovering = True
            try:
                # enough players may still be enrolled for a fresh countdown
                if self._reevaluate():
                    self._publish_players()
            finally:
                self._recovering = False

    def _admin_log(self, category: str, message: str) -> None:
        logger.info("[%s] %s", category, message)
        self._publish(admin_log_event(category, message))

    def _publish_players(self) -> None:
        self._publish(self.players_update())
