"""Administrative overrides that are safe to call in any round state."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .broadcast import BroadcastHub
from .engine import RoundOrchestrator
from .models import AdminResult

logger = logging.getLogger(__name__)


@dataclass
class AdminControls:
    orchestrator: RoundOrchestrator
    hub: BroadcastHub

    def force_end(self) -> AdminResult:
        self.orchestrator.force_end()
        return AdminResult(success=True, message="Round ended successfully")

    def reset(self) -> AdminResult:
        self.orchestrator.reset()
        return AdminResult(success=True, message="Game reset successfully")

    def kick_all(self) -> AdminResult:
        identities = self.orchestrator.kick_all()
        # connections that lost their registry entry in a reset are closed too
        closed = self.hub.kick(set(identities) | set(self.hub.player_identities()))
        logger.info("Kicked %d players, closed %d connections", len(identities), closed)
        return AdminResult(success=True, message=f"All players kicked successfully ({len(identities)})")

    def start_round(self) -> AdminResult:
        if not self.orchestrator.start_round():
            return AdminResult(success=False, message="No active round to start")
        return AdminResult(success=True, message="Round started successfully")
