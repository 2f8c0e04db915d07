"""Configuration helpers for backend runtime."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class RoyaleSettings:
    host: str = "127.0.0.1"
    port: int = 8000
    countdown_seconds: int = 180
    commencing_delay_seconds: float = 2.0
    narrative_interval_seconds: float = 2.0
    cooldown_seconds: float = 5.0
    narrative_timeout_seconds: float = 10.0
    admin_key: str | None = None
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    log_level: str = "INFO"


def load_settings() -> RoyaleSettings:
    return RoyaleSettings(
        host=os.getenv("RUMBLE_HOST", "127.0.0.1"),
        port=int(os.getenv("RUMBLE_PORT", "8000")),
        countdown_seconds=int(os.getenv("RUMBLE_COUNTDOWN_SECONDS", "180")),
        commencing_delay_seconds=float(os.getenv("RUMBLE_COMMENCING_DELAY", "2.0")),
        narrative_interval_seconds=float(os.getenv("RUMBLE_NARRATIVE_INTERVAL", "2.0")),
        cooldown_seconds=float(os.getenv("RUMBLE_COOLDOWN_SECONDS", "5.0")),
        narrative_timeout_seconds=float(os.getenv("RUMBLE_NARRATIVE_TIMEOUT", "10.0")),
        admin_key=os.getenv("RUMBLE_ADMIN_KEY") or None,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("RUMBLE_OPENAI_MODEL", "gpt-4o-mini"),
        log_level=os.getenv("RUMBLE_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler once; later calls only adjust the level."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(numeric_level)
