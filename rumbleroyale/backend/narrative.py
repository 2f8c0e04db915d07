"""Narrative collaborator adapters and round narrative planning."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from .errors import CollaboratorFailure
from .models import Participant

logger = logging.getLogger(__name__)

MIN_ENCOUNTERS = 3
MAX_ENCOUNTERS = 5
PROMPT_TEMPLATE = "Generate a dramatic sentence for this battle royale event: {event}"


class Narrator(Protocol):
    async def generate_line(self, prompt: str) -> str:
        """Return one narrative line for the given event description."""


class EchoNarrator:
    """Used when no text-generation backend is configured."""

    async def generate_line(self, prompt: str) -> str:
        return prompt


@dataclass
class OpenAINarrator:
    api_key: str
    model: str = "gpt-4o-mini"
    max_tokens: int = 100
    temperature: float = 0.7

    def __post_init__(self) -> None:
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def generate_line(self, prompt: str) -> str:
        response = await self._get_client().chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": PROMPT_TEMPLATE.format(event=prompt)}],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            n=1,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise CollaboratorFailure("Empty completion returned")
        return content.strip()


def create_narrator(api_key: str | None, model: str) -> Narrator:
    if api_key:
        return OpenAINarrator(api_key=api_key, model=model)
    return EchoNarrator()


async def narrate(narrator: Narrator, prompt: str, timeout_seconds: float) -> str:
    """Ask the collaborator for a line; a failing or slow collaborator yields the prompt."""
    try:
        line = await asyncio.wait_for(narrator.generate_line(prompt), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning("Narrative request timed out after %.1fs; using prompt text", timeout_seconds)
        return prompt
    except Exception as exc:  # noqa: BLE001
        logger.warning("Narrative request failed (%s); using prompt text", exc)
        return prompt
    if not isinstance(line, str) or not line.strip():
        logger.warning("Narrative collaborator returned no text; using prompt text")
        return prompt
    return line


def encounter_count(roster_size: int) -> int:
    return min(MAX_ENCOUNTERS, max(MIN_ENCOUNTERS, roster_size))


def plan_prompts(
    roster: Sequence[Participant],
    round_number: int,
    winner: Participant,
    rng: random.Random,
) -> list[str]:
    """Intro, encounter and victory event descriptions for one round, in playback order."""
    prompts = [f"{len(roster)} warriors enter the arena for Round {round_number}!"]
    for _ in range(encounter_count(len(roster))):
        first, second = rng.sample(list(roster), 2)
        prompts.append(f"{first.name} encounters {second.name} in battle!")
    prompts.append(f"{winner.name} emerges victorious from Round {round_number}!")
    return prompts
