"""Hourly unique-player statistics for the admin view."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable


HOURS_PER_DAY = 24


class HourlyPlayerStats:
    """Unique identities seen per hour of day over the last 24 hours."""

    def __init__(self, now: Callable[[], datetime] = datetime.now) -> None:
        self._now = now
        self._buckets: list[set[str]] = [set() for _ in range(HOURS_PER_DAY)]
        self._bucket_starts: list[datetime | None] = [None] * HOURS_PER_DAY

    def record(self, identity: str) -> None:
        hour_start = self._now().replace(minute=0, second=0, microsecond=0)
        index = hour_start.hour
        if self._bucket_starts[index] != hour_start:
            self._buckets[index] = set()
            self._bucket_starts[index] = hour_start
        self._buckets[index].add(identity)

    def hourly_counts(self) -> list[int]:
        cutoff = self._now() - timedelta(hours=HOURS_PER_DAY)
        counts = []
        for bucket, started in zip(self._buckets, self._bucket_starts):
            if started is None or started <= cutoff:
                counts.append(0)
            else:
                counts.append(len(bucket))
        return counts
