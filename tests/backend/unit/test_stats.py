from datetime import datetime, timedelta

from rumbleroyale.backend.stats import HourlyPlayerStats


class FakeNow:
    def __init__(self, value: datetime) -> None:
        self.value = value

    def __call__(self) -> datetime:
        return self.value


def test_record_counts_unique_identities_per_hour() -> None:
    now = FakeNow(datetime(2024, 5, 1, 14, 20))
    stats = HourlyPlayerStats(now=now)

    stats.record("a")
    stats.record("a")
    stats.record("b")
    now.value = datetime(2024, 5, 1, 15, 5)
    stats.record("a")

    counts = stats.hourly_counts()
    assert len(counts) == 24
    assert counts[14] == 2
    assert counts[15] == 1
    assert sum(counts) == 3


def test_buckets_older_than_a_day_are_dropped() -> None:
    now = FakeNow(datetime(2024, 5, 1, 9, 0))
    stats = HourlyPlayerStats(now=now)
    stats.record("a")

    now.value = datetime(2024, 5, 2, 8, 30)
    assert stats.hourly_counts()[9] == 1

    now.value = datetime(2024, 5, 2, 9, 10)
    assert stats.hourly_counts()[9] == 0

    stats.record("b")
    assert stats.hourly_counts()[9] == 1


def test_same_hour_next_day_starts_a_fresh_bucket() -> None:
    now = FakeNow(datetime(2024, 5, 1, 9, 0))
    stats = HourlyPlayerStats(now=now)
    stats.record("a")

    now.value = now.value + timedelta(days=1)
    stats.record("b")

    assert stats.hourly_counts()[9] == 1
