"""Shared fixtures for unit tests."""
from datetime import datetime, timedelta

import pytest


class StubProvider:
    """Provider that replays queued snapshots (or raises queued errors)."""

    name = "stub"

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def fetch_snapshot(self):
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class TickingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 9, 0, 0)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def make_record(company_name="Himalayan Hydropower Ltd.", share_type="General Public", status="OPEN", **overrides):
    from ipo_radar.models import IPORecord, IPOStatus

    fields = dict(
        company_name=company_name,
        share_type=share_type,
        sector="Hydropower",
        units=1_000_000,
        price=100.0,
        opening_date="2026-01-05",
        closing_date="2026-01-09",
        status=IPOStatus.parse(status),
        description="Ordinary shares",
    )
    fields.update(overrides)
    return IPORecord(**fields)


def make_snapshot(*records, summary="Market is active."):
    from ipo_radar.models import MarketSnapshot

    return MarketSnapshot(records=list(records), summary=summary, source="stub")


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def memory_store(clock):
    from ipo_radar.core.record_store import InMemoryRecordStore

    return InMemoryRecordStore(clock=clock)
