"""Shared fixtures for the neuro-audit test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from neuro_audit.core.config import Settings
from neuro_audit.core.models import AuditRecord, StoreTimestamp
from neuro_audit.storage.record_store import InMemoryRecordStore


def utc_seconds(year: int, month: int, day: int, hour: int, minute: int = 0) -> float:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc).timestamp()


@pytest.fixture
def make_record():
    """Factory for audit records; keyword args use snake_case field names."""

    counter = {"n": 0}

    def _make(**overrides: Any) -> AuditRecord:
        counter["n"] += 1
        data: dict[str, Any] = {
            "id": f"rec-{counter['n']}",
            "trader_name": "Ana",
            "audit_date": "2024-01-01",  # Monday
            "session_start_time": "09:00",
            "coherence_index": 80,
            "presence_level": 9,
            "metabolic_energy": 7,
            "daily_pnl": 100.0,
        }
        data.update(overrides)
        return AuditRecord(**data)

    return _make


@pytest.fixture
def stamped():
    """Build a StoreTimestamp from UTC wall-clock components."""

    def _stamp(year: int, month: int, day: int, hour: int, minute: int = 0) -> StoreTimestamp:
        return StoreTimestamp(seconds=utc_seconds(year, month, day, hour, minute))

    return _stamp


class ManualClock:
    """Store clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def sim_clock() -> ManualClock:
    return ManualClock(datetime(2024, 6, 3, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def memory_store(sim_clock) -> InMemoryRecordStore:
    return InMemoryRecordStore(clock=sim_clock)


@pytest.fixture
def utc_settings(tmp_path) -> Settings:
    return Settings(
        display_timezone="UTC",
        data_dir=str(tmp_path / "data"),
        coach_access_code="COACH2024",
    )
