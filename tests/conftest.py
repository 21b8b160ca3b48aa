"""Shared test fixtures for HealthGPT tests."""

from __future__ import annotations

import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEALTH_DATA_SOURCE", "mock")
    monkeypatch.setenv("APPLE_HEALTH_EXPORT_PATH", "")
    monkeypatch.setenv("HEALTHGPT_TIMEZONE", "UTC")
    monkeypatch.setenv("TOOLS_ENABLED", "true")
    for name in ("HEALTHGPT_HOST", "HEALTHGPT_PORT", "HEALTHGPT_ALLOW_INSECURE_BIND"):
        monkeypatch.delenv(name, raising=False)

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from healthgpt.domains.health.connectors import (  # noqa: E402
    DailyStatistic,
    IntervalQuery,
    IntervalSample,
)
from healthgpt.domains.health.domain_logic.health_data_fetcher import (  # noqa: E402
    HealthDataFetcher,
)

# Sunday, October 18 2026, mid-morning.
FIXED_NOW = datetime(2026, 10, 18, 10, 30, tzinfo=timezone.utc)
TODAY = FIXED_NOW.date()


def fixed_clock() -> datetime:
    return FIXED_NOW


# ---------------------------------------------------------------------------
# Recording fake provider
# ---------------------------------------------------------------------------

class RecordingProvider:
    """In-memory HealthDataProvider that records every query it receives.

    ``daily`` maps identifier -> {day: value}; ``sleep`` is a list of
    category samples filtered through the query predicate.
    """

    def __init__(
        self,
        daily: dict[str, dict[date, float | None]] | None = None,
        sleep: list[IntervalSample] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.daily = daily or {}
        self.sleep = sleep or []
        self.error = error
        self.aggregate_calls: list[dict[str, Any]] = []
        self.interval_calls: list[tuple[str, IntervalQuery]] = []

    async def fetch_daily_aggregate(self, identifier, unit, aggregation, anchor, start, end):
        self.aggregate_calls.append({
            "identifier": identifier,
            "unit": unit,
            "aggregation": aggregation,
            "anchor": anchor,
            "start": start,
            "end": end,
        })
        if self.error is not None:
            raise self.error
        values = self.daily.get(identifier, {})
        return [
            DailyStatistic(day=day, value=value)
            for day, value in sorted(values.items())
            if start.date() <= day < end.date()
        ]

    async def fetch_interval_samples(self, category, query):
        self.interval_calls.append((category, query))
        if self.error is not None:
            raise self.error
        return [s for s in self.sleep if query.matches(s)]

    def is_connected(self) -> bool:
        return True

    @property
    def data_source(self) -> str:
        return "recording"

    def get_provenance(self) -> dict[str, str]:
        return {"data_source": "recording"}


@pytest.fixture
def recording_provider() -> RecordingProvider:
    """A provider with no data that records queries."""
    return RecordingProvider()


@pytest.fixture
def make_provider():
    """Factory for RecordingProvider instances with canned data."""
    return RecordingProvider


@pytest.fixture
def fetcher(recording_provider: RecordingProvider) -> HealthDataFetcher:
    """A fetcher pinned to FIXED_NOW in UTC over the recording provider."""
    return HealthDataFetcher(recording_provider, tz=timezone.utc, clock=fixed_clock)
