"""Concrete HealthDataProvider implementations."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo

from healthgpt.domains.health.connectors import (
    DailyStatistic,
    IntervalQuery,
    IntervalSample,
)
from healthgpt.domains.health.connectors.mock_data import (
    get_mock_daily_value,
    get_mock_sleep_segments,
)
from healthgpt.domains.health.connectors.units import convert_value
from healthgpt.domains.health.domain_logic.metric_catalog import (
    SLEEP_ANALYSIS,
    Aggregation,
    HealthUnit,
)


class MockHealthDataProvider:
    """Uses mock data generators. Always available."""

    def __init__(self, tz: tzinfo = timezone.utc) -> None:
        self._tz = tz

    async def fetch_daily_aggregate(
        self,
        identifier: str,
        unit: HealthUnit,
        aggregation: Aggregation,
        anchor: datetime,
        start: datetime,
        end: datetime,
    ) -> list[DailyStatistic]:
        # One reading per day, so sum and average coincide.
        result: list[DailyStatistic] = []
        day = start.astimezone(anchor.tzinfo).date()
        last_day = (end - timedelta(microseconds=1)).astimezone(anchor.tzinfo).date()
        while day <= last_day:
            reading = get_mock_daily_value(identifier, day)
            if reading is not None:
                value, recorded_unit = reading
                result.append(
                    DailyStatistic(day=day, value=convert_value(value, recorded_unit.value, unit))
                )
            day += timedelta(days=1)
        return result

    async def fetch_interval_samples(
        self, category: str, query: IntervalQuery
    ) -> list[IntervalSample]:
        if category != SLEEP_ANALYSIS:
            return []
        samples: list[IntervalSample] = []
        wake_day = query.start.astimezone(self._tz).date()
        last_wake_day = query.end.astimezone(self._tz).date() + timedelta(days=1)
        while wake_day <= last_wake_day:
            samples.extend(
                s for s in get_mock_sleep_segments(wake_day, self._tz) if query.matches(s)
            )
            wake_day += timedelta(days=1)
        return samples

    def is_connected(self) -> bool:
        return False

    @property
    def data_source(self) -> str:
        return "mock"

    def get_provenance(self) -> dict[str, str]:
        return {
            "data_source": self.data_source,
            "data_source_note": (
                "Using simulated health data. "
                "Connect a health data source for real measurements."
            ),
        }
