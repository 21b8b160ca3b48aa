"""In-memory health data provider: buckets raw samples the way HealthKit statistics do."""

from __future__ import annotations

import logging
import statistics
from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime

from healthgpt.domains.health.connectors import (
    DailyStatistic,
    IntervalQuery,
    IntervalSample,
    QuantitySample,
)
from healthgpt.domains.health.connectors.units import UnitConversionError, convert_value
from healthgpt.domains.health.domain_logic.metric_catalog import Aggregation, HealthUnit

logger = logging.getLogger(__name__)


class InMemoryHealthProvider:
    """HealthDataProvider over lists of raw samples.

    Usage::

        provider = InMemoryHealthProvider(
            quantity_samples=[QuantitySample(STEP_COUNT, start, end, 4500, "count")],
            interval_samples={
                SLEEP_ANALYSIS: [IntervalSample(bed, wake, "HKCategoryValueSleepAnalysisAsleepCore")],
            },
        )
    """

    def __init__(
        self,
        quantity_samples: Iterable[QuantitySample] = (),
        interval_samples: dict[str, Iterable[IntervalSample]] | None = None,
        *,
        data_source: str = "memory",
        connected: bool = True,
    ) -> None:
        self._quantity: dict[str, list[QuantitySample]] = defaultdict(list)
        for sample in quantity_samples:
            self._quantity[sample.identifier].append(sample)
        self._intervals: dict[str, list[IntervalSample]] = {
            category: list(samples) for category, samples in (interval_samples or {}).items()
        }
        self._data_source = data_source
        self._connected = connected

    async def fetch_daily_aggregate(
        self,
        identifier: str,
        unit: HealthUnit,
        aggregation: Aggregation,
        anchor: datetime,
        start: datetime,
        end: datetime,
    ) -> list[DailyStatistic]:
        """Sum or average samples per calendar day in ``anchor``'s zone."""
        buckets: dict[date, list[float]] = defaultdict(list)
        skipped_units: set[str] = set()
        for sample in self._quantity.get(identifier, []):
            if not start <= sample.start < end:
                continue
            try:
                value = convert_value(sample.value, sample.unit, unit)
            except UnitConversionError:
                skipped_units.add(sample.unit)
                continue
            day = sample.start.astimezone(anchor.tzinfo).date()
            buckets[day].append(value)

        if skipped_units:
            logger.warning(
                "Skipped %s samples in unconvertible units: %s",
                identifier,
                ", ".join(sorted(skipped_units)),
            )

        result: list[DailyStatistic] = []
        for day in sorted(buckets):
            values = buckets[day]
            if aggregation is Aggregation.SUM:
                result.append(DailyStatistic(day=day, value=sum(values)))
            else:
                result.append(DailyStatistic(day=day, value=statistics.fmean(values)))
        return result

    async def fetch_interval_samples(
        self, category: str, query: IntervalQuery
    ) -> list[IntervalSample]:
        """Return samples of ``category`` matching ``query``, ordered by start."""
        matches = [s for s in self._intervals.get(category, []) if query.matches(s)]
        return sorted(matches, key=lambda s: s.start)

    def is_connected(self) -> bool:
        return self._connected

    @property
    def data_source(self) -> str:
        return self._data_source

    def get_provenance(self) -> dict[str, str]:
        quantity_count = sum(len(v) for v in self._quantity.values())
        interval_count = sum(len(v) for v in self._intervals.values())
        return {
            "data_source": self.data_source,
            "data_source_note": (
                f"{quantity_count} quantity samples, {interval_count} category samples held in memory."
            ),
        }
