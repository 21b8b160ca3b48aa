"""Health data connectors: the read-only capability the data layer queries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol, runtime_checkable

from healthgpt.domains.health.domain_logic.metric_catalog import Aggregation, HealthUnit


@dataclass(frozen=True)
class DailyStatistic:
    """One day bucket of a statistics query; ``value`` is None when the bucket has no samples."""

    day: date
    value: float | None


@dataclass(frozen=True)
class QuantitySample:
    """A raw quantity reading, in the unit it was recorded in."""

    identifier: str
    start: datetime
    end: datetime
    value: float
    unit: str


@dataclass(frozen=True)
class IntervalSample:
    """A raw category sample such as one sleep stage segment."""

    start: datetime
    end: datetime
    value: str


@dataclass(frozen=True)
class IntervalQuery:
    """Predicate over category samples.

    A sample matches when its value is in ``values`` and it overlaps
    ``[start, end)``. With ``strict_end`` the sample must also end inside
    the window, so a sample is attributed to exactly one window.
    """

    start: datetime
    end: datetime
    values: frozenset[str]
    strict_end: bool = True

    def matches(self, sample: IntervalSample) -> bool:
        if sample.value not in self.values:
            return False
        if self.strict_end:
            return self.start < sample.end <= self.end
        return sample.start < self.end and sample.end > self.start


@runtime_checkable
class HealthDataProvider(Protocol):
    """Abstract interface for the platform health-data store.

    The data layer calls these methods without knowing whether data comes
    from an Apple Health export, an in-memory fixture, or mock generators.
    """

    async def fetch_daily_aggregate(
        self,
        identifier: str,
        unit: HealthUnit,
        aggregation: Aggregation,
        anchor: datetime,
        start: datetime,
        end: datetime,
    ) -> list[DailyStatistic]:
        """Daily sum/average of ``identifier`` samples in ``[start, end)``, buckets anchored at ``anchor``."""
        ...

    async def fetch_interval_samples(
        self, category: str, query: IntervalQuery
    ) -> list[IntervalSample]:
        """Category samples of type ``category`` matching ``query``."""
        ...

    def is_connected(self) -> bool:
        """Whether real health data is available."""
        ...

    @property
    def data_source(self) -> str:
        """Label for the active data source: 'apple_health', 'memory', or 'mock'."""
        ...

    def get_provenance(self) -> dict[str, str]:
        """Return provenance metadata for status reporting."""
        ...
