"""Data access layer: daily series for any catalog metric over any date range.

Quantity metrics map onto one daily statistics query. Sleep cannot: the
provider's native buckets run midnight to midnight, while a "sleep night" runs
15:00 on the previous day to 15:00 on the day itself. Sleep is therefore
queried day by day, one window at a time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import TYPE_CHECKING

from healthgpt.domains.health.connectors import (
    DailyStatistic,
    IntervalQuery,
    IntervalSample,
)
from healthgpt.domains.health.domain_logic.health_data_models import (
    DailyDataPoint,
    DailyHealthBundle,
    DateRange,
    SleepDataPoint,
)
from healthgpt.domains.health.domain_logic.metric_catalog import (
    ASLEEP_VALUES,
    SLEEP_ANALYSIS,
    Aggregation,
    HealthMetric,
    HealthUnit,
    available_metrics,
    quantity_identifiers,
)

if TYPE_CHECKING:
    from healthgpt.domains.health.connectors import HealthDataProvider

logger = logging.getLogger(__name__)

SLEEP_WINDOW_HOUR = 15
LEGACY_DAYS = 14


class DataAccessErrorKind(str, Enum):
    INVALID_METRIC_TYPE = "invalidMetricType"
    PROVIDER_FAILURE = "providerFailure"
    DATE_ARITHMETIC_FAILURE = "dateArithmeticFailure"


class DataAccessError(Exception):
    """Raised when health data cannot be fetched."""

    def __init__(self, kind: DataAccessErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class HealthDataFetcher:
    """Fetches daily-bucketed series from a HealthDataProvider.

    Holds no mutable state beyond its collaborators, so one fetcher can serve
    any number of concurrent tool invocations.

    Args:
        provider: Read-only health data capability.
        tz: Zone defining the reference calendar.
        clock: Returns the current time; defaults to now in ``tz``.
    """

    def __init__(
        self,
        provider: HealthDataProvider,
        *,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._provider = provider
        self._tz = tz
        self._clock = clock or (lambda: datetime.now(tz))

    @property
    def provider(self) -> HealthDataProvider:
        return self._provider

    def today(self) -> date:
        return self._clock().astimezone(self._tz).date()

    # ------------------------------------------------------------------
    # Date ranges
    # ------------------------------------------------------------------

    def last_days_range(self, days: int) -> DateRange:
        """``days`` days ago through today."""
        try:
            return DateRange.last_days(days, self.today())
        except OverflowError as exc:
            raise DataAccessError(
                DataAccessErrorKind.DATE_ARITHMETIC_FAILURE,
                f"Could not compute a {days}-day range",
            ) from exc

    def period_range(self, first_offset: int, second_offset: int) -> DateRange:
        """Resolve a pair of day-offsets from today (either order) into a period."""
        try:
            return DateRange.from_offsets(first_offset, second_offset, self.today())
        except OverflowError as exc:
            raise DataAccessError(
                DataAccessErrorKind.DATE_ARITHMETIC_FAILURE,
                f"Could not compute a period for offsets {first_offset}, {second_offset}",
            ) from exc

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------

    async def fetch_quantity_series(
        self,
        identifier: str,
        unit: HealthUnit | str,
        aggregation: Aggregation | str,
        date_range: DateRange,
    ) -> list[DailyDataPoint]:
        """Daily sum/average of a quantity type, one point per day in ``date_range``.

        Days the provider reports no data for are 0.

        Raises:
            DataAccessError: ``INVALID_METRIC_TYPE`` if the identifier, unit or
                aggregation does not resolve to a statistics query;
                ``PROVIDER_FAILURE`` if the provider query fails.
        """
        if identifier not in quantity_identifiers():
            raise DataAccessError(
                DataAccessErrorKind.INVALID_METRIC_TYPE,
                f"No quantity type for identifier {identifier!r}",
            )
        try:
            unit = HealthUnit(unit)
            aggregation = Aggregation(aggregation)
        except ValueError as exc:
            raise DataAccessError(DataAccessErrorKind.INVALID_METRIC_TYPE, str(exc)) from exc

        try:
            anchor = datetime.combine(date_range.start, time.min, tzinfo=self._tz)
            end = datetime.combine(date_range.end + timedelta(days=1), time.min, tzinfo=self._tz)
        except OverflowError as exc:
            raise DataAccessError(
                DataAccessErrorKind.DATE_ARITHMETIC_FAILURE,
                f"Could not compute query bounds for {date_range}",
            ) from exc

        statistics = await self._query_statistics(identifier, unit, aggregation, anchor, end)
        lookup = {stat.day: stat.value or 0.0 for stat in statistics}
        return [DailyDataPoint(date=day, value=lookup.get(day, 0.0)) for day in date_range.days()]

    async def fetch_sleep_series(self, date_range: DateRange) -> list[SleepDataPoint]:
        """Hours asleep for each night ending on a day in ``date_range``.

        A day whose window cannot be computed is reported as 0 hours rather
        than failing the whole range.

        Raises:
            DataAccessError: ``PROVIDER_FAILURE`` if a provider query fails.
        """
        points: list[SleepDataPoint] = []
        for day in date_range.days():
            try:
                window_start = datetime.combine(
                    day - timedelta(days=1), time(SLEEP_WINDOW_HOUR), tzinfo=self._tz
                )
                window_end = datetime.combine(day, time(SLEEP_WINDOW_HOUR), tzinfo=self._tz)
            except OverflowError:
                logger.warning("Could not compute sleep window for %s; reporting 0 hours", day)
                points.append(SleepDataPoint(date=day, hours=0.0))
                continue

            query = IntervalQuery(start=window_start, end=window_end, values=ASLEEP_VALUES)
            samples = await self._query_intervals(SLEEP_ANALYSIS, query)
            seconds_asleep = sum((s.end - s.start).total_seconds() for s in samples)
            points.append(SleepDataPoint(date=day, hours=seconds_asleep / (60 * 60)))
        return points

    async def fetch_last_two_weeks(self) -> list[DailyHealthBundle]:
        """Per-day bundles of every metric for the 14 days before today, oldest first.

        A metric that cannot be fetched is left absent for all days.
        """
        today = self.today()
        try:
            date_range = DateRange(
                start=today - timedelta(days=LEGACY_DAYS), end=today - timedelta(days=1)
            )
        except OverflowError as exc:
            raise DataAccessError(
                DataAccessErrorKind.DATE_ARITHMETIC_FAILURE,
                "Could not compute the two-week range",
            ) from exc

        bundles = [DailyHealthBundle(date=day) for day in date_range.days()]
        for definition in available_metrics():
            try:
                if definition.is_sleep:
                    sleep = await self.fetch_sleep_series(date_range)
                    values = [p.hours for p in sleep]
                else:
                    query = definition.quantity
                    series = await self.fetch_quantity_series(
                        query.identifier, query.unit, query.aggregation, date_range
                    )
                    values = [p.value for p in series]
            except DataAccessError:
                logger.warning(
                    "Leaving %s out of the two-week summary", definition.key, exc_info=True
                )
                continue

            attribute = _BUNDLE_FIELDS[definition.metric]
            for bundle, value in zip(bundles, values):
                setattr(bundle, attribute, value)
        return bundles

    # ------------------------------------------------------------------
    # Provider calls
    # ------------------------------------------------------------------

    async def _query_statistics(
        self,
        identifier: str,
        unit: HealthUnit,
        aggregation: Aggregation,
        anchor: datetime,
        end: datetime,
    ) -> list[DailyStatistic]:
        try:
            return await self._provider.fetch_daily_aggregate(
                identifier, unit, aggregation, anchor, anchor, end
            )
        except Exception as exc:
            logger.exception("Statistics query for %s failed", identifier)
            raise DataAccessError(
                DataAccessErrorKind.PROVIDER_FAILURE,
                f"Health data provider failed to return {identifier}: {exc}",
            ) from exc

    async def _query_intervals(
        self, category: str, query: IntervalQuery
    ) -> list[IntervalSample]:
        try:
            return await self._provider.fetch_interval_samples(category, query)
        except Exception as exc:
            logger.exception("Sample query for %s failed", category)
            raise DataAccessError(
                DataAccessErrorKind.PROVIDER_FAILURE,
                f"Health data provider failed to return {category}: {exc}",
            ) from exc


_BUNDLE_FIELDS: dict[HealthMetric, str] = {
    HealthMetric.STEPS: "steps",
    HealthMetric.ACTIVE_ENERGY: "active_energy",
    HealthMetric.EXERCISE_MINUTES: "exercise_minutes",
    HealthMetric.BODY_WEIGHT: "body_weight",
    HealthMetric.RESTING_HEART_RATE: "resting_heart_rate",
    HealthMetric.SLEEP: "sleep_hours",
}
