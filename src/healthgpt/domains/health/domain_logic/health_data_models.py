"""Transient value types produced per tool invocation (never persisted)."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days in the reference calendar."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"DateRange start {self.start} is after end {self.end}")

    @classmethod
    def last_days(cls, days: int, today: date) -> DateRange:
        """``days`` days ago through today.

        Raises:
            OverflowError: If the start falls outside the supported calendar.
        """
        return cls(start=today - timedelta(days=days), end=today)

    @classmethod
    def from_offsets(cls, first: int, second: int, today: date) -> DateRange:
        """Resolve two day-offsets from today, in either order, into a period.

        The period ends on the day ``min`` offset days ago and reaches back to
        the day after ``max`` offset days ago, so ``(7, 0)`` is the last seven
        days including today and ``(14, 7)`` the seven days before those.
        Equal offsets resolve to that single day.

        Raises:
            OverflowError: If either bound falls outside the supported calendar.
        """
        hi, lo = max(first, second), min(first, second)
        end = today - timedelta(days=lo)
        if hi == lo:
            return cls(start=end, end=end)
        return cls(start=today - timedelta(days=hi - 1), end=end)

    @property
    def day_count(self) -> int:
        return (self.end - self.start).days + 1

    def days(self) -> Iterator[date]:
        """Yield every calendar day from start to end, inclusive."""
        current = self.start
        while True:
            yield current
            if current >= self.end:
                return
            current += timedelta(days=1)

    def label(self) -> str:
        """Short month-day label, e.g. ``Oct 12 - Oct 18``."""
        return f"{_month_day(self.start)} - {_month_day(self.end)}"


def _month_day(day: date) -> str:
    return f"{day:%b} {day.day}"


@dataclass(frozen=True)
class DailyDataPoint:
    """One day of a quantity metric; days without provider data hold 0."""

    date: date
    value: float


@dataclass(frozen=True)
class SleepDataPoint:
    """Hours asleep during the night ending on ``date`` (15:00 to 15:00)."""

    date: date
    hours: float


@dataclass
class DailyHealthBundle:
    """All metrics for one day, as embedded in the legacy data-dump prompt."""

    date: date
    steps: float | None = None
    sleep_hours: float | None = None
    active_energy: float | None = None
    exercise_minutes: float | None = None
    body_weight: float | None = None
    resting_heart_rate: float | None = None
