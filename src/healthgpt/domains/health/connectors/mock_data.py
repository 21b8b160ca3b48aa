"""Mock health data generators for development and testing.

All mock data represents a median healthy adult, not in crisis, not perfectly
optimized. Values are derived from the date alone, so repeated queries for
the same day always agree.
"""

from __future__ import annotations

import random
from datetime import date, datetime, time, timedelta, tzinfo

from healthgpt.domains.health.connectors import IntervalSample
from healthgpt.domains.health.domain_logic.metric_catalog import (
    ACTIVE_ENERGY_BURNED,
    APPLE_EXERCISE_TIME,
    BODY_MASS,
    RESTING_HEART_RATE,
    STEP_COUNT,
    HealthUnit,
)

# identifier -> (daily baseline, spread, unit)
_BASELINES: dict[str, tuple[float, float, HealthUnit]] = {
    STEP_COUNT: (8200.0, 2500.0, HealthUnit.COUNT),
    ACTIVE_ENERGY_BURNED: (450.0, 120.0, HealthUnit.KILOCALORIE),
    APPLE_EXERCISE_TIME: (32.0, 18.0, HealthUnit.MINUTE),
    BODY_MASS: (178.0, 1.2, HealthUnit.POUND),
    RESTING_HEART_RATE: (68.0, 3.0, HealthUnit.BEATS_PER_MINUTE),
}

# Weigh-ins happen on roughly half the days.
_WEIGH_IN_PROBABILITY = 0.5


def _rng(key: str, day: date) -> random.Random:
    return random.Random(f"{key}:{day.isoformat()}")


def get_mock_daily_value(identifier: str, day: date) -> tuple[float, HealthUnit] | None:
    """Return the mock reading for ``identifier`` on ``day`` and its unit, or None for no data."""
    baseline = _BASELINES.get(identifier)
    if baseline is None:
        return None
    mean, spread, unit = baseline
    rng = _rng(identifier, day)
    if identifier == BODY_MASS and rng.random() > _WEIGH_IN_PROBABILITY:
        return None
    value = max(0.0, rng.gauss(mean, spread / 2))
    if unit is HealthUnit.COUNT:
        value = float(round(value))
    return round(value, 1), unit


def get_mock_sleep_segments(wake_day: date, tz: tzinfo) -> list[IntervalSample]:
    """Return the sleep stage segments for the night ending on ``wake_day``."""
    rng = _rng("sleep", wake_day)
    bedtime = datetime.combine(wake_day - timedelta(days=1), time(22, 30), tzinfo=tz)
    bedtime += timedelta(minutes=rng.randint(0, 90))
    asleep_hours = rng.uniform(6.2, 8.0)

    core_end = bedtime + timedelta(hours=asleep_hours * 0.55)
    deep_end = core_end + timedelta(hours=asleep_hours * 0.2)
    awake_end = deep_end + timedelta(minutes=10)
    rem_end = awake_end + timedelta(hours=asleep_hours * 0.25)

    return [
        IntervalSample(bedtime, core_end, "HKCategoryValueSleepAnalysisAsleepCore"),
        IntervalSample(core_end, deep_end, "HKCategoryValueSleepAnalysisAsleepDeep"),
        IntervalSample(deep_end, awake_end, "HKCategoryValueSleepAnalysisAwake"),
        IntervalSample(awake_end, rem_end, "HKCategoryValueSleepAnalysisAsleepREM"),
    ]
