"""Health metric catalog: the single source of truth for metric → provider mapping.

Five metrics are HealthKit quantity types queried through daily statistics
(sum or average). Sleep is a category type queried as raw intervals and summed
per 15:00-to-15:00 window, so it carries no quantity query at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class HealthMetric(str, Enum):
    """Canonical metric keys, as exposed to the LLM."""

    STEPS = "steps"
    ACTIVE_ENERGY = "activeEnergy"
    EXERCISE_MINUTES = "exerciseMinutes"
    BODY_WEIGHT = "bodyWeight"
    RESTING_HEART_RATE = "restingHeartRate"
    SLEEP = "sleep"

    @classmethod
    def parse(cls, key: str | None) -> HealthMetric | None:
        """Return the metric for a raw key, or None when the key is unknown."""
        if key is None:
            return None
        try:
            return cls(key)
        except ValueError:
            return None


class MetricKind(str, Enum):
    """Discriminant for the two provider query shapes."""

    QUANTITY = "quantity"
    SLEEP = "sleep"


class Aggregation(str, Enum):
    """How samples within a day bucket are combined."""

    SUM = "sum"
    AVERAGE = "average"


class HealthUnit(str, Enum):
    """Units values are converted to before aggregation (HealthKit unit strings)."""

    COUNT = "count"
    KILOCALORIE = "kcal"
    MINUTE = "min"
    POUND = "lb"
    BEATS_PER_MINUTE = "count/min"


# HealthKit sample type identifiers
STEP_COUNT = "HKQuantityTypeIdentifierStepCount"
ACTIVE_ENERGY_BURNED = "HKQuantityTypeIdentifierActiveEnergyBurned"
APPLE_EXERCISE_TIME = "HKQuantityTypeIdentifierAppleExerciseTime"
BODY_MASS = "HKQuantityTypeIdentifierBodyMass"
RESTING_HEART_RATE = "HKQuantityTypeIdentifierRestingHeartRate"

SLEEP_ANALYSIS = "HKCategoryTypeIdentifierSleepAnalysis"

# Category values that count as "asleep" (in-bed and awake are excluded).
ASLEEP_VALUES = frozenset({
    "HKCategoryValueSleepAnalysisAsleep",
    "HKCategoryValueSleepAnalysisAsleepUnspecified",
    "HKCategoryValueSleepAnalysisAsleepCore",
    "HKCategoryValueSleepAnalysisAsleepDeep",
    "HKCategoryValueSleepAnalysisAsleepREM",
})


@dataclass(frozen=True)
class QuantityQuery:
    """Provider parameters for a daily statistics query."""

    identifier: str
    unit: HealthUnit
    aggregation: Aggregation


@dataclass(frozen=True)
class MetricDefinition:
    """One catalog entry.

    ``quantity`` is present for every quantity metric and absent for sleep;
    construction fails otherwise, so no caller can observe a quantity metric
    without provider parameters.
    """

    metric: HealthMetric
    kind: MetricKind
    display_name: str
    description: str
    value_label: str
    quantity: QuantityQuery | None = None

    def __post_init__(self) -> None:
        if self.kind is MetricKind.SLEEP:
            if self.metric is not HealthMetric.SLEEP or self.quantity is not None:
                raise ValueError(
                    f"{self.metric.value}: sleep entries must be the sleep metric "
                    "and carry no quantity query"
                )
        elif self.kind is MetricKind.QUANTITY:
            if self.metric is HealthMetric.SLEEP or self.quantity is None:
                raise ValueError(
                    f"{self.metric.value}: quantity entries need identifier, unit and aggregation"
                )
        else:  # pragma: no cover
            raise ValueError(f"Unknown metric kind: {self.kind!r}")

    @property
    def key(self) -> str:
        return self.metric.value

    @property
    def is_sleep(self) -> bool:
        return self.kind is MetricKind.SLEEP

    @property
    def provider_identifier(self) -> str | None:
        return self.quantity.identifier if self.quantity is not None else None

    @property
    def unit(self) -> HealthUnit | None:
        return self.quantity.unit if self.quantity is not None else None

    @property
    def aggregation(self) -> Aggregation | None:
        return self.quantity.aggregation if self.quantity is not None else None


def _quantity(
    metric: HealthMetric,
    identifier: str,
    unit: HealthUnit,
    aggregation: Aggregation,
    *,
    display_name: str,
    description: str,
    value_label: str,
) -> MetricDefinition:
    return MetricDefinition(
        metric=metric,
        kind=MetricKind.QUANTITY,
        display_name=display_name,
        description=description,
        value_label=value_label,
        quantity=QuantityQuery(identifier=identifier, unit=unit, aggregation=aggregation),
    )


METRIC_CATALOG: dict[HealthMetric, MetricDefinition] = {
    HealthMetric.STEPS: _quantity(
        HealthMetric.STEPS,
        STEP_COUNT,
        HealthUnit.COUNT,
        Aggregation.SUM,
        display_name="Steps",
        description="Daily step count",
        value_label="steps",
    ),
    HealthMetric.ACTIVE_ENERGY: _quantity(
        HealthMetric.ACTIVE_ENERGY,
        ACTIVE_ENERGY_BURNED,
        HealthUnit.KILOCALORIE,
        Aggregation.SUM,
        display_name="Active Energy (calories)",
        description="Active energy burned in calories",
        value_label="kcal",
    ),
    HealthMetric.EXERCISE_MINUTES: _quantity(
        HealthMetric.EXERCISE_MINUTES,
        APPLE_EXERCISE_TIME,
        HealthUnit.MINUTE,
        Aggregation.SUM,
        display_name="Exercise Minutes",
        description="Minutes of exercise",
        value_label="min",
    ),
    HealthMetric.BODY_WEIGHT: _quantity(
        HealthMetric.BODY_WEIGHT,
        BODY_MASS,
        HealthUnit.POUND,
        Aggregation.AVERAGE,
        display_name="Body Weight (lbs)",
        description="Body weight in pounds",
        value_label="lbs",
    ),
    HealthMetric.RESTING_HEART_RATE: _quantity(
        HealthMetric.RESTING_HEART_RATE,
        RESTING_HEART_RATE,
        HealthUnit.BEATS_PER_MINUTE,
        Aggregation.AVERAGE,
        display_name="Resting Heart Rate (bpm)",
        description="Average resting heart rate in beats per minute",
        value_label="bpm",
    ),
    HealthMetric.SLEEP: MetricDefinition(
        metric=HealthMetric.SLEEP,
        kind=MetricKind.SLEEP,
        display_name="Sleep (hours)",
        description="Hours of sleep per night",
        value_label="hours",
    ),
}

METRIC_KEYS: list[str] = [metric.value for metric in METRIC_CATALOG]


def lookup_metric(key: str | None) -> MetricDefinition | None:
    """Return the catalog entry for a raw metric key, or None if unsupported."""
    metric = HealthMetric.parse(key)
    if metric is None:
        return None
    return METRIC_CATALOG[metric]


def available_metrics() -> list[MetricDefinition]:
    """All catalog entries in canonical order."""
    return list(METRIC_CATALOG.values())


def quantity_identifiers() -> frozenset[str]:
    """Provider identifiers that resolve to a daily statistics query."""
    return frozenset(
        d.quantity.identifier for d in METRIC_CATALOG.values() if d.quantity is not None
    )
