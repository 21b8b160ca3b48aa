"""Conversion from recorded units to catalog units."""

from __future__ import annotations

from healthgpt.domains.health.domain_logic.metric_catalog import HealthUnit


class UnitConversionError(ValueError):
    """Raised when a recorded unit cannot be expressed in the requested unit."""


# (recorded unit, target unit) -> multiplier
_FACTORS: dict[tuple[str, HealthUnit], float] = {
    ("count", HealthUnit.COUNT): 1.0,
    ("kcal", HealthUnit.KILOCALORIE): 1.0,
    ("Cal", HealthUnit.KILOCALORIE): 1.0,
    ("cal", HealthUnit.KILOCALORIE): 0.001,
    ("kJ", HealthUnit.KILOCALORIE): 1 / 4.184,
    ("min", HealthUnit.MINUTE): 1.0,
    ("hr", HealthUnit.MINUTE): 60.0,
    ("s", HealthUnit.MINUTE): 1 / 60,
    ("lb", HealthUnit.POUND): 1.0,
    ("kg", HealthUnit.POUND): 2.20462262,
    ("g", HealthUnit.POUND): 0.00220462262,
    ("count/min", HealthUnit.BEATS_PER_MINUTE): 1.0,
}


def convert_value(value: float, recorded_unit: str, target: HealthUnit) -> float:
    """Convert ``value`` from ``recorded_unit`` into ``target``."""
    try:
        factor = _FACTORS[(recorded_unit, target)]
    except KeyError:
        raise UnitConversionError(
            f"Cannot convert {recorded_unit!r} to {target.value!r}"
        ) from None
    return value * factor
