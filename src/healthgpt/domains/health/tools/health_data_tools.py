"""MCP tools that let the model fetch health data on demand.

Arguments come from an LLM, so every tool validates defensively: an unknown
metric falls back to steps, an unusable day count falls back to 7 or is
clamped to [1, 90], and validation or date problems come back as plain text
the model can read and correct. Provider failures are not recovered here;
they propagate to the MCP session as tool errors.
"""

from __future__ import annotations

import logging
import statistics
from collections.abc import Awaitable, Callable, Sequence
from typing import Annotated, Protocol

from fastmcp import FastMCP
from pydantic import Field

from healthgpt.domains.health.domain_logic.health_data_fetcher import (
    DataAccessError,
    DataAccessErrorKind,
    HealthDataFetcher,
)
from healthgpt.domains.health.domain_logic.health_data_models import DateRange
from healthgpt.domains.health.domain_logic.metric_catalog import (
    METRIC_CATALOG,
    METRIC_KEYS,
    HealthMetric,
    MetricDefinition,
    available_metrics,
    lookup_metric,
)

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 7
MIN_DAYS = 1
MAX_DAYS = 90

UNSUPPORTED_METRIC = "Error: Unsupported metric."

# The enum is advertised to the model but not enforced, so a near-miss key
# reaches the steps fallback instead of failing schema validation.
MetricArg = Annotated[
    str,
    Field(
        description="The health metric to fetch",
        json_schema_extra={"enum": METRIC_KEYS},
    ),
]


class HealthTool(Protocol):
    """What the server needs to expose a tool to the model."""

    name: str
    description: str
    execute: Callable[..., Awaitable[str]]


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def clamp_days(days: str | int | None) -> int:
    """Parse a model-supplied day count; default 7, clamped to [1, 90]."""
    try:
        parsed = int(str(days).strip())
    except (TypeError, ValueError):
        logger.warning("Unparseable day count %r; using %d", days, DEFAULT_DAYS)
        return DEFAULT_DAYS
    return max(MIN_DAYS, min(parsed, MAX_DAYS))


def resolve_metric(key: str | None) -> MetricDefinition:
    """Catalog entry for ``key``, falling back to steps for unknown keys."""
    definition = lookup_metric(key)
    if definition is None:
        logger.warning("Unknown metric %r; falling back to steps", key)
        return METRIC_CATALOG[HealthMetric.STEPS]
    return definition


def series_average(values: Sequence[float]) -> float:
    """Arithmetic mean, or 0 for an empty series."""
    if not values:
        return 0.0
    return statistics.fmean(values)


def percent_change(current: float, baseline: float) -> float:
    """Signed percent change from ``baseline``; 0 when the baseline is 0."""
    if baseline == 0:
        return 0.0
    return (current - baseline) / baseline * 100


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

class GetAvailableMetricsTool:
    name = "get_available_metrics"
    description = (
        "List all available health metrics that can be queried. "
        "Call this if unsure which metrics are available."
    )

    async def execute(self) -> str:
        """List all available health metrics that can be queried."""
        lines = [f"- {d.key}: {d.description}" for d in available_metrics()]
        return "Available health metrics:\n" + "\n".join(lines)


class GetHealthMetricTool:
    name = "get_health_metric"
    description = (
        "Fetch daily values for a specific health metric over a given number of past days. "
        "Use this to retrieve step counts, active energy, exercise minutes, body weight, "
        "resting heart rate, or sleep data."
    )

    def __init__(self, fetcher: HealthDataFetcher) -> None:
        self._fetcher = fetcher

    async def execute(
        self,
        metric: MetricArg,
        days: Annotated[
            str | int, Field(description="Number of past days to fetch (1-90)")
        ] = str(DEFAULT_DAYS),
    ) -> str:
        """Fetch daily values for one health metric over the last N days."""
        clamped_days = clamp_days(days)
        definition = resolve_metric(metric)
        logger.info("get_health_metric: metric=%s days=%d", definition.key, clamped_days)

        try:
            date_range = self._fetcher.last_days_range(clamped_days)
        except DataAccessError as exc:
            if exc.kind is DataAccessErrorKind.DATE_ARITHMETIC_FAILURE:
                return "Error: Could not calculate date range."
            raise

        header = f"{definition.display_name} for the last {clamped_days} days:"
        if definition.is_sleep:
            sleep = await self._fetcher.fetch_sleep_series(date_range)
            lines = [f"{p.date.isoformat()}: {p.hours:.1f} {definition.value_label}" for p in sleep]
            return header + "\n" + "\n".join(lines)

        query = definition.quantity
        if query is None:
            return UNSUPPORTED_METRIC
        try:
            series = await self._fetcher.fetch_quantity_series(
                query.identifier, query.unit, query.aggregation, date_range
            )
        except DataAccessError as exc:
            if exc.kind is DataAccessErrorKind.INVALID_METRIC_TYPE:
                return UNSUPPORTED_METRIC
            raise
        lines = [f"{p.date.isoformat()}: {p.value:.1f} {definition.value_label}" for p in series]
        return header + "\n" + "\n".join(lines)


class ComparePeriodsTool:
    name = "compare_periods"
    description = (
        "Compare a health metric between two time periods. Specify each period as days ago "
        "from today. For example, period1Start=7, period1End=0 means the last 7 days; "
        "period2Start=14, period2End=7 means the 7 days before that."
    )

    def __init__(self, fetcher: HealthDataFetcher) -> None:
        self._fetcher = fetcher

    async def execute(
        self,
        metric: MetricArg,
        period1Start: Annotated[  # noqa: N803
            int, Field(description="Start of period 1 in days ago (e.g. 7 means 7 days ago)")
        ],
        period1End: Annotated[  # noqa: N803
            int, Field(description="End of period 1 in days ago (e.g. 0 means today)")
        ],
        period2Start: Annotated[int, Field(description="Start of period 2 in days ago")],  # noqa: N803
        period2End: Annotated[int, Field(description="End of period 2 in days ago")],  # noqa: N803
    ) -> str:
        """Compare the daily average of a metric across two periods."""
        definition = resolve_metric(metric)
        logger.info(
            "compare_periods: metric=%s period1=(%d, %d) period2=(%d, %d)",
            definition.key, period1Start, period1End, period2Start, period2End,
        )

        try:
            first = self._fetcher.period_range(period1Start, period1End)
            second = self._fetcher.period_range(period2Start, period2End)
        except DataAccessError as exc:
            if exc.kind is DataAccessErrorKind.DATE_ARITHMETIC_FAILURE:
                return "Error: Could not calculate date ranges."
            raise

        try:
            avg1 = series_average(await self._fetch_values(definition, first))
            avg2 = series_average(await self._fetch_values(definition, second))
        except DataAccessError as exc:
            if exc.kind is DataAccessErrorKind.INVALID_METRIC_TYPE:
                return UNSUPPORTED_METRIC
            raise

        diff = avg1 - avg2
        change = percent_change(avg1, avg2)
        return "\n".join([
            f"{definition.display_name} comparison:",
            f"Period 1 ({first.label()}): avg {avg1:.1f}",
            f"Period 2 ({second.label()}): avg {avg2:.1f}",
            f"Difference: {diff:+.1f} ({change:+.1f}%)",
        ])

    async def _fetch_values(self, definition: MetricDefinition, date_range: DateRange) -> list[float]:
        if definition.is_sleep:
            return [p.hours for p in await self._fetcher.fetch_sleep_series(date_range)]
        query = definition.quantity
        if query is None:
            raise DataAccessError(
                DataAccessErrorKind.INVALID_METRIC_TYPE,
                f"{definition.key} has no quantity query",
            )
        series = await self._fetcher.fetch_quantity_series(
            query.identifier, query.unit, query.aggregation, date_range
        )
        return [p.value for p in series]


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def default_health_tools(fetcher: HealthDataFetcher) -> list[HealthTool]:
    """The tools exposed in tool-use mode, in listing order."""
    return [
        GetHealthMetricTool(fetcher),
        GetAvailableMetricsTool(),
        ComparePeriodsTool(fetcher),
    ]


def register_health_data_tools(mcp: FastMCP, tools: Sequence[HealthTool]) -> list[str]:
    """Register ``tools`` on the MCP server, in order, and return their names.

    Raises:
        ValueError: If two tools share a name.
    """
    names: list[str] = []
    for tool in tools:
        if tool.name in names:
            raise ValueError(f"Duplicate tool name: {tool.name!r}")
        mcp.tool(tool.execute, name=tool.name, description=tool.description)
        names.append(tool.name)
        logger.debug("Registered tool %s", tool.name)
    return names
