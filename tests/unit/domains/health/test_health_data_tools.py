"""Unit tests for the health data tool functions."""

from __future__ import annotations

import asyncio
import math
from datetime import date, datetime, timezone

import pytest

from healthgpt.domains.health.connectors import IntervalSample
from healthgpt.domains.health.domain_logic.health_data_fetcher import (
    DataAccessError,
    DataAccessErrorKind,
    HealthDataFetcher,
)
from healthgpt.domains.health.domain_logic.metric_catalog import (
    BODY_MASS,
    METRIC_CATALOG,
    METRIC_KEYS,
    RESTING_HEART_RATE,
    SLEEP_ANALYSIS,
    STEP_COUNT,
    HealthMetric,
    available_metrics,
)
from healthgpt.domains.health.tools.health_data_tools import (
    ComparePeriodsTool,
    GetAvailableMetricsTool,
    GetHealthMetricTool,
    clamp_days,
    default_health_tools,
    percent_change,
    resolve_metric,
    series_average,
)

UTC = timezone.utc
NOW = datetime(2026, 10, 18, 10, 30, tzinfo=UTC)


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _fetcher(provider, now: datetime = NOW) -> HealthDataFetcher:
    return HealthDataFetcher(provider, tz=UTC, clock=lambda: now)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestClampDays:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(0, 1), (1, 1), (7, 7), (90, 90), (91, 90), ("abc", 7)],
    )
    def test_clamp(self, raw, expected):
        assert clamp_days(raw) == expected

    @pytest.mark.parametrize("raw", ["0", "14", " 30 ", "-5", "500", "", None, "7.5"])
    def test_idempotent(self, raw):
        once = clamp_days(raw)
        assert clamp_days(once) == once
        assert 1 <= once <= 90

    def test_monotonic(self):
        values = [clamp_days(n) for n in range(-10, 120)]
        assert values == sorted(values)


class TestResolveMetric:
    def test_known_metric(self):
        assert resolve_metric("sleep").metric is HealthMetric.SLEEP

    @pytest.mark.parametrize("key", ["heartRate", "STEPS", "", None])
    def test_unknown_falls_back_to_steps(self, key):
        assert resolve_metric(key) is METRIC_CATALOG[HealthMetric.STEPS]


class TestAverages:
    def test_empty_series_average_is_zero(self):
        assert series_average([]) == 0.0

    def test_average(self):
        assert series_average([6.0, 7.0, 8.0]) == pytest.approx(7.0)

    def test_percent_change_against_zero_baseline(self):
        change = percent_change(120.0, 0.0)
        assert change == 0.0
        assert not math.isnan(change)
        assert not math.isinf(change)

    def test_percent_change(self):
        assert percent_change(110.0, 100.0) == pytest.approx(10.0)
        assert percent_change(90.0, 100.0) == pytest.approx(-10.0)


# ---------------------------------------------------------------------------
# get_available_metrics
# ---------------------------------------------------------------------------

class TestGetAvailableMetrics:
    def test_lists_all_metrics(self):
        output = _run(GetAvailableMetricsTool().execute())
        assert output.startswith("Available health metrics:\n")
        for definition in available_metrics():
            assert f"- {definition.key}: {definition.description}" in output

    def test_lists_nothing_else(self):
        lines = _run(GetAvailableMetricsTool().execute()).splitlines()
        assert len(lines) == 1 + len(METRIC_KEYS)

    def test_metadata(self):
        assert GetAvailableMetricsTool.name == "get_available_metrics"
        assert GetAvailableMetricsTool.description


# ---------------------------------------------------------------------------
# get_health_metric
# ---------------------------------------------------------------------------

class TestGetHealthMetric:
    def test_quantity_output(self, make_provider):
        provider = make_provider(daily={
            STEP_COUNT: {date(2026, 10, 16): 8123.0, date(2026, 10, 17): 10050.0},
        })
        output = _run(GetHealthMetricTool(_fetcher(provider)).execute(metric="steps", days="2"))

        assert output.splitlines() == [
            "Steps for the last 2 days:",
            "2026-10-16: 8123.0 steps",
            "2026-10-17: 10050.0 steps",
            "2026-10-18: 0.0 steps",
        ]

    def test_average_metric_uses_catalog_parameters(self, recording_provider):
        _run(GetHealthMetricTool(_fetcher(recording_provider)).execute(
            metric="restingHeartRate", days=3
        ))
        call = recording_provider.aggregate_calls[0]
        assert call["identifier"] == RESTING_HEART_RATE
        assert call["aggregation"].value == "average"

    def test_sleep_dispatches_to_sleep_path_only(self, recording_provider):
        output = _run(GetHealthMetricTool(_fetcher(recording_provider)).execute(
            metric="sleep", days="7"
        ))
        assert recording_provider.aggregate_calls == []
        assert len(recording_provider.interval_calls) == 8
        assert all(c == SLEEP_ANALYSIS for c, _ in recording_provider.interval_calls)
        assert output.splitlines()[0] == "Sleep (hours) for the last 7 days:"
        assert output.splitlines()[-1] == "2026-10-18: 0.0 hours"

    def test_sleep_hours_formatted(self, make_provider):
        provider = make_provider(sleep=[
            IntervalSample(
                datetime(2026, 10, 17, 23, 0, tzinfo=UTC),
                datetime(2026, 10, 18, 6, 30, tzinfo=UTC),
                "HKCategoryValueSleepAnalysisAsleepDeep",
            ),
        ])
        output = _run(GetHealthMetricTool(_fetcher(provider)).execute(metric="sleep", days="1"))
        assert "2026-10-18: 7.5 hours" in output

    def test_unknown_metric_falls_back_to_steps(self, recording_provider):
        output = _run(GetHealthMetricTool(_fetcher(recording_provider)).execute(
            metric="heartbeat", days="3"
        ))
        assert output.startswith("Steps for the last 3 days:")
        assert recording_provider.aggregate_calls[0]["identifier"] == STEP_COUNT

    @pytest.mark.parametrize(("days", "lines"), [("0", 2), ("abc", 8), ("400", 91), (14, 15)])
    def test_day_count_is_clamped(self, recording_provider, days, lines):
        output = _run(GetHealthMetricTool(_fetcher(recording_provider)).execute(
            metric="bodyWeight", days=days
        ))
        assert len(output.splitlines()) == 1 + lines

    def test_dates_ascending(self, recording_provider):
        output = _run(GetHealthMetricTool(_fetcher(recording_provider)).execute(
            metric="exerciseMinutes", days="10"
        ))
        dates = [line.split(":")[0] for line in output.splitlines()[1:]]
        assert dates == sorted(dates)

    def test_date_range_failure_returns_text(self, recording_provider):
        fetcher = _fetcher(recording_provider, now=datetime(1, 1, 2, tzinfo=UTC))
        output = _run(GetHealthMetricTool(fetcher).execute(metric="steps", days="30"))
        assert output == "Error: Could not calculate date range."

    def test_provider_failure_propagates(self, make_provider):
        provider = make_provider(error=PermissionError("denied"))
        with pytest.raises(DataAccessError) as excinfo:
            _run(GetHealthMetricTool(_fetcher(provider)).execute(metric="steps", days="7"))
        assert excinfo.value.kind is DataAccessErrorKind.PROVIDER_FAILURE

    def test_idempotent(self, make_provider):
        provider = make_provider(daily={BODY_MASS: {date(2026, 10, 15): 177.4}})
        tool = GetHealthMetricTool(_fetcher(provider))
        first = _run(tool.execute(metric="bodyWeight", days="5"))
        second = _run(tool.execute(metric="bodyWeight", days="5"))
        assert first == second

    def test_metadata(self):
        assert GetHealthMetricTool.name == "get_health_metric"
        assert "health metric" in GetHealthMetricTool.description


# ---------------------------------------------------------------------------
# compare_periods
# ---------------------------------------------------------------------------

class TestComparePeriods:
    def _steps_provider(self, make_provider):
        daily = {}
        for day in range(5, 12):  # Oct 5 - Oct 11
            daily[date(2026, 10, day)] = 8000.0
        for day in range(12, 19):  # Oct 12 - Oct 18
            daily[date(2026, 10, day)] = 10000.0
        return make_provider(daily={STEP_COUNT: daily})

    def test_week_over_week(self, make_provider):
        provider = self._steps_provider(make_provider)
        output = _run(ComparePeriodsTool(_fetcher(provider)).execute(
            metric="steps", period1Start=7, period1End=0, period2Start=14, period2End=7
        ))
        assert output.splitlines() == [
            "Steps comparison:",
            "Period 1 (Oct 12 - Oct 18): avg 10000.0",
            "Period 2 (Oct 5 - Oct 11): avg 8000.0",
            "Difference: +2000.0 (+25.0%)",
        ]

    def test_offset_order_does_not_matter(self, make_provider):
        provider = self._steps_provider(make_provider)
        tool = ComparePeriodsTool(_fetcher(provider))
        forward = _run(tool.execute(
            metric="steps", period1Start=7, period1End=0, period2Start=14, period2End=7
        ))
        reversed_ = _run(tool.execute(
            metric="steps", period1Start=0, period1End=7, period2Start=7, period2End=14
        ))
        assert forward == reversed_

    def test_periods_are_adjacent_without_overlap(self, recording_provider):
        _run(ComparePeriodsTool(_fetcher(recording_provider)).execute(
            metric="activeEnergy", period1Start=7, period1End=0, period2Start=14, period2End=7
        ))
        first, second = recording_provider.aggregate_calls
        assert first["start"] == datetime(2026, 10, 12, tzinfo=UTC)
        assert first["end"] == datetime(2026, 10, 19, tzinfo=UTC)
        assert second["start"] == datetime(2026, 10, 5, tzinfo=UTC)
        assert second["end"] == first["start"]

    def test_negative_change(self, make_provider):
        provider = make_provider(daily={BODY_MASS: {
            date(2026, 10, 18): 176.0,
            date(2026, 10, 11): 180.0,
        }})
        output = _run(ComparePeriodsTool(_fetcher(provider)).execute(
            metric="bodyWeight", period1Start=1, period1End=0, period2Start=8, period2End=7
        ))
        assert output.splitlines()[-1] == "Difference: -4.0 (-2.2%)"

    def test_zero_baseline_reports_zero_percent(self, make_provider):
        provider = make_provider(daily={STEP_COUNT: {date(2026, 10, 18): 5000.0}})
        output = _run(ComparePeriodsTool(_fetcher(provider)).execute(
            metric="steps", period1Start=1, period1End=0, period2Start=30, period2End=20
        ))
        assert output.splitlines()[2].endswith("avg 0.0")
        assert output.splitlines()[-1] == "Difference: +5000.0 (+0.0%)"
        assert "nan" not in output.lower()
        assert "inf" not in output.lower()

    def test_period_ending_today_includes_today(self, make_provider):
        provider = make_provider(daily={STEP_COUNT: {date(2026, 10, 18): 9000.0}})
        fetcher = _fetcher(provider)
        compared = _run(ComparePeriodsTool(fetcher).execute(
            metric="steps", period1Start=7, period1End=0, period2Start=14, period2End=7
        ))
        latest = _run(GetHealthMetricTool(fetcher).execute(metric="steps", days="1"))

        assert "2026-10-18: 9000.0 steps" in latest
        assert "Period 1 (Oct 12 - Oct 18): avg 1285.7" in compared

    def test_sleep_uses_sleep_path(self, recording_provider):
        output = _run(ComparePeriodsTool(_fetcher(recording_provider)).execute(
            metric="sleep", period1Start=3, period1End=0, period2Start=6, period2End=3
        ))
        assert recording_provider.aggregate_calls == []
        assert len(recording_provider.interval_calls) == 6
        assert output.startswith("Sleep (hours) comparison:")

    def test_unknown_metric_falls_back_to_steps(self, recording_provider):
        output = _run(ComparePeriodsTool(_fetcher(recording_provider)).execute(
            metric="vo2max", period1Start=7, period1End=0, period2Start=14, period2End=7
        ))
        assert output.startswith("Steps comparison:")

    def test_date_range_failure_returns_text(self, recording_provider):
        output = _run(ComparePeriodsTool(_fetcher(recording_provider)).execute(
            metric="steps", period1Start=10**9, period1End=0, period2Start=14, period2End=7
        ))
        assert output == "Error: Could not calculate date ranges."
        assert recording_provider.aggregate_calls == []

    def test_metadata(self):
        assert ComparePeriodsTool.name == "compare_periods"
        assert "Compare" in ComparePeriodsTool.description


class TestToolList:
    def test_names_unique_and_ordered(self, fetcher):
        names = [tool.name for tool in default_health_tools(fetcher)]
        assert names == ["get_health_metric", "get_available_metrics", "compare_periods"]
        assert len(set(names)) == len(names)

    def test_tools_share_no_mutable_state(self, fetcher):
        tools = default_health_tools(fetcher)
        assert len({id(tool) for tool in tools}) == len(tools)
