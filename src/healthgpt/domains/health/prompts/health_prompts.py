"""System prompts for the two operating modes, plus their MCP prompt registrations.

Tool-use mode embeds no data and tells the model to call the health data
tools. Legacy mode, for backends without tool-calling, embeds a fixed
14-day summary up front.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import TYPE_CHECKING

from fastmcp import FastMCP

from healthgpt.domains.health.domain_logic.health_data_models import DailyHealthBundle

if TYPE_CHECKING:
    from healthgpt.domains.health.domain_logic.health_data_fetcher import HealthDataFetcher

LEGACY_DAYS = 14

_IDENTITY = (
    "You are HealthGPT, an enthusiastic, expert caretaker with a deep understanding "
    "in personal health."
)


def _format_today(today: date) -> str:
    return f"{today:%A, %B} {today.day}, {today.year}"


def _today_line(today: date | None) -> str:
    if today is None:
        return (
            "- The last day in a tool result is today. You do not have complete data about "
            "the current day. Get the tool_use_instructions prompt for today's date."
        )
    return f"- Today is {_format_today(today)}. You do not have data about the current day."


def build_tool_use_prompt(today: date | None = None) -> str:
    """System instructions for tool-use mode.

    Without ``today`` the text carries no date, for instructions that outlive
    the day they were built on; the model is pointed at the
    ``tool_use_instructions`` prompt instead.
    """
    return f"""\
{_IDENTITY} You have access to tools that let you fetch the user's real Apple Health data on demand.

IMPORTANT: You do NOT have any health data pre-loaded. You MUST call the available tools to fetch data \
before answering any health-related questions. Do not guess or make up health data.

Available tools:
- get_health_metric: Fetch daily values for a specific metric (steps, activeEnergy, exerciseMinutes, \
bodyWeight, restingHeartRate, sleep) over a given number of past days (1-90).
- get_available_metrics: List all available health metrics and their descriptions.
- compare_periods: Compare a health metric between two time periods to identify trends.

Guidelines:
- When the user asks about their health, call the appropriate tool(s) to fetch the relevant data first.
- If the user asks a vague question, fetch the most relevant metrics for the last 7 days.
- If numbers seem low, provide advice on how they can improve.
- Provide concise, actionable insights rather than just repeating raw numbers.
{_today_line(today)}"""


def build_legacy_preamble(today: date | None = None) -> str:
    """Legacy-mode instructions without the data section; undated without ``today``."""
    if today is None:
        today_text = "Get the legacy_health_summary prompt for the data and today's date. "
    else:
        today_text = f"Today is {_format_today(today)}. "
    return (
        f"{_IDENTITY} Given the context, provide a short response that could answer the "
        "user's question. Do NOT provide statistics. If numbers seem low, provide advice on "
        "how they can improve.\n\n"
        "Some health metrics over the past two weeks (14 days) to incorporate is given below. "
        "If a value is zero, the user has not inputted anything for that day. "
        f"{today_text}Note that you do not have data about the current day. \n\n"
    )


def build_legacy_prompt(health_data: Sequence[DailyHealthBundle], today: date) -> str:
    """Legacy-mode instructions with one line per day of the 14-day dump.

    Raises:
        ValueError: If fewer than 14 days are supplied.
    """
    if len(health_data) < LEGACY_DAYS:
        raise ValueError(
            f"Expected {LEGACY_DAYS} days of health data, got {len(health_data)}"
        )
    prompt = build_legacy_preamble(today)
    for day in range(LEGACY_DAYS):
        bundle = health_data[day]
        prompt += f"{bundle.date}: {format_day(bundle)} \n"
    return prompt


def format_day(bundle: DailyHealthBundle) -> str:
    """Concatenate whichever metrics are present for one day."""
    text = ""
    if bundle.steps is not None:
        text += f"{int(bundle.steps)} steps,"
    if bundle.sleep_hours is not None:
        text += f" {int(bundle.sleep_hours)} hours of sleep,"
    if bundle.active_energy is not None:
        text += f" {int(bundle.active_energy)} calories burned,"
    if bundle.exercise_minutes is not None:
        text += f" {int(bundle.exercise_minutes)} minutes of exercise,"
    if bundle.body_weight is not None:
        text += f" {bundle.body_weight:.1f} lbs of body weight,"
    if bundle.resting_heart_rate is not None:
        text += f"and {bundle.resting_heart_rate:.1f} bpm average resting heart rate."
    return text


def register_health_prompts(mcp: FastMCP, fetcher: HealthDataFetcher) -> None:
    """Register the system prompts for both modes as MCP prompts."""

    @mcp.prompt()
    def tool_use_instructions() -> str:
        """System instructions for models that can call the health data tools."""
        return build_tool_use_prompt(fetcher.today())

    @mcp.prompt()
    async def legacy_health_summary() -> str:
        """System instructions embedding the last 14 days of health data."""
        health_data = await fetcher.fetch_last_two_weeks()
        return build_legacy_prompt(health_data, fetcher.today())
