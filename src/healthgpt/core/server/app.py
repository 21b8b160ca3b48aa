"""HealthGPT MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, tzinfo
from pathlib import Path

from fastmcp import FastMCP

from healthgpt.core.config.settings import Settings, get_settings
from healthgpt.domains.health.connectors import HealthDataProvider
from healthgpt.domains.health.connectors.apple_health import AppleHealthProvider
from healthgpt.domains.health.connectors.providers import MockHealthDataProvider
from healthgpt.domains.health.domain_logic.health_data_fetcher import HealthDataFetcher
from healthgpt.domains.health.prompts.health_prompts import (
    build_legacy_preamble,
    build_tool_use_prompt,
    register_health_prompts,
)
from healthgpt.domains.health.tools.health_data_tools import (
    HealthTool,
    default_health_tools,
    register_health_data_tools,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "HealthGPT"
SERVER_VERSION = "0.1.0"


def _create_health_data_provider(settings: Settings, tz: tzinfo) -> HealthDataProvider:
    """Pick the configured provider, falling back to mock data."""
    if settings.health_data_source == "apple_health":
        export_path = settings.apple_health_export_path
        if export_path and Path(export_path).expanduser().exists():
            logger.info("Using Apple Health export at %s", export_path)
            return AppleHealthProvider(str(Path(export_path).expanduser()))
        logger.warning(
            "Apple Health export %r not found; falling back to mock health data",
            export_path,
        )
    logger.info("Using mock health data provider")
    return MockHealthDataProvider(tz)


def create_app(
    *,
    health_data_provider_override: HealthDataProvider | None = None,
    clock_override: Callable[[], datetime] | None = None,
    tools_override: Sequence[HealthTool] | None = None,
) -> FastMCP:
    """Create and configure the HealthGPT MCP server.

    This is the main application factory. It:
    1. Loads settings and the reference calendar
    2. Initializes the health data provider (Apple Health export or mock)
    3. Builds the data fetcher shared by all tools
    4. Creates the FastMCP server with mode-specific, undated instructions
    5. Registers the health data tools (tool-use mode only), health_check and prompts
    """
    settings = get_settings()
    tz = settings.tzinfo

    # --- Initialize health data provider ---
    if health_data_provider_override is not None:
        provider = health_data_provider_override
    else:
        provider = _create_health_data_provider(settings, tz)

    fetcher = HealthDataFetcher(provider, tz=tz, clock=clock_override)

    # --- Tools: explicit, ordered list ---
    if settings.tools_enabled:
        tools = list(tools_override) if tools_override is not None else default_health_tools(fetcher)
        instructions = build_tool_use_prompt()
    else:
        tools = []
        instructions = build_legacy_preamble()
        logger.info("Tool-use mode disabled; serving the legacy data-dump prompt only")

    # --- Server instance ---
    server = FastMCP(SERVER_NAME, instructions=instructions)

    tool_names = register_health_data_tools(server, tools)
    logger.info("Health data tools registered: %s", ", ".join(tool_names) or "none")

    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "data_source": provider.data_source,
            "provider_connected": provider.is_connected(),
            "tools": tool_names,
        }

    # --- Register prompts ---
    register_health_prompts(server, fetcher)

    return server


# Module-level instance for FastMCP discovery ("...app.py:mcp").
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
