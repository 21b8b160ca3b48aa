"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """HealthGPT MCP server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the tools.
    healthgpt_host: str = "127.0.0.1"
    healthgpt_port: int = 8001
    healthgpt_log_level: str = "info"
    healthgpt_allow_insecure_bind: bool = False

    # Health data source
    health_data_source: Literal["apple_health", "mock"] = "mock"
    apple_health_export_path: str = ""

    # Calendar used for day buckets and sleep windows
    healthgpt_timezone: str = "UTC"

    # Tool-use mode. Disable for LLM backends without tool-calling support;
    # they get the legacy 14-day data dump prompt instead.
    tools_enabled: bool = True

    @field_validator("healthgpt_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {value!r}") from exc
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        """Reference calendar zone."""
        return ZoneInfo(self.healthgpt_timezone)


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
