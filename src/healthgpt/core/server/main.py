"""HealthGPT server entry point: ``healthgpt-mcp`` or ``python -m healthgpt.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from healthgpt.core.config.settings import Settings, get_settings
from healthgpt.core.server.app import create_app

logger = logging.getLogger(__name__)

TRANSPORT = "streamable-http"


def _is_loopback_host(host: str) -> bool:
    if host.lower() == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def _check_bind(settings: Settings) -> None:
    """Reject a public bind: the health data tools sit behind no auth layer."""
    host = settings.healthgpt_host
    if _is_loopback_host(host):
        return
    if not settings.healthgpt_allow_insecure_bind:
        raise RuntimeError(
            f"Refusing to expose health data tools on non-loopback host {host!r}. "
            "Set HEALTHGPT_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.warning("Serving health data without authentication on %s", host)


def run() -> None:
    """Start the HealthGPT MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.healthgpt_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _check_bind(settings)

    mcp = create_app()
    logger.info(
        "Starting HealthGPT on %s:%d (%s mode, %s data, calendar %s)",
        settings.healthgpt_host,
        settings.healthgpt_port,
        "tool-use" if settings.tools_enabled else "legacy",
        settings.health_data_source,
        settings.healthgpt_timezone,
    )
    mcp.run(
        transport=TRANSPORT,
        host=settings.healthgpt_host,
        port=settings.healthgpt_port,
    )


if __name__ == "__main__":
    run()
