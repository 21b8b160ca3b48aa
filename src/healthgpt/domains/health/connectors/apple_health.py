"""Apple Health data provider: reads from exported Health data XML.

Users export via iOS Health app → Share → Export Health Data → produces
export.xml. This provider parses that XML once and answers queries from
memory.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from healthgpt.domains.health.connectors import (
    DailyStatistic,
    IntervalQuery,
    IntervalSample,
)
from healthgpt.domains.health.connectors.apple_health_parser import (
    parse_apple_health_export,
)
from healthgpt.domains.health.connectors.in_memory import InMemoryHealthProvider
from healthgpt.domains.health.domain_logic.metric_catalog import (
    SLEEP_ANALYSIS,
    Aggregation,
    HealthUnit,
)

logger = logging.getLogger(__name__)


class AppleHealthProvider:
    """HealthDataProvider backed by an Apple Health XML export.

    Usage::

        provider = AppleHealthProvider("/path/to/export.xml")
        if provider.is_connected():
            stats = await provider.fetch_daily_aggregate(...)

    Parse failures raise ``AppleHealthParseError`` from the query methods.
    """

    def __init__(self, export_path: str) -> None:
        self._export_path = export_path
        self._store: InMemoryHealthProvider | None = None
        self._connected = bool(export_path) and Path(export_path).exists()

    async def fetch_daily_aggregate(
        self,
        identifier: str,
        unit: HealthUnit,
        aggregation: Aggregation,
        anchor: datetime,
        start: datetime,
        end: datetime,
    ) -> list[DailyStatistic]:
        return await self._load().fetch_daily_aggregate(
            identifier, unit, aggregation, anchor, start, end
        )

    async def fetch_interval_samples(
        self, category: str, query: IntervalQuery
    ) -> list[IntervalSample]:
        return await self._load().fetch_interval_samples(category, query)

    def is_connected(self) -> bool:
        """Check if the export file exists and is readable."""
        return self._connected

    @property
    def data_source(self) -> str:
        return "apple_health"

    def get_provenance(self) -> dict[str, str]:
        return {
            "data_source": self.data_source,
            "data_source_note": "Data from Apple Health export.",
            "export_path": self._export_path,
        }

    def _load(self) -> InMemoryHealthProvider:
        """Parse the export on first use and keep the samples."""
        if self._store is None:
            parsed = parse_apple_health_export(self._export_path)
            self._store = InMemoryHealthProvider(
                parsed.quantity_samples,
                {SLEEP_ANALYSIS: parsed.sleep_samples},
                data_source=self.data_source,
            )
            logger.info("Loaded Apple Health export from %s", self._export_path)
        return self._store
