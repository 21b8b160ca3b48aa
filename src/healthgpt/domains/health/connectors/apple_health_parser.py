"""Apple Health XML export parser.

Parses the ``export.xml`` file produced by Apple Health (iOS → Share → Export
Health Data). Supports incremental parsing of large files via iterparse.

Only the record types in the metric catalog are kept:
- HKQuantityTypeIdentifierStepCount / ActiveEnergyBurned / AppleExerciseTime /
  BodyMass / RestingHeartRate → quantity samples, in their recorded unit
- HKCategoryTypeIdentifierSleepAnalysis → category samples (all stages,
  including in-bed and awake; filtering happens at query time)
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from healthgpt.domains.health.connectors import IntervalSample, QuantitySample
from healthgpt.domains.health.domain_logic.metric_catalog import (
    SLEEP_ANALYSIS,
    quantity_identifiers,
)

logger = logging.getLogger(__name__)


class AppleHealthParseError(Exception):
    """Raised when parsing Apple Health export XML fails."""


@dataclass
class ParsedExport:
    """Samples extracted from one export file."""

    quantity_samples: list[QuantitySample] = field(default_factory=list)
    sleep_samples: list[IntervalSample] = field(default_factory=list)
    skipped_records: int = 0


def _parse_date(date_str: str) -> datetime:
    """Parse Apple Health date format: '2025-12-01 08:30:00 -0500'.

    Raises:
        ValueError: If the string is unparseable or carries no UTC offset.
    """
    try:
        return datetime.strptime(date_str, "%Y-%m-%d %H:%M:%S %z")
    except ValueError:
        # Fallback for ISO format
        parsed = datetime.fromisoformat(date_str)
    if parsed.tzinfo is None:
        # Samples are compared against zoned query bounds
        raise ValueError(f"Timestamp without UTC offset: {date_str!r}")
    return parsed


def parse_apple_health_export(export_path: str | Path) -> ParsedExport:
    """Parse an Apple Health export.xml into raw samples.

    Uses iterparse for memory-efficient processing of large exports.
    Records with unparseable dates or values are counted and skipped.

    Args:
        export_path: Path to the Apple Health export.xml file.

    Returns:
        ParsedExport with quantity and sleep samples in file order.

    Raises:
        AppleHealthParseError: If the file is missing or is not valid XML.
    """
    path = Path(export_path)
    if not path.exists():
        raise AppleHealthParseError(f"Export file not found: {path}")

    wanted = quantity_identifiers()
    parsed = ParsedExport()

    try:
        for _event, elem in ET.iterparse(str(path), events=("end",)):
            if elem.tag != "Record":
                continue

            rec_type = elem.get("type", "")
            if rec_type in wanted:
                try:
                    parsed.quantity_samples.append(QuantitySample(
                        identifier=rec_type,
                        start=_parse_date(elem.get("startDate", "")),
                        end=_parse_date(elem.get("endDate", "")),
                        value=float(elem.get("value", "")),
                        unit=elem.get("unit", ""),
                    ))
                except (ValueError, TypeError):
                    parsed.skipped_records += 1

            elif rec_type == SLEEP_ANALYSIS:
                try:
                    parsed.sleep_samples.append(IntervalSample(
                        start=_parse_date(elem.get("startDate", "")),
                        end=_parse_date(elem.get("endDate", "")),
                        value=elem.get("value", ""),
                    ))
                except (ValueError, TypeError):
                    parsed.skipped_records += 1

            elem.clear()

    except ET.ParseError as exc:
        raise AppleHealthParseError(f"Invalid XML: {exc}") from exc

    logger.info(
        "Parsed Apple Health export: %d quantity samples, %d sleep samples, %d skipped",
        len(parsed.quantity_samples),
        len(parsed.sleep_samples),
        parsed.skipped_records,
    )
    return parsed
