"""GeoNames postal code TSV parsing into point records."""

from __future__ import annotations

import csv
import math
from typing import Iterable

from nearby_zipcodes.common.constants import GEONAMES_FIELD_COUNT
from nearby_zipcodes.common.diagnostics import DiagnosticLog
from nearby_zipcodes.common.models import PointRecord

POSTAL_CODE_FIELD = 1
PLACE_NAME_FIELD = 2
ADMIN_CODE1_FIELD = 4
LATITUDE_FIELD = 9
LONGITUDE_FIELD = 10


def _parse_coordinate(raw: str, limit: float) -> float | None:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or abs(value) > limit:
        return None
    return value


def parse_postal_codes(lines: Iterable[str], diagnostics: DiagnosticLog) -> list[PointRecord]:
    """Parse tab-separated GeoNames rows, skipping and reporting malformed ones."""
    reader = csv.reader(lines, delimiter="\t", quoting=csv.QUOTE_NONE)
    records: list[PointRecord] = []
    seen: set[str] = set()

    for line_no, row in enumerate(reader, start=1):
        if not row:
            continue
        if len(row) != GEONAMES_FIELD_COUNT:
            diagnostics.append(
                f"could not read record on line {line_no}: expected {GEONAMES_FIELD_COUNT} fields, got {len(row)}",
                event="RECORD_SKIPPED",
            )
            continue

        postal_code = row[POSTAL_CODE_FIELD].strip()
        if not postal_code:
            diagnostics.append(f"missing postal code on line {line_no}", event="RECORD_SKIPPED")
            continue

        latitude = _parse_coordinate(row[LATITUDE_FIELD], 90.0)
        if latitude is None:
            diagnostics.append(
                f"Could not parse latitude for given record {postal_code}: {row[LATITUDE_FIELD]!r}",
                event="RECORD_SKIPPED",
            )
            continue

        longitude = _parse_coordinate(row[LONGITUDE_FIELD], 180.0)
        if longitude is None:
            diagnostics.append(
                f"Could not parse longitude for given record {postal_code}: {row[LONGITUDE_FIELD]!r}",
                event="RECORD_SKIPPED",
            )
            continue

        if postal_code in seen:
            diagnostics.append(f"duplicate postal code {postal_code} on line {line_no}", event="RECORD_SKIPPED")
            continue
        seen.add(postal_code)

        records.append(
            PointRecord(
                identifier=postal_code,
                latitude=latitude,
                longitude=longitude,
                city=row[PLACE_NAME_FIELD],
                region=row[ADMIN_CODE1_FIELD],
            )
        )

    return records
