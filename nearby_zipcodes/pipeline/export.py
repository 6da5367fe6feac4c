"""Adjacency map JSON export."""

from __future__ import annotations

import logging
from pathlib import Path

from nearby_zipcodes.common.diagnostics import DiagnosticLog
from nearby_zipcodes.common.fs import write_json
from nearby_zipcodes.common.models import AdjacencyMap
from nearby_zipcodes.common.time_utils import format_duration


def write_adjacency_json(
    output_config: dict,
    output_dir: Path,
    adjacency: AdjacencyMap,
    diagnostics: DiagnosticLog,
    *,
    elapsed_seconds: float | None = None,
) -> Path | None:
    out_path = output_dir / output_config["mapping_filename"]
    try:
        write_json(out_path, adjacency.to_dict())
    except OSError as exc:
        diagnostics.append(f"could not write zipcode data to json {out_path}: {exc}", event="OUTPUT_FAIL")
        return None

    if elapsed_seconds is not None:
        diagnostics.append(f"Time Taken:{format_duration(elapsed_seconds)}", event="TIMING", level=logging.INFO)
    diagnostics.append("Outputted file successfully", event="OUTPUT_OK", level=logging.INFO)
    return out_path


def write_diagnostics(output_config: dict, output_dir: Path, diagnostics: DiagnosticLog) -> Path | None:
    return diagnostics.flush(output_dir / output_config["log_filename"])
