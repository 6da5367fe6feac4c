"""CLI entrypoint for the nearby zip codes pipeline."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from nearby_zipcodes.common.config_loader import ProximitySettings, load_config
from nearby_zipcodes.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from nearby_zipcodes.common.diagnostics import DiagnosticLog
from nearby_zipcodes.common.errors import PipelineError
from nearby_zipcodes.common.ids import generate_run_id
from nearby_zipcodes.common.logging import build_logger, log_event
from nearby_zipcodes.harvest.geonames_download import fetch_dataset, read_member_lines
from nearby_zipcodes.harvest.geonames_parse import parse_postal_codes
from nearby_zipcodes.pipeline.distribution import ProximityPipeline
from nearby_zipcodes.pipeline.export import write_adjacency_json, write_diagnostics


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--output-dir", default=".")
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--log-dir", default=None)
    return parser.parse_args(argv)


def _flush_diagnostics(
    cfg: dict,
    output_dir: Path,
    diagnostics: DiagnosticLog,
    logger: logging.Logger,
    run_id: str,
) -> bool:
    try:
        write_diagnostics(cfg["output"], output_dir, diagnostics)
    except OSError as exc:
        log_event(
            logger,
            f"could not write diagnostic log: {exc}",
            run_id=run_id,
            stage="output",
            event="DIAGNOSTICS_FAIL",
            status="error",
        )
        return False
    return True


def _resolve(
    cfg: dict,
    payload: bytes,
    args: argparse.Namespace,
    output_dir: Path,
    diagnostics: DiagnosticLog,
    logger: logging.Logger,
    run_id: str,
    started: float,
) -> Path | None:
    lines = read_member_lines(payload, cfg["source"]["member"], diagnostics)
    records = parse_postal_codes(lines, diagnostics)
    log_event(
        logger,
        "records parsed",
        run_id=run_id,
        stage="parse",
        event="PARSE_END",
        status="ok",
        rows_in=len(lines),
        rows_out=len(records),
    )

    pipeline = ProximityPipeline(
        ProximitySettings.from_config(cfg),
        diagnostics,
        workers=args.workers,
        logger=logger,
    )
    adjacency = pipeline.run(records)
    return write_adjacency_json(
        cfg["output"],
        output_dir,
        adjacency,
        diagnostics,
        elapsed_seconds=time.perf_counter() - started,
    )


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    started = time.perf_counter()
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    data_dir = Path(args.data_dir)
    output_dir = Path(args.output_dir)
    log_dir = Path(args.log_dir) if args.log_dir else None

    logger = build_logger(run_id, log_dir=log_dir, level=args.log_level)
    diagnostics = DiagnosticLog(logger)
    cfg = load_config(config_dir, overlay_config_dir=overlay_config_dir)

    log_event(logger, "command start", run_id=run_id, stage=args.command, event="STAGE_START", status="ok")
    out_path: Path | None = None
    try:
        payload = fetch_dataset(cfg["source"], data_dir, diagnostics)
        if args.command == "run":
            out_path = _resolve(cfg, payload, args, output_dir, diagnostics, logger, run_id, started)
    except PipelineError as exc:
        log_event(
            logger,
            f"{args.command} failed: {exc}",
            run_id=run_id,
            stage=args.command,
            event="STAGE_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        _flush_diagnostics(cfg, output_dir, diagnostics, logger, run_id)
        return EXIT_HARD_FAIL
    except Exception as exc:
        diagnostics.append(
            f"unexpected failure during {args.command}: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage=args.command,
            event="STAGE_FAIL",
            status="error",
            error_code="UNEXPECTED_ERROR",
        )
        _flush_diagnostics(cfg, output_dir, diagnostics, logger, run_id)
        return EXIT_HARD_FAIL

    flushed = _flush_diagnostics(cfg, output_dir, diagnostics, logger, run_id)
    log_event(logger, "command end", run_id=run_id, stage=args.command, event="STAGE_END", status="ok")

    if not flushed or (args.command == "run" and out_path is None):
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
