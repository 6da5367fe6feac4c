"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from nearby_zipcodes.common.constants import KM_PER_DEGREE_AT_EQUATOR
from nearby_zipcodes.common.errors import ConfigError


def _assert_mapping(obj: object, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive(value: object, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{ctx} must be a positive number")


def validate_app_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    _assert_mapping(cfg, "config")
    sections = {"source", "proximity", "output"}
    _assert_required_keys(cfg, sections, "config")
    _assert_no_unknown_keys(cfg, sections, "config", allow_unknown)

    source_keys = {"url", "member", "cache_filename", "use_cache"}
    _assert_mapping(cfg["source"], "source")
    _assert_required_keys(cfg["source"], source_keys, "source")
    _assert_no_unknown_keys(cfg["source"], source_keys, "source", allow_unknown)
    if not isinstance(cfg["source"]["use_cache"], bool):
        raise ConfigError("source.use_cache must be a boolean")

    proximity_keys = {"radius_km", "half_width_deg", "worker_multiplier", "node_capacity"}
    proximity = cfg["proximity"]
    _assert_mapping(proximity, "proximity")
    _assert_required_keys(proximity, proximity_keys, "proximity")
    _assert_no_unknown_keys(proximity, proximity_keys, "proximity", allow_unknown)
    for key in sorted(proximity_keys):
        _assert_positive(proximity[key], f"proximity.{key}")
    for key in ("worker_multiplier", "node_capacity"):
        if not isinstance(proximity[key], int):
            raise ConfigError(f"proximity.{key} must be an integer")

    # Query and stored rectangles overlap while the offset is at most twice the half-width.
    covered_km = 2 * proximity["half_width_deg"] * KM_PER_DEGREE_AT_EQUATOR
    if covered_km < proximity["radius_km"]:
        raise ConfigError(
            f"proximity.half_width_deg={proximity['half_width_deg']} covers only {covered_km:.2f} km "
            f"at the equator, less than radius_km={proximity['radius_km']}"
        )

    output_keys = {"mapping_filename", "log_filename"}
    _assert_mapping(cfg["output"], "output")
    _assert_required_keys(cfg["output"], output_keys, "output")
    _assert_no_unknown_keys(cfg["output"], output_keys, "output", allow_unknown)

    return cfg
