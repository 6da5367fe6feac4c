"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from nearby_zipcodes.common.constants import (
    DEFAULT_HALF_WIDTH_DEG,
    DEFAULT_NODE_CAPACITY,
    DEFAULT_RADIUS_KM,
    DEFAULT_WORKER_MULTIPLIER,
)
from nearby_zipcodes.common.errors import ConfigError
from nearby_zipcodes.common.fs import read_yaml
from nearby_zipcodes.common.schema import validate_app_config

CONFIG_FILENAME = "nearby_zipcodes.yml"


@dataclass(frozen=True)
class ProximitySettings:
    radius_km: float = DEFAULT_RADIUS_KM
    half_width_deg: float = DEFAULT_HALF_WIDTH_DEG
    worker_multiplier: int = DEFAULT_WORKER_MULTIPLIER
    node_capacity: int = DEFAULT_NODE_CAPACITY

    @classmethod
    def from_config(cls, cfg: dict) -> "ProximitySettings":
        proximity = cfg["proximity"]
        return cls(
            radius_km=float(proximity["radius_km"]),
            half_width_deg=float(proximity["half_width_deg"]),
            worker_multiplier=int(proximity["worker_multiplier"]),
            node_capacity=int(proximity["node_capacity"]),
        )


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def load_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> dict:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / CONFIG_FILENAME
    cfg = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    return validate_app_config(cfg, allow_unknown=allow_unknown)
