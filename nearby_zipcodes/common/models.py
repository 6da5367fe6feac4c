"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class PointRecord:
    identifier: str
    latitude: float
    longitude: float
    city: str = ""
    region: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle in (longitude, latitude) degree space."""

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float


@dataclass(frozen=True)
class IndexedPoint:
    identifier: str
    latitude: float
    longitude: float
    rect: Rectangle


@dataclass(frozen=True)
class Task:
    identifier: str
    latitude: float
    longitude: float
    rect: Rectangle


@dataclass(frozen=True)
class ResultPair:
    identifier: str
    neighbors: tuple[str, ...]


@dataclass
class AdjacencyMap:
    neighbors: dict[str, list[str]] = field(default_factory=dict)
    missing: tuple[str, ...] = ()
    cancelled: bool = False

    @property
    def complete(self) -> bool:
        return not self.missing

    def __len__(self) -> int:
        return len(self.neighbors)

    def to_dict(self) -> dict[str, list[str]]:
        return {key: sorted(values) for key, values in sorted(self.neighbors.items())}


class PipelineState(str, Enum):
    IDLE = "idle"
    INDEX_BUILT = "index_built"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"
    CANCELLED = "cancelled"
