"""Read-only bounding-volume index over postal code points.

Backed by a Shapely STRtree, which is bulk loaded once from every point's
bounding rectangle and never modified afterwards. Query results are mapped back
to ``IndexedPoint`` through the tree's integer indices.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence

from shapely.geometry import box
from shapely.strtree import STRtree

from nearby_zipcodes.common.constants import DEFAULT_HALF_WIDTH_DEG, DEFAULT_NODE_CAPACITY
from nearby_zipcodes.common.geometry import bounding_rectangle
from nearby_zipcodes.common.models import IndexedPoint, PointRecord, Rectangle


def _to_box(rect: Rectangle):
    return box(rect.min_lon, rect.min_lat, rect.max_lon, rect.max_lat)


def index_point(record: PointRecord, half_width: float = DEFAULT_HALF_WIDTH_DEG) -> IndexedPoint:
    return IndexedPoint(
        identifier=record.identifier,
        latitude=record.latitude,
        longitude=record.longitude,
        rect=bounding_rectangle(record.latitude, record.longitude, half_width),
    )


class PointIndex:
    def __init__(self, points: Sequence[IndexedPoint], *, node_capacity: int = DEFAULT_NODE_CAPACITY) -> None:
        self._points: tuple[IndexedPoint, ...] = tuple(points)
        self._tree: STRtree | None = None
        if self._points:
            self._tree = STRtree([_to_box(point.rect) for point in self._points], node_capacity=node_capacity)
            # GEOS finishes building the tree on its first query; do it before any reader thread exists.
            self._tree.query(_to_box(self._points[0].rect))

    @classmethod
    def build(
        cls,
        records: Iterable[PointRecord],
        *,
        half_width: float = DEFAULT_HALF_WIDTH_DEG,
        node_capacity: int = DEFAULT_NODE_CAPACITY,
    ) -> "PointIndex":
        return cls([index_point(record, half_width) for record in records], node_capacity=node_capacity)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[IndexedPoint]:
        return iter(self._points)

    def query_intersecting(self, rect: Rectangle) -> list[IndexedPoint]:
        """Every indexed point whose stored rectangle intersects ``rect``.

        This is a superset of the points within any radius the rectangle was
        sized for; callers filter by exact distance.
        """
        if self._tree is None:
            return []
        indices = self._tree.query(_to_box(rect), predicate="intersects")
        return [self._points[int(i)] for i in indices]
