"""Exact-radius neighbor resolution on top of the spatial index."""

from __future__ import annotations

from nearby_zipcodes.common.constants import DEFAULT_RADIUS_KM
from nearby_zipcodes.common.geometry import great_circle_distance_km
from nearby_zipcodes.common.models import IndexedPoint, ResultPair, Task
from nearby_zipcodes.pipeline.spatial_index import PointIndex


def task_for(point: IndexedPoint) -> Task:
    return Task(
        identifier=point.identifier,
        latitude=point.latitude,
        longitude=point.longitude,
        rect=point.rect,
    )


def resolve(task: Task, index: PointIndex, *, radius_km: float = DEFAULT_RADIUS_KM) -> ResultPair:
    neighbors: list[str] = []
    for candidate in index.query_intersecting(task.rect):
        # A point is always its own neighbor.
        if candidate.identifier == task.identifier:
            neighbors.append(candidate.identifier)
            continue

        km = great_circle_distance_km(task.latitude, task.longitude, candidate.latitude, candidate.longitude)
        if km <= radius_km:
            neighbors.append(candidate.identifier)

    return ResultPair(identifier=task.identifier, neighbors=tuple(neighbors))
