"""Result collection into the final adjacency map."""

from __future__ import annotations

from typing import Callable, Iterable

from nearby_zipcodes.common.diagnostics import DiagnosticLog
from nearby_zipcodes.common.models import AdjacencyMap, ResultPair


class Aggregator:
    """Single consumer of resolved pairs; the only writer of the adjacency map."""

    def __init__(self, expected_ids: Iterable[str], diagnostics: DiagnosticLog) -> None:
        self.expected_ids = frozenset(expected_ids)
        self.diagnostics = diagnostics

    def consume(
        self,
        results: Iterable[ResultPair],
        *,
        cancelled: Callable[[], bool] = lambda: False,
    ) -> AdjacencyMap:
        neighbors: dict[str, list[str]] = {}
        for pair in results:
            if pair.identifier in neighbors:
                self.diagnostics.append(f"duplicate result for {pair.identifier} ignored", event="DUPLICATE_RESULT")
                continue
            neighbors[pair.identifier] = list(dict.fromkeys(pair.neighbors))

        missing = tuple(sorted(self.expected_ids - neighbors.keys()))
        return AdjacencyMap(neighbors=neighbors, missing=missing, cancelled=cancelled())
