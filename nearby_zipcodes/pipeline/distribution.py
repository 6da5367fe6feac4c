"""Concurrent neighbor resolution over every indexed point.

One producer thread emits a task per indexed point into a bounded task queue, a
fixed pool of worker threads resolves tasks into a bounded result queue, and the
calling thread aggregates results. A supervisor thread joins all workers before
closing the result queue, so the aggregator only finishes once every worker has
pushed its last result.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Iterable

from nearby_zipcodes.common.config_loader import ProximitySettings
from nearby_zipcodes.common.constants import QUEUE_SLOTS_PER_WORKER
from nearby_zipcodes.common.diagnostics import DiagnosticLog
from nearby_zipcodes.common.errors import ConfigError, ContractError, QueueClosedError, StageError
from nearby_zipcodes.common.logging import log_event
from nearby_zipcodes.common.models import AdjacencyMap, PipelineState, PointRecord, ResultPair, Task
from nearby_zipcodes.common.queues import ClosableQueue
from nearby_zipcodes.pipeline.aggregator import Aggregator
from nearby_zipcodes.pipeline.resolver import resolve, task_for
from nearby_zipcodes.pipeline.spatial_index import PointIndex


def default_worker_count(multiplier: int) -> int:
    return max(1, (os.cpu_count() or 1) * multiplier)


class ProximityPipeline:
    def __init__(
        self,
        settings: ProximitySettings | None = None,
        diagnostics: DiagnosticLog | None = None,
        *,
        workers: int | None = None,
        logger: logging.Logger | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.settings = settings or ProximitySettings()
        self.diagnostics = diagnostics or DiagnosticLog(logger)
        if workers is None:
            workers = default_worker_count(self.settings.worker_multiplier)
        elif workers <= 0:
            raise ConfigError(f"workers must be > 0, got {workers}")
        self.num_workers = workers
        self.logger = logger
        self.cancel_event = cancel_event or threading.Event()
        self.index: PointIndex | None = None
        self.state = PipelineState.IDLE
        self.history: list[PipelineState] = [PipelineState.IDLE]
        self._state_lock = threading.Lock()

    def _transition(self, state: PipelineState) -> None:
        with self._state_lock:
            self.state = state
            self.history.append(state)
        if self.logger is not None:
            log_event(self.logger, f"pipeline {state.value}", stage="resolve", event="STATE", status=state.value)

    def build_index(self, records: Iterable[PointRecord]) -> PointIndex:
        if self.state is not PipelineState.IDLE:
            raise StageError(f"Index can only be built from the idle state, not {self.state.value}")
        self.index = PointIndex.build(
            records,
            half_width=self.settings.half_width_deg,
            node_capacity=self.settings.node_capacity,
        )
        self._transition(PipelineState.INDEX_BUILT)
        return self.index

    def cancel(self) -> None:
        self.cancel_event.set()

    def _produce(self, tasks: ClosableQueue[Task]) -> None:
        assert self.index is not None
        try:
            for point in self.index:
                if self.cancel_event.is_set():
                    break
                tasks.put(task_for(point))
        except QueueClosedError:
            # The aggregating side shut the pipeline down.
            return
        finally:
            tasks.close()
        self._transition(PipelineState.DRAINING)

    def _work(self, tasks: ClosableQueue[Task], results: ClosableQueue[ResultPair]) -> None:
        assert self.index is not None
        for task in tasks:
            if self.cancel_event.is_set():
                continue
            try:
                pair = resolve(task, self.index, radius_km=self.settings.radius_km)
            except Exception as exc:
                self.diagnostics.append(
                    f"could not resolve neighbors for {task.identifier}: {exc}",
                    stage="resolve",
                    event="RESOLVE_FAIL",
                    error_code="RESOLVE_ERROR",
                )
                continue
            try:
                results.put(pair)
            except QueueClosedError:
                return

    def _supervise(self, workers: list[threading.Thread], results: ClosableQueue[ResultPair]) -> None:
        for worker in workers:
            worker.join()
        results.close()

    def run(self, records: Iterable[PointRecord] | None = None) -> AdjacencyMap:
        """Resolve neighbors for every indexed point and return the adjacency map.

        ``records`` builds the index first when the pipeline is still idle. Raises
        ``ContractError`` when a point is missing from the map and the run was not
        cancelled.
        """
        if records is not None:
            self.build_index(records)
        if self.state is not PipelineState.INDEX_BUILT or self.index is None:
            raise StageError(f"Pipeline cannot run from state {self.state.value}")

        started = time.perf_counter()
        capacity = self.num_workers * QUEUE_SLOTS_PER_WORKER
        tasks: ClosableQueue[Task] = ClosableQueue(capacity)
        results: ClosableQueue[ResultPair] = ClosableQueue(capacity)

        workers = [
            threading.Thread(target=self._work, args=(tasks, results), name=f"proximity-worker-{i}", daemon=True)
            for i in range(self.num_workers)
        ]
        producer = threading.Thread(target=self._produce, args=(tasks,), name="proximity-producer", daemon=True)
        supervisor = threading.Thread(
            target=self._supervise, args=(workers, results), name="proximity-supervisor", daemon=True
        )

        self._transition(PipelineState.RUNNING)
        for worker in workers:
            worker.start()
        supervisor.start()
        producer.start()

        aggregator = Aggregator((point.identifier for point in self.index), self.diagnostics)
        try:
            adjacency = aggregator.consume(results, cancelled=self.cancel_event.is_set)
        except BaseException:
            self.cancel_event.set()
            tasks.close()
            results.close()
            raise
        finally:
            producer.join()
            supervisor.join()

        if adjacency.cancelled:
            self._transition(PipelineState.CANCELLED)
        else:
            self._transition(PipelineState.DONE)

        if self.logger is not None:
            log_event(
                self.logger,
                "neighbor resolution finished",
                stage="resolve",
                event="RESOLVE_END",
                status="ok" if adjacency.complete else "incomplete",
                duration_ms=int((time.perf_counter() - started) * 1000),
                rows_in=len(self.index),
                rows_out=len(adjacency),
            )

        if not adjacency.complete and not adjacency.cancelled:
            raise ContractError(f"{len(adjacency.missing)} points missing from adjacency map")
        return adjacency
