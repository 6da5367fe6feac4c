"""Bounded producer/consumer queue with an explicit close signal."""

from __future__ import annotations

import threading
from collections import deque
from typing import Generic, Iterator, TypeVar

from nearby_zipcodes.common.errors import QueueClosedError

T = TypeVar("T")


class ClosableQueue(Generic[T]):
    """FIFO queue with a fixed capacity that consumers can iterate until closed.

    ``put`` blocks while the queue is full, ``get`` blocks while it is empty and
    still open. After ``close`` no new items are accepted; consumers keep
    receiving queued items and then stop.
    """

    def __init__(self, maxsize: int) -> None:
        if maxsize <= 0:
            raise ValueError("maxsize must be > 0")
        self.maxsize = maxsize
        self._items: deque[T] = deque()
        self._closed = False
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def qsize(self) -> int:
        with self._lock:
            return len(self._items)

    def put(self, item: T) -> None:
        with self._not_full:
            while not self._closed and len(self._items) >= self.maxsize:
                self._not_full.wait()
            if self._closed:
                raise QueueClosedError("put on a closed queue")
            self._items.append(item)
            self._not_empty.notify()

    def get(self) -> T:
        with self._not_empty:
            while not self._items and not self._closed:
                self._not_empty.wait()
            if not self._items:
                raise QueueClosedError("queue is closed and drained")
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except QueueClosedError:
                return
