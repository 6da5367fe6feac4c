"""Process-wide diagnostic message collector.

One ``DiagnosticLog`` is created when a run starts and handed to every component
that can fail. Messages stay in memory until ``flush`` writes them, newline
joined, to the diagnostic artifact at the end of the run.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from nearby_zipcodes.common.fs import write_text


class DiagnosticLog:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger
        self._records: list[str] = []
        self._lock = threading.Lock()

    def append(self, message: str, *, level: int = logging.WARNING, **event_fields: Any) -> None:
        # Workers append concurrently.
        with self._lock:
            self._records.append(message)
        if self.logger is not None:
            self.logger.log(level, message, extra=event_fields)

    @property
    def records(self) -> list[str]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def flush(self, path: Path) -> Path | None:
        """Write collected messages to ``path``; nothing is written when empty."""
        records = self.records
        if not records:
            return None
        write_text(path, "\n".join(records))
        return path
