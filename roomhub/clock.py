"""Timestamps and time-based record identifiers."""
from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Callable


def utc_iso(epoch_seconds: float) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    stamp = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class IdGenerator:
    """Millisecond-clock ids that never repeat and never go backwards.

    Two records created inside the same millisecond (or after the wall clock
    steps back) get ``last + 1`` instead of a duplicate.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next_int(self) -> int:
        with self._lock:
            candidate = int(self._clock() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate

    def __call__(self) -> str:
        return str(self.next_int())


__all__ = ["utc_iso", "IdGenerator"]
