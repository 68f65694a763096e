"""Bounded, append-only log line store with a stable global index.

Lines are addressed by their absolute position in the job's output
stream.  When the buffer is full the oldest line is evicted and
``base_offset`` advances, so a client cursor stays valid: reading from a
stale cursor loses only the evicted lines and never yields wrong ones.
There are no gap markers; clients are expected to poll often enough that
the capacity is not exhausted between polls.
"""

from __future__ import annotations

import threading
from collections import deque
from itertools import islice
from typing import NamedTuple

from forgeline.config import DEFAULT_MAX_LOG_LINES


class LogSlice(NamedTuple):
    """Lines read from a cursor plus the cursor to use next."""

    lines: list[str]
    next_cursor: int


class LogBuffer:
    """FIFO ring of at most ``capacity`` lines.

    Parameters
    ----------
    capacity:
        Maximum number of retained lines.  Must be positive.
    """

    def __init__(self, capacity: int = DEFAULT_MAX_LOG_LINES) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._lines: deque[str] = deque()
        self._base_offset = 0
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def base_offset(self) -> int:
        """Absolute index of the oldest retained line."""
        with self._lock:
            return self._base_offset

    @property
    def total_appended(self) -> int:
        """Number of lines ever appended, evicted ones included."""
        with self._lock:
            return self._base_offset + len(self._lines)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    def append(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)
            if len(self._lines) > self._capacity:
                self._lines.popleft()
                self._base_offset += 1

    def read_from(self, cursor: int) -> LogSlice:
        """Return retained lines with global index >= ``cursor``.

        A cursor older than ``base_offset`` reads from the oldest retained
        line.  A cursor past the end returns no lines.
        """
        with self._lock:
            start = max(0, cursor - self._base_offset)
            end = self._base_offset + len(self._lines)
            if start >= len(self._lines):
                return LogSlice([], end)
            return LogSlice(list(islice(self._lines, start, None)), end)

    def tail(self, count: int) -> list[str]:
        """Return up to the last ``count`` retained lines."""
        if count <= 0:
            return []
        with self._lock:
            return list(self._lines)[-count:]
