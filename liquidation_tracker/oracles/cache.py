"""Time-bounded cache for ticker snapshots."""
from __future__ import annotations

import time
from typing import Callable, Optional

from ..models import TickerEntry


class TickerCache:
    """Hold the last ticker snapshot and report whether it is still fresh.

    Construct one per process and share it with every oracle instance.
    """

    def __init__(
        self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Optional[list[TickerEntry]] = None
        self._stored_at = 0.0

    def get(self) -> Optional[list[TickerEntry]]:
        """Cached entries if younger than the TTL, else ``None``."""
        if self._entries is None:
            return None
        if self._clock() - self._stored_at >= self.ttl_seconds:
            return None
        return self._entries

    def get_stale(self) -> Optional[list[TickerEntry]]:
        """Cached entries regardless of age."""
        return self._entries

    def set(self, entries: list[TickerEntry]) -> None:
        self._entries = list(entries)
        self._stored_at = self._clock()

    def clear(self) -> None:
        self._entries = None
        self._stored_at = 0.0
