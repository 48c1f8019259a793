# relay/services/stats.py

from __future__ import annotations

import threading
from typing import Dict

# ============================================================================
# RELAY COUNTERS
# ============================================================================

COUNTERS = (
    "connections_opened",
    "connections_closed",
    "frames_received",
    "broadcasts",
    "deliveries",
    "delivery_failures",
    "frame_faults",
    "lifecycle_faults",
)


class RelayStats:
    """
    Process-wide counters for the /metrics endpoint.

    Every fault the relay recovers from is counted here as well as logged,
    so dropped deliveries and bad frames stay visible in production.
    Increments may come from any session, hence the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = {name: 0 for name in COUNTERS}

    def incr(self, name: str, amount: int = 1) -> None:
        if name not in self._counts:
            raise KeyError(f"Unknown counter: {name}")
        with self._lock:
            self._counts[name] += amount

    def get(self, name: str) -> int:
        with self._lock:
            return self._counts[name]

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    @property
    def open_connections(self) -> int:
        with self._lock:
            return self._counts["connections_opened"] - self._counts["connections_closed"]
