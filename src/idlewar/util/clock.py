"""Clock collaborators — the only source of wall-clock time.

The simulation itself only ever sees deltas; the host reads ``now()``
through one of these so tests can drive time by hand.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Supplies the current time in milliseconds since the epoch."""

    def now(self) -> float: ...


class SystemClock:
    """Wall clock backed by ``time.time()``."""

    def now(self) -> float:
        return time.time() * 1000.0


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)

    def now(self) -> float:
        return self._now

    def advance(self, delta_ms: float) -> float:
        """Move the clock forward and return the new time."""
        if delta_ms < 0:
            raise ValueError(f"Cannot move clock backwards (delta_ms={delta_ms})")
        self._now += delta_ms
        return self._now

    def set(self, now_ms: float) -> None:
        self._now = float(now_ms)
