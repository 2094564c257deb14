"""Simulation clock — the only source of "now" for the engine.

Time advances only when the host says so, which makes every timed
effect reproducible under test and freezes them while paused.
"""

from __future__ import annotations


class SimClock:
    """Monotonic millisecond clock driven by the host loop."""

    __slots__ = ("_now",)

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)

    def now(self) -> float:
        return self._now

    def advance(self, delta_ms: float) -> float:
        """Move time forward by *delta_ms* and return the new time."""
        if delta_ms < 0:
            raise ValueError(f"clock cannot run backwards (delta={delta_ms})")
        self._now += delta_ms
        return self._now

    def set(self, now_ms: float) -> None:
        if now_ms < self._now:
            raise ValueError(f"clock cannot run backwards ({now_ms} < {self._now})")
        self._now = float(now_ms)
