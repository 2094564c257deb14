"""TimerRegistry — every delayed side effect of an encounter goes through here.

Delayed actions (damage sub-ticks, flash reverts, burn-out kills) are
registered with a due time on the simulation clock and fired by the
encounter at the top of each tick.  ``cancel_all`` drops every handle
and bumps the generation, so nothing captured before a reset can run
after it.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable

from spellduel.systems.clock import SimClock

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class TimerHandle:
    """Opaque token for one scheduled action."""

    token: int
    due_at: float
    callback: Callable[[], None] = field(repr=False)
    label: str = ""
    generation: int = 0
    cancelled: bool = False
    fired: bool = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class TimerRegistry:
    """Owns the scheduled, cancellable delayed actions of one encounter."""

    __slots__ = ("_clock", "_heap", "_handles", "_counter", "_generation")

    def __init__(self, clock: SimClock) -> None:
        self._clock = clock
        self._heap: list[tuple[float, int, TimerHandle]] = []
        self._handles: dict[int, TimerHandle] = {}
        self._counter = itertools.count(1)
        self._generation = 0

    @property
    def pending(self) -> int:
        return len(self._handles)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def next_due(self) -> float | None:
        self._discard_inactive_head()
        return self._heap[0][0] if self._heap else None

    def schedule(self, delay_ms: float, callback: Callable[[], None], label: str = "") -> TimerHandle:
        """Register *callback* to run once *delay_ms* from now."""
        if delay_ms < 0:
            raise ValueError(f"delay must be non-negative, got {delay_ms}")
        token = next(self._counter)
        handle = TimerHandle(
            token=token,
            due_at=self._clock.now() + delay_ms,
            callback=callback,
            label=label,
            generation=self._generation,
        )
        self._handles[token] = handle
        heapq.heappush(self._heap, (handle.due_at, token, handle))
        logger.debug("Scheduled #%d %s due at %.0f", token, label or "action", handle.due_at)
        return handle

    def cancel(self, handle: TimerHandle) -> bool:
        """Cancel one action.  Returns False if it already fired or was cancelled."""
        if not handle.active:
            return False
        handle.cancelled = True
        self._handles.pop(handle.token, None)
        return True

    def cancel_all(self) -> int:
        """Cancel every outstanding action.  Returns how many were cancelled."""
        count = 0
        for handle in self._handles.values():
            handle.cancelled = True
            count += 1
        self._handles.clear()
        self._heap.clear()
        self._generation += 1
        if count:
            logger.info("Cancelled %d pending timer(s)", count)
        return count

    def run_due(self, now: float | None = None) -> int:
        """Fire every action due at or before *now*, in due-time order.

        Actions registered by a callback that are already due run in the
        same pass.  Returns the number of callbacks executed.
        """
        if now is None:
            now = self._clock.now()
        fired = 0
        while self._heap and self._heap[0][0] <= now:
            _, token, handle = heapq.heappop(self._heap)
            if not handle.active or handle.generation != self._generation:
                continue
            handle.fired = True
            self._handles.pop(token, None)
            handle.callback()
            fired += 1
        return fired

    def _discard_inactive_head(self) -> None:
        while self._heap and not self._heap[0][2].active:
            heapq.heappop(self._heap)
