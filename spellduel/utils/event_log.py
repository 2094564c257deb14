"""Thread-safe event log for duel events exposed via the API."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class DuelEvent:
    """A single discrete duel event (defeat, damage, cast...)."""

    time_ms: float
    category: str
    message: str
    opponent_id: int | None = None
    metadata: dict[str, Any] | None = None


class EventSink(Protocol):
    def __call__(
        self,
        category: str,
        message: str,
        opponent_id: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None: ...


class EventLog:
    """Bounded event log. Writers append; readers snapshot a slice.

    Thread-safe via a simple lock — writes happen once per tick batch
    and reads are non-blocking copies.
    """

    __slots__ = ("_buffer", "_lock")

    def __init__(self, maxlen: int | None = 5000) -> None:
        self._buffer: deque[DuelEvent] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def append(self, event: DuelEvent) -> None:
        with self._lock:
            self._buffer.append(event)

    def append_many(self, events: list[DuelEvent]) -> None:
        with self._lock:
            self._buffer.extend(events)

    def since(self, time_ms: float) -> list[DuelEvent]:
        """Return all events with time_ms >= *time_ms*."""
        with self._lock:
            return [e for e in self._buffer if e.time_ms >= time_ms]

    def latest(self, count: int = 50) -> list[DuelEvent]:
        """Return the *count* most recent events."""
        with self._lock:
            items = list(self._buffer)
        return items[-count:]

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()
