"""Thread-safe command queue connecting API handlers to the engine thread."""

from __future__ import annotations

import queue
from dataclasses import dataclass
from enum import Enum


class CommandKind(str, Enum):
    CAST = "cast"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class DuelCommand:
    """One write request for the encounter, applied at the start of a tick."""

    kind: CommandKind
    spell: str = ""
    confidence: float = 1.0


class CommandQueue:
    """MPSC (multiple-producer, single-consumer) queue for DuelCommands.

    Request handlers push commands; the engine thread drains them each tick.
    """

    __slots__ = ("_queue",)

    def __init__(self) -> None:
        self._queue: queue.Queue[DuelCommand] = queue.Queue()

    def push(self, command: DuelCommand) -> None:
        """Thread-safe enqueue."""
        self._queue.put_nowait(command)

    def drain(self) -> list[DuelCommand]:
        """Drain all pending commands (called on the engine thread)."""
        commands: list[DuelCommand] = []
        while True:
            try:
                commands.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return commands

    @property
    def empty(self) -> bool:
        return self._queue.empty()
