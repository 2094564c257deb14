"""EngineManager — runs the Encounter on a background thread.

The API reads from an atomically-swapped immutable Snapshot; the
Encounter is mutated exclusively on the engine thread (single writer).
Spell and skip requests travel through a CommandQueue drained at the
start of every tick.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

from spellduel.engine.command_queue import CommandKind, CommandQueue, DuelCommand
from spellduel.engine.encounter import Encounter
from spellduel.systems.clock import SimClock
from spellduel.systems.rng import DeterministicRNG
from spellduel.utils.event_log import EventLog

if TYPE_CHECKING:
    from spellduel.config import DuelConfig
    from spellduel.core.snapshot import Snapshot
    from spellduel.utils.replay import ReplayRecorder

logger = logging.getLogger(__name__)


class EngineManager:
    """Manages the duel lifecycle on a background thread.

    Provides thread-safe access to:
      - latest snapshot (atomic reference swap)
      - event log (lock-guarded ring buffer)
      - control commands (start / pause / resume / step / reset / skip)
    """

    def __init__(self, config: DuelConfig, recorder: ReplayRecorder | None = None) -> None:
        self._config = config
        self.config = config
        self._recorder = recorder
        self._tick_rate: float = 1.0 / config.tick_rate_hz  # seconds between ticks

        self._encounter: Encounter | None = None
        self._commands = CommandQueue()
        self._last_frame: float | None = None

        # Thread-safe shared state
        self._snapshot_lock = threading.Lock()
        self._latest_snapshot: Snapshot | None = None
        self._event_log = EventLog()

        # Control
        self._thread: threading.Thread | None = None
        self._running = threading.Event()
        self._paused = threading.Event()
        self._step_requested = threading.Event()
        self._stop_requested = threading.Event()

        self._build()

    # -- public properties --

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    @property
    def tick_rate(self) -> float:
        return self._tick_rate

    @tick_rate.setter
    def tick_rate(self, value: float) -> None:
        self._tick_rate = max(0.005, min(value, 2.0))

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def encounter(self) -> Encounter:
        assert self._encounter is not None
        return self._encounter

    # -- snapshot access --

    def get_snapshot(self) -> Snapshot | None:
        with self._snapshot_lock:
            return self._latest_snapshot

    # -- inbound commands --

    def submit_spell(self, spell: str, confidence: float) -> None:
        """Queue a recognised spell for the next tick."""
        self._commands.push(DuelCommand(kind=CommandKind.CAST, spell=spell, confidence=confidence))

    def request_skip(self) -> None:
        self._commands.push(DuelCommand(kind=CommandKind.SKIP))

    # -- lifecycle --

    def start(self) -> None:
        if self._running.is_set():
            return
        self._stop_requested.clear()
        self._paused.clear()
        self._last_frame = None
        self._running.set()
        self._thread = threading.Thread(target=self._run_loop, name="duel-loop", daemon=True)
        self._thread.start()
        logger.info("EngineManager started (tick_rate=%.3fs)", self._tick_rate)

    def pause(self) -> None:
        self._paused.set()
        logger.info("EngineManager paused at tick %d", self._current_tick())

    def resume(self) -> None:
        self._last_frame = None
        self._paused.clear()
        logger.info("EngineManager resumed at tick %d", self._current_tick())

    def step(self) -> None:
        """Execute exactly one frame (must be paused)."""
        if not self._paused.is_set():
            self.pause()
        self._step_requested.set()

    def stop(self) -> None:
        self._stop_requested.set()
        self._paused.clear()
        self._running.clear()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self._thread = None
        logger.info("EngineManager stopped.")

    def reset(self) -> None:
        """Stop, reset the encounter in place, and leave it ready to start."""
        self.stop()
        self._commands.drain()
        self._event_log.clear()
        self.encounter.reset()
        self._last_frame = None
        self._publish_snapshot_and_events()
        logger.info("EngineManager reset.")

    # -- ticking --

    def tick_once(self, delta_ms: float | None = None) -> bool:
        """Apply queued commands, advance the clock and run one tick.

        *delta_ms* defaults to the measured real time since the previous
        frame, capped at ``max_frame_ms``.  Returns False once the duel
        has ended.
        """
        encounter = self.encounter
        for command in self._commands.drain():
            self._apply(encounter, command)

        if delta_ms is None:
            delta_ms = self._frame_delta()
        encounter.clock.advance(delta_ms)
        encounter.tick()
        self._publish_snapshot_and_events()
        return not encounter.is_over

    def _apply(self, encounter: Encounter, command: DuelCommand) -> None:
        match command.kind:
            case CommandKind.CAST:
                outcome = encounter.cast_spell(command.spell, command.confidence)
                logger.debug("Spell %r (%.2f) -> %s", command.spell, command.confidence, outcome.value)
                if self._recorder is not None:
                    self._recorder.record_spell(encounter.now, command.spell, command.confidence, outcome.value)
            case CommandKind.SKIP:
                encounter.skip_current_enemy()

    def _frame_delta(self) -> float:
        now = time.perf_counter()
        last, self._last_frame = self._last_frame, now
        if last is None:
            return self._config.frame_ms
        return min((now - last) * 1000.0, self._config.max_frame_ms)

    # -- internals --

    def _build(self) -> None:
        """Construct the encounter from config."""
        cfg = self._config
        self._encounter = Encounter(cfg, clock=SimClock(), rng=DeterministicRNG(cfg.seed))
        self._publish_snapshot_and_events()

    def _run_loop(self) -> None:
        """Background thread main loop."""
        logger.info("Engine thread started.")

        while not self._stop_requested.is_set():
            if self._paused.is_set() and not self._step_requested.is_set():
                time.sleep(0.01)
                continue

            single_step = self._step_requested.is_set()
            if single_step:
                self._step_requested.clear()

            can_continue = self.tick_once(self._config.frame_ms if single_step else None)
            if not can_continue:
                logger.info("Duel ended at tick %d.", self._current_tick())
                break

            if not single_step:
                time.sleep(self._tick_rate)

        self._running.clear()
        logger.info("Engine thread exited.")

    def _publish_snapshot_and_events(self) -> None:
        """Swap snapshot + push events emitted since the last publish."""
        encounter = self.encounter
        snap = encounter.snapshot()
        with self._snapshot_lock:
            self._latest_snapshot = snap

        events = encounter.drain_events()
        if events:
            self._event_log.append_many(events)
        if self._recorder is not None:
            self._recorder.record_tick(snap, events)

    def _current_tick(self) -> int:
        return self._encounter.tick_count if self._encounter else 0
