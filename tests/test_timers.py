"""Tests for the TimerRegistry — scheduling, ordering, cancellation."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from spellduel.engine.timers import TimerRegistry
from spellduel.systems.clock import SimClock


def _make_registry(start_ms: float = 0.0) -> tuple[SimClock, TimerRegistry]:
    clock = SimClock(start_ms)
    return clock, TimerRegistry(clock)


class TestScheduling:

    def test_fires_only_once_due(self):
        clock, timers = _make_registry()
        fired = []
        timers.schedule(100, lambda: fired.append("a"))
        clock.advance(99)
        assert timers.run_due() == 0
        clock.advance(1)
        assert timers.run_due() == 1
        assert fired == ["a"]

    def test_fires_exactly_once(self):
        clock, timers = _make_registry()
        fired = []
        handle = timers.schedule(10, lambda: fired.append(1))
        clock.advance(50)
        timers.run_due()
        timers.run_due()
        assert fired == [1]
        assert handle.fired
        assert not handle.active
        assert timers.pending == 0

    def test_due_order_then_registration_order(self):
        clock, timers = _make_registry()
        order = []
        timers.schedule(200, lambda: order.append("late"))
        timers.schedule(100, lambda: order.append("first"))
        timers.schedule(100, lambda: order.append("second"))
        clock.advance(500)
        assert timers.run_due() == 3
        assert order == ["first", "second", "late"]

    def test_due_time_is_relative_to_clock(self):
        clock, timers = _make_registry(start_ms=1000)
        handle = timers.schedule(250, lambda: None)
        assert handle.due_at == 1250
        assert timers.next_due == 1250

    def test_negative_delay_rejected(self):
        _, timers = _make_registry()
        with pytest.raises(ValueError):
            timers.schedule(-1, lambda: None)

    def test_zero_delay_from_callback_runs_same_pass(self):
        clock, timers = _make_registry()
        fired = []

        def outer():
            fired.append("outer")
            timers.schedule(0, lambda: fired.append("inner"))

        timers.schedule(10, outer)
        clock.advance(10)
        assert timers.run_due() == 2
        assert fired == ["outer", "inner"]

    def test_callback_errors_propagate(self):
        clock, timers = _make_registry()

        def boom():
            raise RuntimeError("boom")

        timers.schedule(0, boom)
        with pytest.raises(RuntimeError):
            timers.run_due()

    def test_run_due_accepts_explicit_now(self):
        _, timers = _make_registry()
        fired = []
        timers.schedule(300, lambda: fired.append(1))
        assert timers.run_due(now=299) == 0
        assert timers.run_due(now=300) == 1


class TestCancellation:

    def test_cancel_single(self):
        clock, timers = _make_registry()
        fired = []
        handle = timers.schedule(100, lambda: fired.append(1))
        assert timers.cancel(handle) is True
        assert timers.cancel(handle) is False
        clock.advance(200)
        assert timers.run_due() == 0
        assert fired == []
        assert timers.pending == 0

    def test_cancel_after_fire_is_noop(self):
        clock, timers = _make_registry()
        handle = timers.schedule(0, lambda: None)
        timers.run_due()
        assert timers.cancel(handle) is False

    def test_next_due_skips_cancelled_head(self):
        _, timers = _make_registry()
        head = timers.schedule(100, lambda: None)
        timers.schedule(400, lambda: None)
        timers.cancel(head)
        assert timers.next_due == 400

    def test_cancel_all(self):
        clock, timers = _make_registry()
        fired = []
        handles = [timers.schedule(d, lambda: fired.append(1)) for d in (100, 200, 300)]
        generation = timers.generation
        assert timers.cancel_all() == 3
        assert timers.pending == 0
        assert timers.next_due is None
        assert timers.generation == generation + 1
        assert all(h.cancelled for h in handles)
        clock.advance(1000)
        assert timers.run_due() == 0
        assert fired == []

    def test_reset_scenario_5000ms_action(self):
        """Scheduled at 0, cleared at 1000, time advanced past 5000: never fires."""
        clock, timers = _make_registry()
        state = {"mutated": False}

        def mutate():
            state["mutated"] = True

        timers.schedule(5000, mutate)
        clock.advance(1000)
        timers.run_due()
        timers.cancel_all()
        for _ in range(6):
            clock.advance(1000)
            timers.run_due()
        assert state["mutated"] is False

    def test_cancel_all_inside_callback_drops_rest_of_pass(self):
        clock, timers = _make_registry()
        fired = []

        def clear():
            fired.append("clear")
            timers.cancel_all()

        timers.schedule(10, clear)
        timers.schedule(10, lambda: fired.append("stale"))
        clock.advance(10)
        timers.run_due()
        assert fired == ["clear"]

    def test_schedule_after_cancel_all_still_works(self):
        clock, timers = _make_registry()
        timers.schedule(100, lambda: None)
        timers.cancel_all()
        fired = []
        timers.schedule(100, lambda: fired.append(1))
        clock.advance(100)
        assert timers.run_due() == 1
        assert fired == [1]
