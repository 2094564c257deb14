"""Tests for the simulation clock and the deterministic RNG."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from spellduel.core.enums import Domain
from spellduel.systems.clock import SimClock
from spellduel.systems.rng import DeterministicRNG


class TestSimClock:

    def test_starts_at_zero(self):
        assert SimClock().now() == 0.0

    def test_advance(self):
        clock = SimClock(100)
        assert clock.advance(50) == 150
        assert clock.now() == 150

    def test_cannot_run_backwards(self):
        clock = SimClock(100)
        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set(50)

    def test_set_forward(self):
        clock = SimClock()
        clock.set(2500)
        assert clock.now() == 2500


class TestDeterministicRNG:

    def test_same_inputs_same_output(self):
        a = DeterministicRNG(42)
        b = DeterministicRNG(42)
        assert a.next_float(Domain.COOLDOWN, 1, 0) == b.next_float(Domain.COOLDOWN, 1, 0)

    def test_domains_are_separated(self):
        rng = DeterministicRNG(42)
        values = {rng.next_float(d, 1, 0) for d in Domain}
        assert len(values) == len(Domain)

    def test_seed_changes_stream(self):
        a = [DeterministicRNG(1).next_float(Domain.SPAWN, 1, r) for r in range(10)]
        b = [DeterministicRNG(2).next_float(Domain.SPAWN, 1, r) for r in range(10)]
        assert a != b

    def test_float_range(self):
        rng = DeterministicRNG(7)
        for roll in range(500):
            f = rng.next_float(Domain.SKILL_SELECT, 3, roll)
            assert 0.0 <= f < 1.0

    def test_int_bounds_inclusive(self):
        rng = DeterministicRNG(7)
        seen = {rng.next_int(Domain.SKILL_SELECT, 3, roll, 0, 1) for roll in range(200)}
        assert seen == {0, 1}

    def test_bool_extremes(self):
        rng = DeterministicRNG(7)
        assert not any(rng.next_bool(Domain.SPAWN, 1, r, probability=0.0) for r in range(50))
        assert all(rng.next_bool(Domain.SPAWN, 1, r, probability=1.0) for r in range(50))
