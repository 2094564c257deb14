"""Engine systems: simulation clock, deterministic RNG."""

from spellduel.systems.clock import SimClock
from spellduel.systems.rng import DeterministicRNG

__all__ = ["DeterministicRNG", "SimClock"]
