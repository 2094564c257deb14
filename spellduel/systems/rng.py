"""Domain-separated deterministic RNG using xxhash.

A duel replays exactly from its seed: every roll is a pure function of
(seed, domain, opponent id, roll counter).

Formula: RNG_Value = Hash(Seed, Domain, OpponentID, Roll)
"""

from __future__ import annotations

import struct

import xxhash

from spellduel.core.enums import Domain


class DeterministicRNG:
    """Stateless domain-separated pseudo-random number generator."""

    __slots__ = ("_seed",)

    _MAX_UINT64 = (1 << 64) - 1

    def __init__(self, seed: int) -> None:
        self._seed = seed

    @property
    def seed(self) -> int:
        return self._seed

    def _hash(self, domain: Domain, entity_id: int, roll: int) -> int:
        payload = struct.pack("<qiqq", self._seed, domain.value, entity_id, roll)
        return xxhash.xxh64(payload).intdigest()

    def next_float(self, domain: Domain, entity_id: int, roll: int) -> float:
        """Return a deterministic float in [0.0, 1.0)."""
        return self._hash(domain, entity_id, roll) / (self._MAX_UINT64 + 1)

    def next_int(self, domain: Domain, entity_id: int, roll: int, low: int, high: int) -> int:
        """Return a deterministic integer in [low, high] inclusive."""
        f = self.next_float(domain, entity_id, roll)
        return low + int(f * (high - low + 1))

    def next_bool(self, domain: Domain, entity_id: int, roll: int, probability: float = 0.5) -> bool:
        """Return True with the given probability."""
        return self.next_float(domain, entity_id, roll) < probability
