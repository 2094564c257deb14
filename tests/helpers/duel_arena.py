"""DuelArena — test fixture for the combat engine.

Wraps an Encounter on a hand-driven SimClock, records every event and
listener call, and lets a test pin the opponent's random rolls.

Usage:
    arena = DuelArena()
    arena.cast("bombarda")
    arena.run(500)
    assert arena.opponent.current_health == 20
"""

from __future__ import annotations

import os
import sys
from collections import deque
from typing import Iterable

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from spellduel.config import DuelConfig
from spellduel.core.enums import Domain, EncounterStep, OpponentState, SpellOutcome
from spellduel.core.models import FinalBoss, Spider, Troll
from spellduel.engine.encounter import Encounter
from spellduel.systems.clock import SimClock
from spellduel.utils.event_log import DuelEvent

FRAME_MS = 50.0   # exact in binary, so frame boundaries land on whole milliseconds


class ScriptedRNG:
    """Stand-in for DeterministicRNG that replays a fixed list of floats.

    Once the script runs out it keeps returning *default*.
    """

    def __init__(self, values: Iterable[float] = (), default: float = 0.0) -> None:
        self._values = deque(values)
        self.default = default
        self.calls: list[tuple[Domain, int, int]] = []

    def feed(self, *values: float) -> None:
        self._values.extend(values)

    def next_float(self, domain: Domain, entity_id: int, roll: int) -> float:
        self.calls.append((domain, entity_id, roll))
        return self._values.popleft() if self._values else self.default

    def next_int(self, domain: Domain, entity_id: int, roll: int, low: int, high: int) -> int:
        f = self.next_float(domain, entity_id, roll)
        return low + int(f * (high - low + 1))

    def next_bool(self, domain: Domain, entity_id: int, roll: int, probability: float = 0.5) -> bool:
        return self.next_float(domain, entity_id, roll) < probability


class DuelArena:
    """Encounter + clock + recorders.

    With the default ScriptedRNG (every roll 0.0) the first opponent
    starts casting exactly ``initial_skill_delay_ms`` after spawn.
    """

    def __init__(self, rng: ScriptedRNG | None = None, **config_overrides) -> None:
        self.config = DuelConfig(**config_overrides)
        self.clock = SimClock()
        self.rng = rng or ScriptedRNG()
        self.defeated: list[int] = []
        self.game_overs = 0
        self.victories = 0
        self.encounter = Encounter(
            self.config,
            clock=self.clock,
            rng=self.rng,
            on_enemy_defeated=lambda opp: self.defeated.append(opp.id),
            on_game_over=self._on_game_over,
            on_victory=self._on_victory,
        )
        self.events: list[DuelEvent] = []

    def _on_game_over(self) -> None:
        self.game_overs += 1

    def _on_victory(self) -> None:
        self.victories += 1

    # -- shortcuts --

    @property
    def player(self):
        return self.encounter.player

    @property
    def opponent(self):
        return self.encounter.opponent

    @property
    def now(self) -> float:
        return self.clock.now()

    def cast(self, spell: str, confidence: float = 1.0) -> SpellOutcome:
        outcome = self.encounter.cast_spell(spell, confidence)
        self._collect()
        return outcome

    def run(self, duration_ms: float, frame_ms: float = FRAME_MS) -> list[DuelEvent]:
        """Advance the duel and return the events it produced."""
        start = len(self.events)
        self.encounter.run_for(duration_ms, frame_ms)
        self._collect()
        return self.events[start:]

    def tick(self) -> None:
        self.encounter.tick()
        self._collect()

    def events_of(self, category: str) -> list[DuelEvent]:
        self._collect()
        return [e for e in self.events if e.category == category]

    def _collect(self) -> None:
        self.events.extend(self.encounter.drain_events())

    # -- setup helpers --

    def hold_skills(self) -> None:
        """Push the current opponent's next cast far into the future."""
        if self.opponent is not None:
            self.opponent.next_skill_time = self.now + 10_000_000

    def advance_to(self, step: EncounterStep) -> None:
        """Skip opponents until *step* is active."""
        while self.encounter.step is not step:
            assert self.encounter.skip_current_enemy()
        self._collect()

    def spider(self) -> Spider:
        assert isinstance(self.opponent, Spider)
        return self.opponent

    def troll(self) -> Troll:
        self.advance_to(EncounterStep.TROLL)
        assert isinstance(self.opponent, Troll)
        return self.opponent

    def boss(self) -> FinalBoss:
        self.advance_to(EncounterStep.FINAL_BOSS)
        assert isinstance(self.opponent, FinalBoss)
        return self.opponent

    def stun_boss(self) -> FinalBoss:
        boss = self.boss()
        assert self.cast("expelliarmus") is SpellOutcome.CAST
        assert boss.state is OpponentState.STUNNED
        return boss
