"""Core data models: Player and the Opponent variants.

Every trait an entity can carry is a declared field.  Opponents share
``OpponentBase``; the variants add their own fields and are told apart
by the ``kind`` class attribute.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import ClassVar, Union

from spellduel.core.enums import OpponentKind, OpponentState, Skill


@dataclass(slots=True)
class Player:
    """Mutable player record.  Created once, reset in place."""

    max_health: int = 100
    current_health: int = 100
    max_magic: int = 100
    current_magic: int = 0

    # --- Presentation (opaque to the engine except for the hit flash) ---
    x: float = 100.0
    y: float = 0.0
    width: float = 60.0
    height: float = 150.0
    color: str = "#4a90e2"
    original_color: str = "#4a90e2"

    # --- Status flags with absolute end timestamps (ms) ---
    is_immobilized: bool = False
    immobilized_end_time: float = 0.0
    is_poisoned: bool = False
    poison_end_time: float = 0.0
    poison_damage: int = 0
    last_poison_tick: float = 0.0
    is_protected: bool = False
    protection_end_time: float = 0.0
    is_silenced: bool = False
    silence_end_time: float = 0.0

    @property
    def alive(self) -> bool:
        return self.current_health > 0

    @property
    def health_ratio(self) -> float:
        return self.current_health / self.max_health if self.max_health > 0 else 0.0

    @property
    def magic_full(self) -> bool:
        return self.current_magic >= self.max_magic

    def gain_magic(self, amount: int) -> None:
        self.current_magic = max(0, min(self.max_magic, self.current_magic + amount))

    def drain_magic(self) -> None:
        self.current_magic = 0

    def protected_at(self, now: float) -> bool:
        """Protection counts only while its window is still open."""
        return self.is_protected and now < self.protection_end_time

    def silenced_at(self, now: float) -> bool:
        return self.is_silenced and now < self.silence_end_time

    def immobilized_at(self, now: float) -> bool:
        return self.is_immobilized and now < self.immobilized_end_time

    def copy(self) -> Player:
        return Player(**{f.name: getattr(self, f.name) for f in fields(self)})

    def restore(self, original: Player) -> None:
        """Overwrite every field from *original*, keeping this object's identity."""
        for f in fields(self):
            setattr(self, f.name, getattr(original, f.name))


@dataclass(slots=True)
class OpponentBase:
    """State shared by every opponent variant."""

    kind: ClassVar[OpponentKind]

    id: int
    max_health: int
    current_health: int
    state: OpponentState = OpponentState.IDLE

    # --- Casting ---
    current_skill: Skill = Skill.NONE
    skill_cast_start_time: float = 0.0
    skill_cast_duration: float = 0.0
    next_skill_time: float = 0.0

    # --- Timed states ---
    stun_end_time: float = 0.0
    levitate_end_time: float = 0.0
    shadow_phase_end_time: float = 0.0

    # --- Bookkeeping ---
    rolls: int = 0                  # RNG draw counter, keys deterministic rolls
    defeat_handled: bool = False    # Defeat callback already delivered

    # --- Presentation ---
    x: float = 0.0
    y: float = 0.0
    color: str = "#8B4513"
    original_color: str = "#8B4513"

    @property
    def alive(self) -> bool:
        return self.state is not OpponentState.DEAD

    @property
    def health_ratio(self) -> float:
        return self.current_health / self.max_health if self.max_health > 0 else 0.0

    def cast_progress(self, now: float) -> float:
        """Fraction of the current cast window elapsed, clamped to [0, 1]."""
        if self.state is not OpponentState.CASTING or self.skill_cast_duration <= 0:
            return 0.0
        progress = (now - self.skill_cast_start_time) / self.skill_cast_duration
        return max(0.0, min(1.0, progress))

    def next_roll(self) -> int:
        roll = self.rolls
        self.rolls += 1
        return roll


@dataclass(slots=True)
class Spider(OpponentBase):
    """Web/venom combo caster; can be set on fire."""

    kind: ClassVar[OpponentKind] = OpponentKind.SPIDER

    is_on_fire: bool = False
    fire_end_time: float = 0.0
    fire_damage_time: float = 0.0
    can_cast_venom: bool = False
    last_web_hit: bool = False


@dataclass(slots=True)
class ThresholdOpponent(OpponentBase):
    """Opponent also defeated once cumulative landed damage reaches a threshold."""

    damage_threshold: int = 0
    total_damage_received: int = 0   # Monotonic

    @property
    def threshold_reached(self) -> bool:
        return self.total_damage_received >= self.damage_threshold


@dataclass(slots=True)
class Troll(ThresholdOpponent):
    """Armored brute; rock throws can be reflected with depulso."""

    kind: ClassVar[OpponentKind] = OpponentKind.TROLL

    has_chunk_armor: bool = False
    chunk_armor_end_time: float = 0.0
    is_rock_throw_reflected: bool = False


@dataclass(slots=True)
class FinalBoss(ThresholdOpponent):
    """Soul-sucking boss; evades into shadow phase unless stunned."""

    kind: ClassVar[OpponentKind] = OpponentKind.FINAL_BOSS


Opponent = Union[Spider, Troll, FinalBoss]
