"""Immutable read-only views of the duel for renderers and the API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from spellduel.core.models import Spider, ThresholdOpponent, Troll

if TYPE_CHECKING:
    from spellduel.core.models import Opponent, Player


def _remaining(active: bool, end_time: float, now: float) -> float:
    return max(0.0, end_time - now) if active else 0.0


@dataclass(frozen=True, slots=True)
class PlayerView:
    current_health: int
    max_health: int
    current_magic: int
    max_magic: int
    color: str
    immobilized_ms: float
    poisoned_ms: float
    poison_damage: int
    protected_ms: float
    silenced_ms: float

    @classmethod
    def from_player(cls, player: Player, now: float) -> PlayerView:
        return cls(
            current_health=player.current_health,
            max_health=player.max_health,
            current_magic=player.current_magic,
            max_magic=player.max_magic,
            color=player.color,
            immobilized_ms=_remaining(player.is_immobilized, player.immobilized_end_time, now),
            poisoned_ms=_remaining(player.is_poisoned, player.poison_end_time, now),
            poison_damage=player.poison_damage if player.is_poisoned else 0,
            protected_ms=_remaining(player.is_protected, player.protection_end_time, now),
            silenced_ms=_remaining(player.is_silenced, player.silence_end_time, now),
        )


@dataclass(frozen=True, slots=True)
class OpponentView:
    id: int
    kind: str
    state: str
    current_health: int
    max_health: int
    current_skill: str
    cast_progress: float
    color: str
    total_damage_received: int | None = None
    damage_threshold: int | None = None
    has_chunk_armor: bool = False
    is_on_fire: bool = False

    @classmethod
    def from_opponent(cls, opponent: Opponent, now: float) -> OpponentView:
        total = threshold = None
        if isinstance(opponent, ThresholdOpponent):
            total = opponent.total_damage_received
            threshold = opponent.damage_threshold
        return cls(
            id=opponent.id,
            kind=opponent.kind.value,
            state=opponent.state.value,
            current_health=opponent.current_health,
            max_health=opponent.max_health,
            current_skill=opponent.current_skill.value,
            cast_progress=opponent.cast_progress(now),
            color=opponent.color,
            total_damage_received=total,
            damage_threshold=threshold,
            has_chunk_armor=isinstance(opponent, Troll) and opponent.has_chunk_armor,
            is_on_fire=isinstance(opponent, Spider) and opponent.is_on_fire,
        )


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Everything a renderer needs for one frame.  Safe to share across threads."""

    time_ms: float
    tick: int
    step: str
    game_over: bool
    game_won: bool
    player: PlayerView
    opponent: OpponentView | None
    pending_timers: int
    last_spell: str | None
    spells_cast: int
