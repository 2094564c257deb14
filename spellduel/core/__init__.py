"""Core data models: enums, player and opponents, read-only snapshots."""

from spellduel.core.enums import (
    Domain,
    EncounterStep,
    OpponentKind,
    OpponentState,
    Skill,
    Spell,
    SpellOutcome,
)
from spellduel.core.models import FinalBoss, Opponent, Player, Spider, Troll
from spellduel.core.snapshot import Snapshot

__all__ = [
    "Domain",
    "EncounterStep",
    "FinalBoss",
    "Opponent",
    "OpponentKind",
    "OpponentState",
    "Player",
    "Skill",
    "Snapshot",
    "Spell",
    "SpellOutcome",
    "Spider",
    "Troll",
]
