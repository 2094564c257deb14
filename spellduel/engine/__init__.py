"""Engine layer: timers, status effects, damage, opponent AI, spells, encounter."""

from spellduel.engine.command_queue import CommandQueue
from spellduel.engine.damage import DamageResolver
from spellduel.engine.encounter import Encounter
from spellduel.engine.skills import SkillScheduler
from spellduel.engine.spells import SpellResolver
from spellduel.engine.status_effects import StatusEffects
from spellduel.engine.timers import TimerRegistry

__all__ = [
    "CommandQueue",
    "DamageResolver",
    "Encounter",
    "SkillScheduler",
    "SpellResolver",
    "StatusEffects",
    "TimerRegistry",
]
