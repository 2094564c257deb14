"""Enumerations used throughout the engine."""

from __future__ import annotations

from enum import Enum, IntEnum, unique


@unique
class OpponentKind(str, Enum):
    """Tag discriminating the opponent variants."""

    SPIDER = "spider"
    TROLL = "troll"
    FINAL_BOSS = "dementor"


@unique
class OpponentState(str, Enum):
    """Finite-state-machine states shared by every opponent.

    DEAD is terminal.
    """

    IDLE = "idle"
    CASTING = "casting"
    STUNNED = "stunned"
    LEVITATING = "levitating"
    SHADOW_PHASE = "shadowphase"
    DEAD = "dead"


@unique
class Skill(str, Enum):
    """Opponent skills.  NONE marks "no cast in progress"."""

    NONE = ""
    WEB = "web"
    VENOM = "venom"
    ROCK_THROW = "rockthrow"
    CHUNK_ARMOR = "chunkarmor"
    STOMP = "stomp"
    SOUL_DRAIN = "souldrain"
    SILENCE_SHRIEK = "silenceshriek"


@unique
class Spell(str, Enum):
    """Player spells recognised by the engine."""

    EXPELLIARMUS = "expelliarmus"
    LEVICORPUS = "levicorpus"
    PROTEGO = "protego"
    GLACIUS = "glacius"
    INCENDIO = "incendio"
    BOMBARDA = "bombarda"
    DEPULSO = "depulso"
    AVADA_KEDAVRA = "avada kedavra"

    @classmethod
    def parse(cls, name: str) -> Spell | None:
        """Normalise a recognised phrase into a Spell, or None if unknown."""
        key = " ".join(name.strip().lower().split())
        try:
            return cls(key)
        except ValueError:
            return None


@unique
class SpellOutcome(str, Enum):
    """What the engine did with an incoming spell event."""

    CAST = "cast"
    IGNORED = "ignored"
    SILENCED = "silenced"
    IMMOBILIZED = "immobilized"
    INSUFFICIENT_MAGIC = "insufficient_magic"


@unique
class EncounterStep(str, Enum):
    """Progression through the opponent roster."""

    SPIDER = "spider"
    TROLL = "troll"
    FINAL_BOSS = "dementor"
    NONE = "none"


@unique
class Domain(IntEnum):
    """RNG domains for deterministic randomness isolation."""

    SPAWN = 0
    SKILL_SELECT = 1
    COOLDOWN = 2
