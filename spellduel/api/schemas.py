"""Pydantic request/response models for the REST API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# --- Entities ---

class PlayerSchema(BaseModel):
    current_health: int
    max_health: int
    current_magic: int
    max_magic: int
    color: str
    # Remaining time (ms) per status effect; 0 when inactive
    immobilized_ms: float = 0.0
    poisoned_ms: float = 0.0
    poison_damage: int = 0
    protected_ms: float = 0.0
    silenced_ms: float = 0.0


class OpponentSchema(BaseModel):
    id: int
    kind: str
    state: str
    current_health: int
    max_health: int
    current_skill: str = ""
    cast_progress: float = Field(0.0, ge=0.0, le=1.0)
    color: str
    total_damage_received: int | None = None
    damage_threshold: int | None = None
    has_chunk_armor: bool = False
    is_on_fire: bool = False


class EventSchema(BaseModel):
    time_ms: float
    category: str
    message: str
    opponent_id: int | None = None
    metadata: dict[str, Any] | None = None


class DuelStateResponse(BaseModel):
    time_ms: float
    tick: int
    step: str
    game_over: bool
    game_won: bool
    running: bool
    paused: bool
    player: PlayerSchema
    opponent: OpponentSchema | None = None
    pending_timers: int = 0
    last_spell: str | None = None
    spells_cast: int = 0
    events: list[EventSchema] = Field(default_factory=list)


# --- Spells ---

class SpellCastRequest(BaseModel):
    spell: str = Field(..., min_length=1, description="Recognised spell phrase, e.g. 'expelliarmus'")
    confidence: float = Field(1.0, ge=0.0, le=1.0, description="Recogniser confidence")


class SpellCastResponse(BaseModel):
    status: str
    spell: str
    confidence: float
    time_ms: float = 0.0


# --- Control ---

class ControlResponse(BaseModel):
    status: str
    message: str
    tick: int = 0


# --- Config ---

class DuelConfigResponse(BaseModel):
    seed: int
    tick_rate_hz: float
    max_frame_ms: float
    player_max_health: int
    player_max_magic: int
    magic_per_hit: int
    spider_max_health: int
    troll_max_health: int
    troll_damage_threshold: int
    boss_max_health: int
    boss_damage_threshold: int
    protego_duration_ms: float
    confidence_cap: float
    tick_rate: float
