"""GET /api/v1/state and /api/v1/events — live duel data (polled by UI)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from spellduel.api.dependencies import get_engine_manager
from spellduel.api.engine_manager import EngineManager
from spellduel.api.schemas import DuelStateResponse, EventSchema, OpponentSchema, PlayerSchema
from spellduel.utils.event_log import DuelEvent

router = APIRouter()


def _serialize_event(ev: DuelEvent) -> EventSchema:
    return EventSchema(
        time_ms=ev.time_ms,
        category=ev.category,
        message=ev.message,
        opponent_id=ev.opponent_id,
        metadata=ev.metadata,
    )


@router.get("/state", response_model=DuelStateResponse)
def get_state(
    since_ms: float = Query(0.0, ge=0.0, description="Only return events at or after this time (ms)"),
    manager: EngineManager = Depends(get_engine_manager),
) -> DuelStateResponse:
    snapshot = manager.get_snapshot()
    if snapshot is None:
        raise HTTPException(status_code=503, detail="No snapshot available yet.")

    p = snapshot.player
    o = snapshot.opponent
    return DuelStateResponse(
        time_ms=snapshot.time_ms,
        tick=snapshot.tick,
        step=snapshot.step,
        game_over=snapshot.game_over,
        game_won=snapshot.game_won,
        running=manager.running,
        paused=manager.paused,
        player=PlayerSchema(
            current_health=p.current_health, max_health=p.max_health,
            current_magic=p.current_magic, max_magic=p.max_magic, color=p.color,
            immobilized_ms=p.immobilized_ms, poisoned_ms=p.poisoned_ms,
            poison_damage=p.poison_damage, protected_ms=p.protected_ms,
            silenced_ms=p.silenced_ms,
        ),
        opponent=OpponentSchema(
            id=o.id, kind=o.kind, state=o.state,
            current_health=o.current_health, max_health=o.max_health,
            current_skill=o.current_skill, cast_progress=o.cast_progress, color=o.color,
            total_damage_received=o.total_damage_received, damage_threshold=o.damage_threshold,
            has_chunk_armor=o.has_chunk_armor, is_on_fire=o.is_on_fire,
        ) if o is not None else None,
        pending_timers=snapshot.pending_timers,
        last_spell=snapshot.last_spell,
        spells_cast=snapshot.spells_cast,
        events=[_serialize_event(ev) for ev in manager.event_log.since(since_ms)],
    )


@router.get("/events", response_model=list[EventSchema])
def get_events(
    since: float = Query(0.0, ge=0.0, description="Only return events at or after this time (ms)"),
    manager: EngineManager = Depends(get_engine_manager),
) -> list[EventSchema]:
    return [_serialize_event(ev) for ev in manager.event_log.since(since)]
