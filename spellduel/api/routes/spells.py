"""POST /api/v1/spells — inbound recognised spell events."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from spellduel.api.dependencies import get_engine_manager
from spellduel.api.engine_manager import EngineManager
from spellduel.api.schemas import SpellCastRequest, SpellCastResponse

router = APIRouter()


@router.post("/spells", response_model=SpellCastResponse, status_code=202)
def cast_spell(
    request: SpellCastRequest,
    manager: EngineManager = Depends(get_engine_manager),
) -> SpellCastResponse:
    """Queue a spell; the engine gates and resolves it on its next tick."""
    manager.submit_spell(request.spell, request.confidence)
    snapshot = manager.get_snapshot()
    return SpellCastResponse(
        status="queued",
        spell=request.spell,
        confidence=request.confidence,
        time_ms=snapshot.time_ms if snapshot else 0.0,
    )
