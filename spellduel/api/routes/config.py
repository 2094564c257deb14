"""GET /api/v1/config — expose duel configuration."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from spellduel.api.dependencies import get_engine_manager
from spellduel.api.engine_manager import EngineManager
from spellduel.api.schemas import DuelConfigResponse

router = APIRouter()


@router.get("/config", response_model=DuelConfigResponse)
def get_config(
    manager: EngineManager = Depends(get_engine_manager),
) -> DuelConfigResponse:
    cfg = manager.config
    return DuelConfigResponse(
        seed=cfg.seed,
        tick_rate_hz=cfg.tick_rate_hz,
        max_frame_ms=cfg.max_frame_ms,
        player_max_health=cfg.player_max_health,
        player_max_magic=cfg.player_max_magic,
        magic_per_hit=cfg.magic_per_hit,
        spider_max_health=cfg.spider_max_health,
        troll_max_health=cfg.troll_max_health,
        troll_damage_threshold=cfg.troll_damage_threshold,
        boss_max_health=cfg.boss_max_health,
        boss_damage_threshold=cfg.boss_damage_threshold,
        protego_duration_ms=cfg.protego_duration_ms,
        confidence_cap=cfg.confidence_cap,
        tick_rate=manager.tick_rate,
    )
