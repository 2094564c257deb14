"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spellduel.api.dependencies import set_engine_manager
from spellduel.api.engine_manager import EngineManager
from spellduel.api.routes import api_router
from spellduel.config import DuelConfig
from spellduel.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(config: DuelConfig | None = None) -> FastAPI:
    """Build and return the fully-configured FastAPI application."""
    if config is None:
        config = DuelConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(_config.log_level)
        manager = EngineManager(_config)
        set_engine_manager(manager)
        manager.start()
        logger.info("API server started — duel running (seed=%d).", _config.seed)
        yield
        manager.stop()
        logger.info("API server shutting down.")

    app = FastAPI(
        title="Spell Duel Engine",
        description=(
            "Real-time spell-duel combat engine.\n\n"
            "## API Groups\n\n"
            "- **State** — Live duel state: player, active opponent, events\n"
            "- **Spells** — Inbound recognised spells from the speech front end\n"
            "- **Control** — Duel lifecycle: start, pause, resume, step, reset, skip\n"
            "- **Config** — Read-only duel configuration\n"
        ),
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "State", "description": "Snapshot of the duel polled by the renderer, plus the event feed."},
            {"name": "Spells", "description": "Spell events queued for the engine thread; gating happens on the next tick."},
            {"name": "Control", "description": "Start, pause, resume, single-step, reset and skip the current opponent."},
            {"name": "Config", "description": "Read-only duel configuration (seed, tick rate, health pools, thresholds)."},
        ],
    )

    # CORS: allow any origin in dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app
