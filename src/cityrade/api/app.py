"""FastAPI application serving Cityrade worlds."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cityrade.api import routes
from cityrade.api.runtime import ApiState, build_state
from cityrade.config import Settings, get_settings

logger = logging.getLogger(__name__)

DESCRIPTION = (
    "Found cities on a tiled map, raise buildings, trade on city markets and "
    "advance the world tick by tick or on a schedule."
)


def create_app(
    *,
    state_factory: Callable[[], ApiState] = build_state,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the app; ``state_factory`` runs once per lifespan."""

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state = state_factory()
        app.state.api_state = state
        logger.info(
            "serving %d worlds from %s (rules %s, tick every %.1fs)",
            len(state.repository.list_worlds()),
            state.settings.data_dir,
            state.settings.rules_version,
            state.ticks.interval_seconds,
        )
        try:
            yield
        finally:
            scheduled = sorted(int(world_id) for world_id in state.ticks.enabled_worlds())
            if scheduled:
                logger.info("stopping scheduled ticks for worlds %s", scheduled)
            await state.shutdown()

    app = FastAPI(
        title="Cityrade API",
        version="0.1.0",
        description=DESCRIPTION,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(routes.router)
    return app


app = create_app()
