from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .container import ApplicationContainer, build_container
from .logging import configure_logging
from ..presentation.api.error_handling import register_exception_handlers
from ..presentation.api.routers import user_router

logger = logging.getLogger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    container: Optional[ApplicationContainer] = None,
) -> FastAPI:
    """Build the API. A prepared container (tests, scripts) replaces the one built at startup."""
    settings = settings or (container.settings if container else Settings())

    app = FastAPI(title="Hostel API", lifespan=_create_lifespan(settings, container))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(user_router.router)

    return app


def _create_lifespan(settings: Settings, prepared: Optional[ApplicationContainer]):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        container = prepared or build_container(settings)
        app.state.container = container  # type: ignore[attr-defined]
        logger.info(
            "Hostel API ready (session cache: %s)", type(container.session_cache).__name__
        )

        try:
            yield
        finally:
            await container.session_cache.close()

    return lifespan
