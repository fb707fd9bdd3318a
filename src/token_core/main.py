# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.


"""TokenCore - application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from beartype import beartype
from fastapi import FastAPI

from .api.v1 import router as v1_router
from .core.config import Settings, get_settings
from .core.database import close_db_pool, init_db_pool
from .core.logging_utils import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database pool on startup and close it on shutdown."""
    logger = get_logger(__name__)
    await init_db_pool()
    logger.info("TokenCore started")
    try:
        yield
    finally:
        await close_db_pool()
        logger.info("TokenCore stopped")


@beartype
def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.include_router(v1_router)
    return app
