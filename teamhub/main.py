# -*- coding: utf-8 -*-
"""Location: ./teamhub/main.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

teamhub Application.
FastAPI application exposing the team endpoints under ``/team``.

Run with:
    uvicorn teamhub.main:app --host 0.0.0.0 --port 8000
"""

# Standard
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

# Third-Party
from fastapi import FastAPI

# First-Party
from teamhub import __version__
from teamhub.config import settings
from teamhub.db import init_db
from teamhub.routers.team_router import team_router
from teamhub.services.logging_service import LoggingService
from teamhub.utils.redis_client import close_redis_client

# Initialize logging
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Set up logging and tables on startup; release Redis on shutdown.

    Args:
        _app: The application

    Yields:
        None
    """
    logging_service.initialize()
    if settings.db_auto_create:
        init_db()
    logger.info(f"{settings.app_name} {__version__} started")
    try:
        yield
    finally:
        await close_redis_client()
        logger.info(f"{settings.app_name} shutting down")
        logging_service.shutdown()


app = FastAPI(title=settings.app_name, version=__version__, root_path=settings.app_root_path, lifespan=lifespan)
app.include_router(team_router, prefix="/team", tags=["Teams"])


@app.get("/health", tags=["Health"])
async def health() -> Dict[str, str]:
    """Liveness probe.

    Returns:
        Dict[str, str]: Static healthy status
    """
    return {"status": "healthy"}
