"""Retos API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map RetosError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and storage client initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - allow_credentials=True: browsers send the session cookie cross-origin
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import app.infrastructure.database as database
import app.infrastructure.storage_client as storage
from app.api.error_handlers import register_error_handlers
from app.infrastructure.observability import setup_logging
from app.config import get_settings
from app.api.routes import health, rooms, uploads

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    storage.init_storage(
        settings.storage_url,
        settings.storage_service_key,
        settings.storage_bucket,
        timeout_seconds=settings.storage_timeout_seconds,
        max_retries=settings.storage_max_retries,
        base_delay_ms=settings.storage_base_delay_ms,
        max_delay_ms=settings.storage_max_delay_ms,
    )
    logger.info("Retos API started")
    yield
    logger.info("Retos API shutting down")
    if storage.storage_client:
        await storage.storage_client.aclose()
    if database.db_manager:
        await database.db_manager.dispose()


app = FastAPI(
    title="Retos API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(rooms.router)
app.include_router(uploads.router)

register_error_handlers(app)
