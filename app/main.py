"""
FastAPI Application Entry Point

This module builds the FastAPI application and configures:
- API routes
- Middleware (logging, CORS)
- Error translation for the service's error taxonomy
- Process-wide shared state: session factory, click recorder, rate limiters
- Lifespan: schema bootstrap, maintenance loop, click drain on shutdown

Design Decisions:
- create_app() owns all shared state; nothing is a module-level singleton
  except the `app` instance uvicorn imports (app.main:app)
- Shared state is attached at construction time, so the app also works
  under test transports that skip the lifespan
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from app.api import endpoints
from app.api.errors import add_exception_handlers
from app.core.rate_limit import build_rate_limiters
from app.core.setting import settings
from app.db import session as db_session
from app.middleware.logging import add_logging_middleware
from app.services.click_recorder import ClickRecorder
from app.services.maintenance import MaintenanceWorker

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup and clean up on shutdown."""
    if settings.DB_AUTO_CREATE:
        await db_session.init_db(app.state.engine)

    app.state.maintenance.start()
    logger.info("URL shortener started")
    try:
        yield
    finally:
        await app.state.maintenance.stop()
        pending = app.state.click_recorder.pending
        if pending:
            logger.info(f"Waiting for {pending} click writes before shutdown")
        await app.state.click_recorder.drain()
        logger.info("URL shortener stopped")


def create_app(engine: Optional[AsyncEngine] = None) -> FastAPI:
    """
    Build the application.

    Args:
        engine: Database engine to use (default: the engine for settings.DATABASE_URL)
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if engine is None:
        engine = db_session.engine
        session_maker = db_session.async_session_maker
    else:
        session_maker = db_session.create_session_maker(engine)

    app = FastAPI(
        title="URL Shortener Service",
        description="Short links with expiry, click counting and per-client rate limits",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.engine = engine
    app.state.session_maker = session_maker
    app.state.click_recorder = ClickRecorder(session_maker)
    app.state.rate_limiters = build_rate_limiters(settings)
    app.state.maintenance = MaintenanceWorker(
        session_maker,
        app.state.rate_limiters,
        interval_seconds=settings.MAINTENANCE_INTERVAL_SECONDS,
    )

    add_exception_handlers(app)
    add_logging_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health endpoints defined before router to match before catch-all route
    @app.get("/", tags=["Health"])
    async def root():
        """Service banner."""
        return {
            "message": "URL Shortener Service",
            "version": APP_VERSION,
            "docs": "/docs"
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """
        Health check endpoint for monitoring.

        Reports "degraded" when the database does not answer.
        """
        async with app.state.session_maker() as session:
            database_ok = await db_session.ping(session)
        return {
            "status": "healthy" if database_ok else "degraded",
            "version": APP_VERSION,
            "database": database_ok,
        }

    app.include_router(endpoints.router, tags=["URL Shortener"])

    return app


app = create_app()
