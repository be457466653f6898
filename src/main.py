"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api import admin, auth, password_change, timecards, websocket
from src.config import Settings, get_settings
from src.database import Database
from src.exceptions import register_exception_handlers

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its own datastore handle."""
    settings = settings or get_settings()
    configure_logging(settings)

    database = Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle application startup and shutdown events."""
        # Local SQLite databases are not managed by alembic
        if settings.database_url.startswith("sqlite"):
            database.create_all()
        logger.info(f"Timecard API starting ({settings.environment})")
        yield
        database.dispose()

    app = FastAPI(
        title="Timecard API",
        description="Employee time card tracking with role-based dashboards",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Register routers
    app.include_router(auth.router)
    app.include_router(timecards.router)
    app.include_router(admin.router)
    app.include_router(password_change.router)
    app.include_router(websocket.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "environment": settings.environment}

    return app


app = create_app()
