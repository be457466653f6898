"""Database configuration and session management."""

import logging
from collections.abc import Generator
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base: Any = declarative_base()


class Database:
    """Engine and session factory for one datastore.

    Constructed once by the process entry point and shared by every request;
    connections come from the engine's pool.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        engine_args: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
        if url.startswith("postgresql"):
            engine_args.update({"pool_size": 5, "max_overflow": 10, "pool_recycle": 300})
        elif url.startswith("sqlite"):
            engine_args["connect_args"] = {"check_same_thread": False}

        self.url = url
        self.engine = create_engine(url, **engine_args)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def session(self) -> Generator[Session, None, None]:
        """Yield a session and close it afterwards."""
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def create_all(self) -> None:
        """Create all tables (local development and tests; production uses alembic)."""
        # Import all models here so they are registered with Base.metadata
        from src import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connection pool disposed")


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that provides a database session from the app's Database."""
    database: Database = request.app.state.database
    yield from database.session()
