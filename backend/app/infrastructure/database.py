"""Database Session Manager — async engine, per-request sessions, error mapping.

Invariants:
    - A session that raises is rolled back before the error leaves the manager
    - Every SQLAlchemy exception surfaces as DatabaseError (core/errors.py) with the
      driver's one-line message; SQL text and bound parameters are never exposed
    - RetosError raised by services passes through untouched (still rolled back)

Design Decisions:
    - Singleton db_manager initialized in the FastAPI lifespan (ADR: no global
      import side effects)
    - expire_on_commit=False: services return ORM rows after commit without a reload
    - Pool sizing only passed for server databases; SQLite picks its own pool class
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from app.core.errors import DatabaseError, RetosError

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError subclass DBAPIError
_OPERATION_BY_ERROR: tuple[tuple[type[SQLAlchemyError], str], ...] = (
    (IntegrityError, "commit"),
    (OperationalError, "execute"),
    (DBAPIError, "query"),
)


def _driver_message(e: SQLAlchemyError) -> str:
    """Underlying driver message, without the SQL statement and parameters."""
    return str(getattr(e, "orig", None) or e).splitlines()[0]


def to_database_error(e: SQLAlchemyError) -> DatabaseError:
    for error_type, operation in _OPERATION_BY_ERROR:
        if isinstance(e, error_type):
            return DatabaseError(_driver_message(e), operation)
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            error = to_database_error(e)
            logger.error(error.message, extra={"error_code": error.code})
            raise error from e
        except RetosError:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """SELECT 1 through a pooled session (readiness probe)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except (DatabaseError, OSError) as e:
            logger.error(f"DB health check failed: {e}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
