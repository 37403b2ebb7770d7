"""Async database engine, sessions and transaction scope."""
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Optional

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ..errors import AssignmentError, UpstreamError

if TYPE_CHECKING:
    from .gateway import ReviewGateway

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the async engine and hands out sessions and transactions.

    ``transaction()`` is the unit of work used by the engines: every read and
    write made through the yielded gateway shares one database transaction,
    which commits when the block exits normally and rolls back on any
    exception, including task cancellation.
    """

    def __init__(self, url: str, echo: bool = False):
        """Initialize the database.

        Args:
            url: SQLAlchemy async database URL
            echo: Log every SQL statement
        """
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_tables(self) -> None:
        """Create all tables that do not exist yet."""
        # Register models on the metadata
        from .. import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop every table."""
        from .. import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a plain session; the caller decides when to commit."""
        async with self.session_factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["ReviewGateway"]:
        """Yield a gateway bound to one database transaction.

        Engine errors pass through unchanged; any other storage failure is
        re-raised as :class:`UpstreamError` after the rollback.
        """
        from .gateway import SqlAlchemyGateway

        async with self.session_factory() as session:
            try:
                async with session.begin():
                    yield SqlAlchemyGateway(session)
            except AssignmentError:
                raise
            except SQLAlchemyError as e:
                logger.error(f"Transaction rolled back: {e}")
                raise UpstreamError(str(e)) from e

    async def close(self) -> None:
        """Dispose of the engine and its connection pool."""
        await self.engine.dispose()


# Process-wide database for the HTTP and CLI shells
_db: Optional[Database] = None


def init_db(url: str, echo: bool = False) -> Database:
    """Create the process-wide database instance."""
    global _db
    _db = Database(url, echo=echo)
    return _db


def get_db() -> Database:
    """Return the process-wide database.

    Raises:
        RuntimeError: If ``init_db`` has not been called
    """
    if _db is None:
        raise RuntimeError("Database not initialized")
    return _db
