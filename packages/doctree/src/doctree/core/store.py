"""Tree store: database engine ownership and units of work.

The store is the explicit handle passed to query and mutation components.
Each unit of work is one database transaction; it is the only concurrency
control the tree relies on.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from doctree.config import DatabaseConfig
from doctree.core.errors import ConflictError, StorageError
from doctree.core.repository import TreeNodeRepository
from doctree.core.schema import Base

logger = logging.getLogger(__name__)

SQLITE_BEGIN_OPTION = "sqlite_begin"


def _on_sqlite_connect(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()
    # Let SQLAlchemy emit BEGIN so reads and writes share one transaction
    dbapi_connection.isolation_level = None


def _on_sqlite_begin(conn: Any) -> None:
    # Writers take the write lock at BEGIN; readers stay deferred
    mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION)
    conn.exec_driver_sql(f"BEGIN {mode}" if mode else "BEGIN")


class TreeStore:
    """Owns the async engine and hands out repositories bound to transactions."""

    def __init__(
        self,
        database_url: str,
        *,
        echo: bool = False,
        isolation_level: str | None = None,
    ) -> None:
        """Initialize store.

        Args:
            database_url: SQLAlchemy async URL (e.g., "sqlite+aiosqlite:///doctree.db")
            echo: Log every SQL statement
            isolation_level: Transaction isolation level passed to the engine
        """
        engine_options: dict[str, Any] = {"echo": echo}
        if isolation_level is not None:
            engine_options["isolation_level"] = isolation_level
        self._engine: AsyncEngine = create_async_engine(database_url, **engine_options)
        if self._engine.dialect.name == "sqlite":
            event.listen(self._engine.sync_engine, "connect", _on_sqlite_connect)
            event.listen(self._engine.sync_engine, "begin", _on_sqlite_begin)
        self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)
        self._write_sessionmaker = async_sessionmaker(
            self._engine.execution_options(**{SQLITE_BEGIN_OPTION: "IMMEDIATE"}),
            expire_on_commit=False,
        )

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> TreeStore:
        return cls(
            config.url,
            echo=config.echo,
            isolation_level=config.isolation_level,
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_schema(self) -> None:
        """Create the tree table and indexes if they don't exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Schema ready on {self._engine.url.render_as_string(hide_password=True)}")

    async def dispose(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def unit_of_work(self, *, write: bool = False) -> AsyncIterator[TreeNodeRepository]:
        """Run repository calls inside one transaction.

        Commits when the block exits normally and rolls back on any error.

        Args:
            write: Take the database write lock when the transaction begins.
                On SQLite this serializes writers (`BEGIN IMMEDIATE`), so a
                pre-check always sees siblings committed by a concurrent
                writer.

        Raises:
            ConflictError: If a uniqueness constraint rejected a write
            StorageError: If the database failed for any other reason
        """
        sessionmaker = self._write_sessionmaker if write else self._sessionmaker
        try:
            async with sessionmaker.begin() as session:
                yield TreeNodeRepository(session)
        except IntegrityError as e:
            logger.debug(f"Unit of work rejected by constraint: {e.orig}")
            raise ConflictError(message="A node with this name already exists") from e
        except SQLAlchemyError as e:
            logger.error(f"Unit of work failed: {e}")
            raise StorageError(str(e)) from e
