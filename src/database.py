"""
Database connection and session management.
Uses SQLAlchemy 2.0 async pattern.

The engine is owned by a ``Database`` handle that is created once in the
application lifespan and passed explicitly to the services that need it.
"""

from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from src.logging_config import get_logger

logger = get_logger(__name__)


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable WAL mode + foreign keys on every new SQLite connection."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


class Database:
    """
    Store handle: engine plus session factory.

    Usage:
        db = Database(settings.database_url)
        await db.init()
        async with db.session() as session:
            ...
        await db.close()
    """

    def __init__(self, url: str, *, echo: bool = False):
        self.url = url
        self.is_sqlite = url.startswith("sqlite")

        if self.is_sqlite:
            # NullPool: every session gets its own connection, avoiding
            # "cannot commit transaction - SQL statements in progress".
            self.engine: AsyncEngine = create_async_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=NullPool,
            )
            event.listen(self.engine.sync_engine, "connect", _set_sqlite_pragma)
        else:
            self.engine = create_async_engine(
                url,
                echo=echo,
                pool_pre_ping=True,
                pool_size=5,
                max_overflow=10,
            )

        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    def session(self) -> AsyncSession:
        """Open a new session. Use as an async context manager."""
        if self._session_maker is None:
            raise RuntimeError("Database has been closed")
        return self._session_maker()

    async def init(self) -> None:
        """Create tables for all registered models."""
        from src.kernel.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized", extra={"sqlite": self.is_sqlite})

    async def drop_all(self) -> None:
        """Drop all tables. Test and maintenance use only."""
        from src.kernel.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def close(self) -> None:
        """Dispose of pooled connections."""
        self._session_maker = None
        await self.engine.dispose()
        logger.info("Database connections closed")
