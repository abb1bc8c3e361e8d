"""Engine and sessions for the CityWise store (rule tables, zoning tables, project checklists).

The engine is created on first use so that importing the API or the pure
resolver never opens a connection; without a reachable database the API
keeps serving the built-in rule tables. Callers own their session's
transaction: the checklist pipeline and the seeder commit or roll back
themselves, and /health only reads.
"""

import logging
import ssl

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from citywise.config import settings
from citywise.storage.models import Base

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 10  # seconds, asyncpg
POOL_RECYCLE = 300  # seconds; managed Postgres drops idle connections

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        connect_args: dict = {"timeout": CONNECT_TIMEOUT}
        if settings.database_require_ssl:
            connect_args["ssl"] = ssl.create_default_context()
        _engine = create_async_engine(
            settings.database_url,
            echo=False,
            pool_pre_ping=True,
            pool_recycle=POOL_RECYCLE,
            connect_args=connect_args,
        )
    return _engine


async def init_db() -> None:
    """Create the rule, zoning, requirement and task tables if missing."""
    async with _get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


async def get_session() -> AsyncSession:
    """Open a session on the shared engine. The caller must close it."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(_get_engine(), expire_on_commit=False)
    return _session_factory()


async def dispose_db() -> None:
    """Close pooled connections; the next get_session() builds a fresh engine."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
