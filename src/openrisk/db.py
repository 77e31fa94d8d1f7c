"""SQLite engine for the analysis store.

The database lives at $DATA_DIR/analyses.db (default ~/.openrisk), or at
$OPENRISK_DB when that names a file directly. WAL mode lets cache lookups
proceed while a fresh analysis is being written.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = os.path.expanduser("~/.openrisk")
DB_FILENAME = "analyses.db"

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA busy_timeout=5000",
)


def get_db_path() -> Path:
    """Resolve the database file, creating its directory if needed."""
    explicit = os.environ.get("OPENRISK_DB")
    if explicit:
        path = Path(explicit).expanduser()
    else:
        path = Path(os.environ.get("DATA_DIR", DEFAULT_DATA_DIR)) / DB_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _apply_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    for pragma in SQLITE_PRAGMAS:
        cursor.execute(pragma)
    cursor.close()


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_async_engine(f"sqlite+aiosqlite:///{get_db_path()}", echo=False)
        event.listen(_engine.sync_engine, "connect", _apply_pragmas)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def init_db():
    """Create the snapshot table if it doesn't exist."""
    from .sqlmodels import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Analysis store ready at %s", get_db_path())


async def close_db():
    """Dispose of the engine so the next call starts from current settings."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
