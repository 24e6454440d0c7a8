"""Config table: a key/value store for the setup status and settings.

The table holds a handful of rows (status, domain, github_repo). Writes are
SQLite upserts, so the last writer wins.
"""

import logging
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import Column, Text
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel import Field, SQLModel

from opencode_controlplane.logging_schema import LogEvent

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

STATUS_KEY = "status"


class ConfigStatus(StrEnum):
    """Setup state.

    State transitions:
    - UNCONFIGURED -> CONFIGURING (configure)
    - CONFIGURING -> READY (setup file written) | ERROR (any failure)
    - ERROR / READY -> CONFIGURING (configure again)
    """

    UNCONFIGURED = "UNCONFIGURED"
    CONFIGURING = "CONFIGURING"
    READY = "READY"
    ERROR = "ERROR"


class ConfigEntry(SQLModel, table=True):
    """One configuration value."""

    __tablename__ = "config"

    key: str = Field(sa_column=Column(Text, primary_key=True))
    value: str = Field(sa_column=Column(Text, nullable=False))


_engine: "AsyncEngine | None" = None


def _ensure_sqlite_dir(database_url: str) -> None:
    database = make_url(database_url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


async def init_db(database_url: str, echo: bool = False) -> "AsyncEngine":
    """Create the engine and the config table, seeding status=UNCONFIGURED."""
    global _engine

    _ensure_sqlite_dir(database_url)
    _engine = create_async_engine(database_url, echo=echo)

    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
        await conn.execute(
            insert(ConfigEntry)
            .values(key=STATUS_KEY, value=ConfigStatus.UNCONFIGURED.value)
            .on_conflict_do_nothing(index_elements=["key"])
        )

    logger.info(
        "Database initialized: %s",
        database_url,
        extra={"event": LogEvent.DB_INITIALIZED},
    )
    return _engine


async def close_db() -> None:
    """Close database connection."""
    global _engine
    if _engine:
        await _engine.dispose()
        _engine = None
        logger.info("Database connection closed")


def get_engine() -> "AsyncEngine":
    """Get the current database engine."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _engine


class ConfigStore:
    """Typed access to the config table."""

    def __init__(self, engine: "AsyncEngine") -> None:
        self._engine = engine

    async def get(self, key: str) -> str | None:
        async with AsyncSession(self._engine) as session:
            entry = await session.get(ConfigEntry, key)
            return entry.value if entry else None

    async def set(self, key: str, value: str) -> None:
        stmt = insert(ConfigEntry).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(
            index_elements=["key"],
            set_={"value": stmt.excluded.value},
        )
        async with AsyncSession(self._engine) as session:
            await session.execute(stmt)
            await session.commit()

    async def get_status(self) -> ConfigStatus | None:
        """Current status; None when the row is missing or holds an unknown value."""
        raw = await self.get(STATUS_KEY)
        try:
            return ConfigStatus(raw) if raw is not None else None
        except ValueError:
            return None

    async def set_status(self, status: ConfigStatus) -> None:
        await self.set(STATUS_KEY, status.value)
        logger.info(
            "Status changed to %s",
            status,
            extra={"event": LogEvent.STATUS_CHANGED, "status": status.value},
        )
