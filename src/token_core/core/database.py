# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Database connection management with asyncpg and connection pooling."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

import asyncpg
from attrs import field, frozen
from beartype import beartype

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

# Faults that mean "the datastore is unavailable", not "the request is bad".
INFRASTRUCTURE_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


class DatastoreError(Exception):
    """Infrastructure failure while talking to the datastore.

    Never mapped to an OAuth2 error code; callers surface it as a 5xx.
    """


@frozen
class PoolConfig:
    """Immutable pool configuration."""

    min_connections: int = field()
    max_connections: int = field()
    connection_timeout: float = field(default=10.0)
    command_timeout: float = field(default=30.0)
    server_settings: dict[str, str] = field(factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PoolConfig":
        """Build the pool configuration from application settings."""
        return cls(
            min_connections=settings.database_pool_min,
            max_connections=settings.database_pool_max,
            connection_timeout=settings.database_pool_timeout,
            command_timeout=settings.database_command_timeout,
            server_settings={
                "application_name": settings.app_name,
                "jit": "off",
            },
        )


class Database:
    """asyncpg pool owner handing out connections and transactions."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize database manager."""
        self._pool: asyncpg.Pool | None = None
        self._settings = settings or get_settings()
        self._pool_config = PoolConfig.from_settings(self._settings)

    @beartype
    async def connect(self) -> None:
        """Create the connection pool."""
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(
                self._settings.database_url,
                min_size=self._pool_config.min_connections,
                max_size=self._pool_config.max_connections,
                command_timeout=self._pool_config.command_timeout,
                server_settings=self._pool_config.server_settings,
            )
        except INFRASTRUCTURE_ERRORS as e:
            raise DatastoreError(f"Failed to create connection pool: {e}") from e

        logger.info(
            "Database pool ready (min=%d, max=%d)",
            self._pool_config.min_connections,
            self._pool_config.max_connections,
        )

    @beartype
    async def disconnect(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
        self._pool = None

    @contextlib.asynccontextmanager
    @beartype
    async def acquire(
        self, *, timeout: float | None = None
    ) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a pooled connection."""
        if self._pool is None:
            raise DatastoreError("Database not connected")

        timeout = timeout or self._pool_config.connection_timeout
        try:
            async with self._pool.acquire(timeout=timeout) as conn:
                yield conn
        except INFRASTRUCTURE_ERRORS as e:
            raise DatastoreError(f"Datastore failure: {e}") from e

    @contextlib.asynccontextmanager
    @beartype
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """Open a transaction; commits on clean exit, rolls back on any exception."""
        async with self.acquire() as conn:
            async with conn.transaction():
                yield conn

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._pool is not None


# Global database instance
_database: Database | None = None


@beartype
def get_database() -> Database:
    """Get global database instance."""
    global _database
    if _database is None:
        _database = Database()
    return _database


@beartype
async def init_db_pool() -> None:
    """Initialize the database connection pool."""
    await get_database().connect()


@beartype
async def close_db_pool() -> None:
    """Close the database connection pool."""
    global _database
    if _database is not None:
        await _database.disconnect()
    _database = None
