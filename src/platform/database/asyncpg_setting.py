"""
Document store connection (PostgreSQL JSONB through asyncpg)

The asyncpg pool is owned by a ConnectionSupervisor so the store reconnects
with backoff and reports its health instead of hanging callers. Pool size is
derived from the available CPUs, clamped to the configured floor/ceiling.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
import os

import asyncpg
import orjson
from uuid_utils import UUID

from src.platform.connection.connection_supervisor import ConnectionSupervisor
from src.platform.exception.exceptions import StoreUnavailableError
from src.platform.logging.loguru_io import Logger


# Errors meaning the connection (not the statement) is broken
STORE_CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.InterfaceError,
    ConnectionError,
    OSError,
)


def compute_pool_bounds(*, cpu_count: int | None, floor: int, ceiling: int) -> tuple[int, int]:
    """(min_size, max_size) for the pool: 2 connections per core + 1, clamped."""
    cores = cpu_count or 1
    max_size = max(floor, min(ceiling, cores * 2 + 1))
    min_size = max(1, max_size // 4)
    return min_size, max_size


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Register codecs: uuid_utils.UUID for uuid, orjson for jsonb."""

    def _uuid_decoder(value: bytes) -> UUID:
        return UUID(bytes=value)

    def _uuid_encoder(value: UUID) -> bytes:
        return value.bytes

    await conn.set_type_codec(
        'uuid',
        encoder=_uuid_encoder,
        decoder=_uuid_decoder,
        schema='pg_catalog',
        format='binary',
    )
    await conn.set_type_codec(
        'jsonb',
        encoder=lambda value: orjson.dumps(value).decode(),
        decoder=orjson.loads,
        schema='pg_catalog',
        format='text',
    )


class PostgresDocumentStore:
    """
    Usage:
        await store.start()                    # lifespan startup
        async with store.connection() as conn: # in repositories
            await conn.fetchrow(...)
        await store.stop()                     # lifespan shutdown
    """

    def __init__(
        self,
        *,
        dsn: str,
        supervisor_factory: Callable[..., ConnectionSupervisor],
        pool_floor: int,
        pool_ceiling: int,
        command_timeout: float,
        max_inactive_lifetime: float,
    ) -> None:
        self._dsn = dsn
        self.min_size, self.max_size = compute_pool_bounds(
            cpu_count=os.cpu_count(), floor=pool_floor, ceiling=pool_ceiling
        )
        self._command_timeout = command_timeout
        self._max_inactive_lifetime = max_inactive_lifetime
        self.supervisor: ConnectionSupervisor[asyncpg.Pool] = supervisor_factory(
            name='document-store',
            connector=self._create_pool,
            closer=self._close_pool,
            unavailable_error=StoreUnavailableError,
        )

    async def _create_pool(self) -> asyncpg.Pool:
        pool = await asyncpg.create_pool(
            self._dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=self._command_timeout,
            max_inactive_connection_lifetime=self._max_inactive_lifetime,
            init=_init_connection,
        )
        await pool.fetchval('SELECT 1')  # Fail-fast
        Logger.base.info(f'📊 [Pool] created min={self.min_size} max={self.max_size}')
        return pool

    @staticmethod
    async def _close_pool(pool: asyncpg.Pool) -> None:
        await pool.close()

    async def start(self) -> None:
        await self.supervisor.start()

    async def stop(self) -> None:
        await self.supervisor.stop()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[asyncpg.Connection]:
        """Yield a pooled connection; connection-level failures become StoreUnavailableError."""
        pool = await self.supervisor.acquire()
        try:
            async with pool.acquire() as conn:
                yield conn
        except STORE_CONNECTION_ERRORS as e:
            await self.supervisor.mark_failed(pool, e)
            raise StoreUnavailableError(f'Document store connection failed: {e}') from e
