"""
Connection Supervisor

Owns one live connection (asyncpg pool, Kafka producer, ...) and its
reconnect policy. The same component supervises the document store and the
message broker; each gets its own instance from the DI container.

State machine:
    disconnected -> connecting -> connected
    connected    -> disconnected        (mark_failed)
    connecting   -> degraded            (retries exhausted, needs reset())

Only one connect attempt is ever in flight: callers that arrive while a
connect is running wait on the same lock and reuse its result.
"""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

import anyio
import attrs

from src.platform.connection.backoff_policy import BackoffPolicy
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger


_C = TypeVar('_C')


class ConnectionState(StrEnum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    DEGRADED = 'degraded'


@attrs.frozen
class ConnectionHealth:
    name: str
    state: ConnectionState
    consecutive_failures: int
    last_error: Optional[str]
    connected_at: Optional[datetime]

    @property
    def is_healthy(self) -> bool:
        return self.state == ConnectionState.CONNECTED


class ConnectionSupervisor(Generic[_C]):
    def __init__(
        self,
        *,
        name: str,
        connector: Callable[[], Awaitable[_C]],
        closer: Optional[Callable[[_C], Awaitable[None]]] = None,
        backoff: BackoffPolicy,
        connect_timeout: float,
        acquire_timeout: float,
        unavailable_error: Callable[[str], CustomBaseError],
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ) -> None:
        self.name = name
        self._connector = connector
        self._closer = closer
        self._backoff = backoff
        self._connect_timeout = connect_timeout
        self._acquire_timeout = acquire_timeout
        self._unavailable_error = unavailable_error
        self._sleep = sleep

        self._lock = anyio.Lock()
        self._connection: Optional[_C] = None
        self._state = ConnectionState.DISCONNECTED
        self._consecutive_failures = 0
        self._last_error: Optional[str] = None
        self._connected_at: Optional[datetime] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_healthy(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    def health(self) -> ConnectionHealth:
        return ConnectionHealth(
            name=self.name,
            state=self._state,
            consecutive_failures=self._consecutive_failures,
            last_error=self._last_error,
            connected_at=self._connected_at,
        )

    def ensure_not_degraded(self) -> None:
        """Fail fast when an operator has to intervene."""
        if self._state == ConnectionState.DEGRADED:
            raise self._unavailable_error(
                f'{self.name} is degraded after {self._consecutive_failures} failed attempts'
            )

    async def start(self) -> None:
        await self.acquire()
        Logger.base.info(f'🔌 [{self.name}] supervisor started ({self._state})')

    async def acquire(self) -> _C:
        """Return the live connection, connecting (or waiting for a connect) if needed."""
        if self._state == ConnectionState.CONNECTED and self._connection is not None:
            return self._connection
        self.ensure_not_degraded()

        try:
            with anyio.fail_after(self._acquire_timeout):
                return await self._connect_or_wait()
        except TimeoutError:
            raise self._unavailable_error(
                f'{self.name} not reachable within {self._acquire_timeout}s'
            ) from None

    async def _connect_or_wait(self) -> _C:
        async with self._lock:
            if self._state == ConnectionState.CONNECTED and self._connection is not None:
                return self._connection
            self.ensure_not_degraded()

            while True:
                self._state = ConnectionState.CONNECTING
                try:
                    with anyio.fail_after(self._connect_timeout):
                        connection = await self._connector()
                except Exception as e:
                    self._consecutive_failures += 1
                    self._last_error = f'{type(e).__name__}: {e}'
                    if self._consecutive_failures > self._backoff.max_retries:
                        self._state = ConnectionState.DEGRADED
                        Logger.base.error(
                            f'🛑 [{self.name}] giving up after {self._consecutive_failures} '
                            f'attempts, operator reset required | {self._last_error}'
                        )
                        raise self._unavailable_error(
                            f'{self.name} unavailable after {self._consecutive_failures} attempts'
                        ) from e

                    self._state = ConnectionState.DISCONNECTED
                    delay = self._backoff.delay_for(self._consecutive_failures)
                    Logger.base.warning(
                        f'⏳ [{self.name}] connect attempt {self._consecutive_failures}/'
                        f'{self._backoff.max_retries + 1} failed, retrying in {delay:.2f}s '
                        f'| {self._last_error}'
                    )
                    await self._sleep(delay)
                    continue
                finally:
                    # Cancelled mid-connect (acquire timeout): never leave CONNECTING behind
                    if self._state == ConnectionState.CONNECTING and self._connection is None:
                        self._state = ConnectionState.DISCONNECTED

                self._connection = connection
                self._state = ConnectionState.CONNECTED
                self._consecutive_failures = 0
                self._last_error = None
                self._connected_at = datetime.now(timezone.utc)
                Logger.base.info(f'✅ [{self.name}] connected')
                return connection

    async def mark_failed(self, connection: _C, error: BaseException) -> None:
        """Report a failure observed on ``connection``; only the first report per connection acts."""
        if connection is not self._connection:
            return
        self._connection = None
        self._state = ConnectionState.DISCONNECTED
        self._last_error = f'{type(error).__name__}: {error}'
        Logger.base.warning(f'⚠️ [{self.name}] connection lost | {self._last_error}')
        await self._close(connection)

    def reset(self) -> None:
        """Operator intervention: leave DEGRADED and allow reconnect attempts again."""
        if self._state == ConnectionState.DEGRADED:
            self._state = ConnectionState.DISCONNECTED
            self._consecutive_failures = 0
            Logger.base.info(f'🔁 [{self.name}] reset from degraded')

    async def stop(self) -> None:
        async with self._lock:
            connection, self._connection = self._connection, None
            self._state = ConnectionState.DISCONNECTED
            self._connected_at = None
            if connection is not None:
                await self._close(connection)
        Logger.base.info(f'🔌 [{self.name}] supervisor stopped')

    async def _close(self, connection: _C) -> None:
        if self._closer is None:
            return
        try:
            await self._closer(connection)
        except Exception as e:
            Logger.base.warning(f'[{self.name}] error while closing connection: {e}')
