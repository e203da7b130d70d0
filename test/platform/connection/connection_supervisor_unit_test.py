import asyncio

import anyio
import pytest

from src.platform.connection.backoff_policy import BackoffPolicy
from src.platform.connection.connection_supervisor import ConnectionState, ConnectionSupervisor
from src.platform.exception.exceptions import StoreUnavailableError


class FlakyConnector:
    """Fails ``failures`` times, then hands out a fresh connection object."""

    def __init__(self, failures: int = 0, connect_delay: float = 0.0) -> None:
        self.failures = failures
        self.connect_delay = connect_delay
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed: list[object] = []

    async def connect(self) -> object:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await anyio.sleep(self.connect_delay)
            if self.calls <= self.failures:
                raise ConnectionRefusedError(f'refused #{self.calls}')
            return object()
        finally:
            self.in_flight -= 1

    async def close(self, connection: object) -> None:
        self.closed.append(connection)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


def build_supervisor(
    connector: FlakyConnector,
    sleep: RecordingSleep,
    *,
    max_retries: int = 3,
    acquire_timeout: float = 5.0,
    connect_timeout: float = 5.0,
) -> ConnectionSupervisor:
    return ConnectionSupervisor(
        name='document-store',
        connector=connector.connect,
        closer=connector.close,
        backoff=BackoffPolicy(base_delay=0.5, max_delay=4.0, max_retries=max_retries, jitter=False),
        connect_timeout=connect_timeout,
        acquire_timeout=acquire_timeout,
        unavailable_error=StoreUnavailableError,
        sleep=sleep,
    )


@pytest.mark.unit
class TestConnectionSupervisorReconnect:
    @pytest.mark.asyncio
    async def test_concurrent_acquires_share_a_single_connect_attempt(self):
        """
        Given: the backend refuses the first 2 attempts
        When: 5 callers acquire concurrently
        Then: attempts never overlap, exactly 3 are made and everyone gets the same connection
        """
        # Arrange
        connector = FlakyConnector(failures=2, connect_delay=0.01)
        sleep = RecordingSleep()
        supervisor = build_supervisor(connector, sleep)

        # Act
        connections = await asyncio.gather(*(supervisor.acquire() for _ in range(5)))

        # Assert
        assert connector.calls == 3
        assert connector.max_in_flight == 1
        assert len({id(c) for c in connections}) == 1
        assert sleep.delays == [0.5, 1.0]
        assert supervisor.state == ConnectionState.CONNECTED
        assert supervisor.health().consecutive_failures == 0

    @pytest.mark.asyncio
    async def test_connected_supervisor_does_not_reconnect(self):
        connector = FlakyConnector()
        supervisor = build_supervisor(connector, RecordingSleep())

        first = await supervisor.acquire()
        second = await supervisor.acquire()

        assert first is second
        assert connector.calls == 1

    @pytest.mark.asyncio
    async def test_mark_failed_drops_connection_and_next_acquire_reconnects(self):
        # Arrange
        connector = FlakyConnector()
        supervisor = build_supervisor(connector, RecordingSleep())
        broken = await supervisor.acquire()

        # Act
        await supervisor.mark_failed(broken, ConnectionResetError('peer reset'))
        state_after_failure = supervisor.state
        fresh = await supervisor.acquire()

        # Assert
        assert state_after_failure == ConnectionState.DISCONNECTED
        assert connector.closed == [broken]
        assert fresh is not broken
        assert connector.calls == 2

    @pytest.mark.asyncio
    async def test_mark_failed_for_stale_connection_is_ignored(self):
        connector = FlakyConnector()
        supervisor = build_supervisor(connector, RecordingSleep())
        old = await supervisor.acquire()
        await supervisor.mark_failed(old, ConnectionResetError())
        current = await supervisor.acquire()

        # A second report about the already replaced connection
        await supervisor.mark_failed(old, ConnectionResetError())

        assert supervisor.state == ConnectionState.CONNECTED
        assert await supervisor.acquire() is current


@pytest.mark.unit
class TestConnectionSupervisorDegraded:
    @pytest.mark.asyncio
    async def test_exhausted_retries_degrade_and_fail_fast(self):
        """
        Given: max_retries=2 and a backend that never answers
        When: acquiring
        Then: 3 attempts are made, state is DEGRADED and later calls fail without connecting
        """
        # Arrange
        connector = FlakyConnector(failures=100)
        supervisor = build_supervisor(connector, RecordingSleep(), max_retries=2)

        # Act
        with pytest.raises(StoreUnavailableError):
            await supervisor.acquire()
        with pytest.raises(StoreUnavailableError):
            await supervisor.acquire()

        # Assert
        assert connector.calls == 3
        assert supervisor.state == ConnectionState.DEGRADED
        health = supervisor.health()
        assert not health.is_healthy
        assert health.consecutive_failures == 3
        assert 'ConnectionRefusedError' in health.last_error

    @pytest.mark.asyncio
    async def test_reset_allows_reconnect_after_degraded(self):
        connector = FlakyConnector(failures=3)
        supervisor = build_supervisor(connector, RecordingSleep(), max_retries=2)
        with pytest.raises(StoreUnavailableError):
            await supervisor.acquire()

        supervisor.reset()
        connection = await supervisor.acquire()

        assert connection is not None
        assert supervisor.state == ConnectionState.CONNECTED
        assert connector.calls == 4

    def test_reset_is_noop_unless_degraded(self):
        supervisor = build_supervisor(FlakyConnector(), RecordingSleep())

        supervisor.reset()

        assert supervisor.state == ConnectionState.DISCONNECTED


@pytest.mark.unit
class TestConnectionSupervisorTimeouts:
    @pytest.mark.asyncio
    async def test_acquire_timeout_raises_unavailable_and_leaves_disconnected(self):
        # Arrange: the connect hangs far longer than callers are willing to wait
        connector = FlakyConnector(connect_delay=10)
        supervisor = build_supervisor(connector, RecordingSleep(), acquire_timeout=0.05)

        # Act
        with pytest.raises(StoreUnavailableError) as exc_info:
            await supervisor.acquire()

        # Assert
        assert 'not reachable' in exc_info.value.message
        assert supervisor.state == ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_connect_timeout_counts_as_failed_attempt(self):
        connector = FlakyConnector(connect_delay=10)
        supervisor = build_supervisor(
            connector, RecordingSleep(), max_retries=1, connect_timeout=0.01
        )

        with pytest.raises(StoreUnavailableError):
            await supervisor.acquire()

        assert connector.calls == 2
        assert supervisor.state == ConnectionState.DEGRADED

    @pytest.mark.asyncio
    async def test_stop_closes_live_connection(self):
        connector = FlakyConnector()
        supervisor = build_supervisor(connector, RecordingSleep())
        connection = await supervisor.acquire()

        await supervisor.stop()

        assert connector.closed == [connection]
        assert supervisor.state == ConnectionState.DISCONNECTED
