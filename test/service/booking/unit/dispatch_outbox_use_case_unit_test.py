from datetime import timedelta
from unittest.mock import AsyncMock

import anyio
import pytest

from src.platform.exception.exceptions import StoreUnavailableError
from src.service.booking.app.command.dispatch_outbox_use_case import (
    DispatchOutboxUseCase,
    DispatchReport,
)
from src.service.booking.driving_adapter.outbox_dispatcher import OutboxDispatcher
from test.constants import NOW


async def create_pending(orchestrator, event_publisher, scheduled, count: int):
    event_publisher.unavailable = True
    for _ in range(count):
        await orchestrator.create(
            client_id='client-7f3a',
            service_type='INJECTION',
            scheduled_date=scheduled[0],
            scheduled_time=scheduled[1],
            location={'address': {'street': '1 Main St', 'city': 'Pune', 'pincode': '411001'}},
        )
    event_publisher.unavailable = False


@pytest.fixture
def dispatch_use_case(store, event_publisher, clock) -> DispatchOutboxUseCase:
    return DispatchOutboxUseCase(outbox_repo=store, event_publisher=event_publisher, clock=clock)


@pytest.mark.unit
class TestDispatchPending:
    @pytest.mark.asyncio
    async def test_pending_entries_are_delivered_in_order(
        self, orchestrator, store, event_publisher, clock, dispatch_use_case, scheduled_in_50_hours
    ):
        # Arrange
        await create_pending(orchestrator, event_publisher, scheduled_in_50_hours, 3)
        pending_ids = [entry.id for entry in store.pending_entries()]
        clock.advance(minutes=5)

        # Act
        report = await dispatch_use_case.dispatch_pending(batch_size=10)

        # Assert
        assert report == DispatchReport(delivered=3, failed=0)
        assert [entry.id for entry in event_publisher.published] == pending_ids
        assert store.pending_entries() == []
        assert all(
            entry.delivered_at == NOW + timedelta(minutes=5) for entry in store.outbox.values()
        )

    @pytest.mark.asyncio
    async def test_batch_stops_at_first_broker_failure(
        self, orchestrator, store, event_publisher, dispatch_use_case, scheduled_in_50_hours
    ):
        await create_pending(orchestrator, event_publisher, scheduled_in_50_hours, 3)
        event_publisher.unavailable = True

        report = await dispatch_use_case.dispatch_pending(batch_size=10)

        assert report == DispatchReport(delivered=0, failed=1)
        assert len(store.pending_entries()) == 3
        attempts = sorted(entry.attempts for entry in store.pending_entries())
        assert attempts == [1, 1, 2]

    @pytest.mark.asyncio
    async def test_batch_size_limits_one_round(
        self, orchestrator, store, event_publisher, dispatch_use_case, scheduled_in_50_hours
    ):
        await create_pending(orchestrator, event_publisher, scheduled_in_50_hours, 3)

        report = await dispatch_use_case.dispatch_pending(batch_size=2)

        assert report.delivered == 2
        assert len(store.pending_entries()) == 1

    @pytest.mark.asyncio
    async def test_published_entry_stays_pending_when_it_cannot_be_marked(
        self, orchestrator, store, event_publisher, scheduled_in_50_hours
    ):
        """
        Given: the broker accepts the message but the store drops right after
        When: publishing one entry
        Then: no error is returned and the entry is left for the dispatcher to send again
        """
        # Arrange
        await create_pending(orchestrator, event_publisher, scheduled_in_50_hours, 1)
        [entry] = store.pending_entries()
        outbox_repo = AsyncMock()
        outbox_repo.mark_delivered.side_effect = StoreUnavailableError()
        use_case = DispatchOutboxUseCase(outbox_repo=outbox_repo, event_publisher=event_publisher)

        # Act
        error = await use_case.publish_entry(entry=entry)

        # Assert
        assert error is None
        assert event_publisher.published == [entry]
        assert store.pending_entries() == [entry]


@pytest.mark.unit
class TestOutboxDispatcher:
    @pytest.mark.asyncio
    async def test_full_batch_asks_for_another_round(self):
        use_case = AsyncMock()
        use_case.dispatch_pending.return_value = DispatchReport(delivered=5)
        dispatcher = OutboxDispatcher(dispatch_outbox_use_case=use_case, interval_seconds=1, batch_size=5)

        assert await dispatcher.run_once() is True
        use_case.dispatch_pending.assert_awaited_once_with(batch_size=5)

    @pytest.mark.asyncio
    async def test_partial_batch_or_failure_waits_for_next_interval(self):
        use_case = AsyncMock()
        dispatcher = OutboxDispatcher(dispatch_outbox_use_case=use_case, interval_seconds=1, batch_size=5)

        use_case.dispatch_pending.return_value = DispatchReport(delivered=2)
        assert await dispatcher.run_once() is False

        use_case.dispatch_pending.return_value = DispatchReport(delivered=4, failed=1)
        assert await dispatcher.run_once() is False

    @pytest.mark.asyncio
    async def test_store_outage_is_tolerated(self):
        use_case = AsyncMock()
        use_case.dispatch_pending.side_effect = StoreUnavailableError()
        dispatcher = OutboxDispatcher(dispatch_outbox_use_case=use_case, interval_seconds=1, batch_size=5)

        assert await dispatcher.run_once() is False

    @pytest.mark.asyncio
    async def test_unexpected_error_in_a_round_is_logged_and_tolerated(self):
        use_case = AsyncMock()
        use_case.dispatch_pending.side_effect = NotImplementedError('not supported in batch mode')
        dispatcher = OutboxDispatcher(dispatch_outbox_use_case=use_case, interval_seconds=1, batch_size=5)

        assert await dispatcher.run_once() is False

    @pytest.mark.asyncio
    async def test_loop_keeps_running_after_a_failed_round(self):
        """
        Given: the first round fails with an unexpected error
        When: the dispatcher loop runs
        Then: the loop survives and runs further rounds
        """
        # Arrange
        rounds: list[int] = []

        async def dispatch_pending(*, batch_size: int) -> DispatchReport:
            rounds.append(batch_size)
            if len(rounds) == 1:
                raise RuntimeError('relation "booking_outbox" does not exist')
            return DispatchReport(delivered=0)

        use_case = AsyncMock()
        use_case.dispatch_pending.side_effect = dispatch_pending
        dispatcher = OutboxDispatcher(
            dispatch_outbox_use_case=use_case, interval_seconds=0.01, batch_size=5
        )

        # Act
        with anyio.move_on_after(0.2):
            await dispatcher.run_forever()

        # Assert
        assert len(rounds) >= 2
