"""
Outbox dispatch

Entries are written with the booking change. The orchestrator publishes a
fresh entry right away; whatever is still pending afterwards (broker down,
process crashed in between) is drained here by the background dispatcher.
Delivery is at-least-once: an entry published but not yet marked delivered
may go out again, consumers dedupe on (booking_id, event, status).
"""

from typing import Optional

import attrs

from src.platform.exception.exceptions import BrokerUnavailableError, StoreUnavailableError
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock, utc_now
from src.service.booking.app.dto.outbox_entry import OutboxEntry
from src.service.booking.app.interface.i_booking_event_publisher import IBookingEventPublisher
from src.service.booking.app.interface.i_outbox_repo import IOutboxRepo


@attrs.frozen
class DispatchReport:
    delivered: int = 0
    failed: int = 0


class DispatchOutboxUseCase:
    def __init__(
        self,
        *,
        outbox_repo: IOutboxRepo,
        event_publisher: IBookingEventPublisher,
        clock: Clock = utc_now,
    ) -> None:
        self.outbox_repo = outbox_repo
        self.event_publisher = event_publisher
        self.clock = clock

    async def publish_entry(self, *, entry: OutboxEntry) -> Optional[BrokerUnavailableError]:
        """Publish one entry; returns the broker error instead of raising so callers can degrade."""
        try:
            await self.event_publisher.publish(entry=entry)
        except BrokerUnavailableError as e:
            await self._record_failure(entry, e)
            return e

        try:
            await self.outbox_repo.mark_delivered(entry_id=entry.id, delivered_at=self.clock())
        except StoreUnavailableError as e:
            # Entry stays pending and will be sent again by the dispatcher
            Logger.base.warning(f'⚠️ [OUTBOX] {entry.id} published but not marked delivered: {e}')
        return None

    async def _record_failure(self, entry: OutboxEntry, error: BrokerUnavailableError) -> None:
        try:
            await self.outbox_repo.record_failure(entry_id=entry.id, error=str(error))
        except StoreUnavailableError as e:
            Logger.base.warning(f'⚠️ [OUTBOX] could not record failure for {entry.id}: {e}')

    @Logger.io
    async def dispatch_pending(self, *, batch_size: int) -> DispatchReport:
        entries = await self.outbox_repo.fetch_pending(limit=batch_size)
        delivered = 0
        for entry in entries:
            if await self.publish_entry(entry=entry) is not None:
                # Broker is down; leave the rest of the batch for the next round
                Logger.base.warning(
                    f'📭 [OUTBOX] broker unavailable, {len(entries) - delivered} entries left pending'
                )
                return DispatchReport(delivered=delivered, failed=1)
            delivered += 1

        if delivered:
            Logger.base.info(f'📬 [OUTBOX] delivered {delivered} pending entries')
        return DispatchReport(delivered=delivered)
