"""
Read -> decide -> conditional write, with bounded retry on StaleStateError.

The decision is recomputed from a fresh read on every attempt, so a retry
after a lost race usually ends in InvalidStateTransitionError (the other
writer already moved the booking on), which is then returned to the caller.
"""

from typing import Callable, Optional

from uuid_utils import UUID

from src.platform.exception.exceptions import NotFoundError, StaleStateError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.outbox_entry import OutboxEntry, PersistedChange
from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.domain.domain_event.booking_domain_event import BookingDomainEvent
from src.service.booking.domain.entity.booking_entity import Booking


Decision = Callable[[Booking], tuple[Booking, BookingDomainEvent]]


class BookingTransitionRunner:
    def __init__(
        self,
        *,
        booking_command_repo: IBookingCommandRepo,
        service_name: str,
        max_stale_retries: int,
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.service_name = service_name
        self.max_stale_retries = max_stale_retries

    async def run(
        self, *, booking_id: UUID, decide: Decision, client_id: Optional[str] = None
    ) -> PersistedChange:
        """
        Raises:
            NotFoundError: booking missing, or not owned by ``client_id`` when given
            StaleStateError: still losing the race after ``max_stale_retries`` re-reads
        """
        attempt = 0
        while True:
            booking = await self.booking_command_repo.get_by_id(booking_id=booking_id)
            if booking is None or (client_id is not None and not booking.is_owned_by(client_id)):
                raise NotFoundError('Booking not found')

            updated, event = decide(booking)
            outbox_entry = OutboxEntry.from_event(event, service=self.service_name)
            try:
                saved = await self.booking_command_repo.save_transition(
                    previous=booking, updated=updated, outbox_entry=outbox_entry
                )
            except StaleStateError:
                if attempt >= self.max_stale_retries:
                    raise
                attempt += 1
                Logger.base.warning(
                    f'🔁 [CAS] booking {booking_id} changed concurrently, '
                    f'retry {attempt}/{self.max_stale_retries} with a fresh read'
                )
                continue

            return PersistedChange(booking=saved, event=event, outbox_entry=outbox_entry)
