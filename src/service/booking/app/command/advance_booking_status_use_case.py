from typing import Optional

from uuid_utils import UUID

from src.platform.exception.exceptions import ValidationError
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock, utc_now
from src.service.booking.app.command.booking_transition_runner import BookingTransitionRunner
from src.service.booking.app.dto.outbox_entry import PersistedChange
from src.service.booking.domain.booking_state_machine import transition
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.service_kind import CancelledBy


class AdvanceBookingStatusUseCase:
    """
    Staff / system driven transitions: searching, assigned, confirmed,
    completed, no_show, and provider or system cancellation.
    Not scoped to a client; the caller is trusted upstream.
    """

    def __init__(self, *, transition_runner: BookingTransitionRunner, clock: Clock = utc_now) -> None:
        self.transition_runner = transition_runner
        self.clock = clock

    @Logger.io
    async def advance(
        self,
        *,
        booking_id: UUID,
        to_status: BookingStatus,
        provider_id: Optional[str] = None,
        cancelled_by: Optional[CancelledBy] = None,
        reason: Optional[str] = None,
    ) -> PersistedChange:
        if to_status == BookingStatus.CANCELLED and cancelled_by == CancelledBy.CLIENT:
            raise ValidationError('Client cancellations go through the cancel operation')

        def decide(booking: Booking):
            return transition(
                booking,
                to_status,
                now=self.clock(),
                provider_id=provider_id,
                cancelled_by=cancelled_by,
                reason=reason,
            )

        change = await self.transition_runner.run(booking_id=booking_id, decide=decide)
        Logger.base.info(f'➡️ [ADVANCE] booking {booking_id} -> {to_status}')
        return change
