from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock, utc_now
from src.service.booking.app.command.booking_transition_runner import BookingTransitionRunner
from src.service.booking.app.dto.outbox_entry import PersistedChange
from src.service.booking.domain.booking_state_machine import transition
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.service_kind import CancelledBy


class CancelBookingUseCase:
    """Client-initiated cancellation; the refund tier is decided at the moment of the write."""

    def __init__(self, *, transition_runner: BookingTransitionRunner, clock: Clock = utc_now) -> None:
        self.transition_runner = transition_runner
        self.clock = clock

    @Logger.io
    async def cancel(self, *, booking_id: UUID, client_id: str, reason: str) -> PersistedChange:
        def decide(booking: Booking):
            return transition(
                booking,
                BookingStatus.CANCELLED,
                now=self.clock(),
                cancelled_by=CancelledBy.CLIENT,
                reason=reason,
            )

        change = await self.transition_runner.run(
            booking_id=booking_id, client_id=client_id, decide=decide
        )
        cancellation = change.booking.cancellation
        Logger.base.info(
            f'❌ [CANCEL] booking {booking_id} refund {cancellation.refund_amount if cancellation else 0}'
        )
        return change
