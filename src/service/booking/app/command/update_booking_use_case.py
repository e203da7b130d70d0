from datetime import date
from typing import Any, Mapping, Optional

from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock, utc_now
from src.service.booking.app.command.booking_transition_runner import BookingTransitionRunner
from src.service.booking.app.dto.outbox_entry import PersistedChange
from src.service.booking.domain.booking_state_machine import amend_booking
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.value_object.service_details import build_service_details


class UpdateBookingUseCase:
    """Owner edits to schedule, location or service details while no provider is assigned yet."""

    def __init__(self, *, transition_runner: BookingTransitionRunner, clock: Clock = utc_now) -> None:
        self.transition_runner = transition_runner
        self.clock = clock

    @Logger.io
    async def update(
        self,
        *,
        booking_id: UUID,
        client_id: str,
        scheduled_date: Optional[date] = None,
        scheduled_time: Optional[str] = None,
        location: Optional[Mapping[str, Any]] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> PersistedChange:
        def decide(booking: Booking):
            return amend_booking(
                booking,
                now=self.clock(),
                scheduled_date=scheduled_date,
                scheduled_time=scheduled_time,
                location=location,
                details=build_service_details(booking.service_kind, details)
                if details is not None
                else None,
            )

        change = await self.transition_runner.run(
            booking_id=booking_id, client_id=client_id, decide=decide
        )
        Logger.base.info(
            f'✏️ [UPDATE] booking {booking_id} fields {change.event.payload["updated_fields"]}'
        )
        return change
