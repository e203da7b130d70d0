from typing import Any, Mapping

from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock, utc_now
from src.service.booking.app.command.booking_transition_runner import BookingTransitionRunner
from src.service.booking.app.dto.outbox_entry import PersistedChange
from src.service.booking.domain.booking_state_machine import attach_review
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.value_object.rating import Rating


class ReviewBookingUseCase:
    def __init__(self, *, transition_runner: BookingTransitionRunner, clock: Clock = utc_now) -> None:
        self.transition_runner = transition_runner
        self.clock = clock

    @Logger.io
    async def review(
        self, *, booking_id: UUID, client_id: str, rating_payload: Mapping[str, Any]
    ) -> PersistedChange:
        # Malformed ratings are rejected before any I/O
        rating = Rating.from_payload(rating_payload, rated_at=self.clock())

        def decide(booking: Booking):
            return attach_review(booking, rating)

        return await self.transition_runner.run(
            booking_id=booking_id, client_id=client_id, decide=decide
        )
