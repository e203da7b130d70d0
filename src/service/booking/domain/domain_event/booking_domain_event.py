"""
Booking Domain Events

Exactly one event per committed transition. Events are written to the
outbox together with the booking change and dispatched from there.
"""

from datetime import datetime
from typing import Any, Mapping

import attrs
from uuid_utils import UUID

from src.service.booking.domain.enum.booking_status import BookingStatus


class BookingEventName:
    CREATED = 'booking.created'
    SEARCHING = 'booking.searching'
    ASSIGNED = 'booking.assigned'
    CONFIRMED = 'booking.confirmed'
    COMPLETED = 'booking.completed'
    CANCELLED = 'booking.cancelled'
    NO_SHOW = 'booking.no_show'
    REVIEWED = 'booking.reviewed'
    UPDATED = 'booking.updated'


@attrs.frozen(kw_only=True)
class BookingDomainEvent:
    event_name: str
    booking_id: UUID
    client_id: str
    status: BookingStatus
    payload: Mapping[str, Any]
    occurred_at: datetime

    def to_message_data(self) -> dict[str, Any]:
        """Domain payload of the outbound envelope; consumers dedupe on (booking_id, event, status)."""
        return {
            'booking_id': str(self.booking_id),
            'client_id': self.client_id,
            'status': self.status.value,
            **self.payload,
        }
