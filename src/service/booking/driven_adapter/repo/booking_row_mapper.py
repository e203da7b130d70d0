"""
Booking <-> ``booking`` row

Queryable fields (status, client, schedule, version) are real columns; the
nested parts of the booking (details, location, pricing, cancellation,
rating, status timestamps) live in the ``document`` JSONB column. Money is
stored as strings inside the document so no float ever touches it.
"""

from datetime import datetime
from typing import Any

import asyncpg

from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.service_kind import ServiceKind
from src.service.booking.domain.value_object.cancellation import Cancellation
from src.service.booking.domain.value_object.pricing import PricingSnapshot
from src.service.booking.domain.value_object.rating import Rating
from src.service.booking.domain.value_object.service_details import (
    service_details_from_document,
    service_details_to_document,
)


BOOKING_COLUMNS = """
    id, client_id, provider_id, service_type, service_kind, status,
    scheduled_date, scheduled_time, time_zone, payable_amount,
    document, version, created_at, updated_at
"""


def booking_to_document(booking: Booking) -> dict[str, Any]:
    return {
        'details': service_details_to_document(booking.details),
        'location': dict(booking.location),
        'pricing': booking.pricing.to_document(),
        'cancellation': booking.cancellation.to_document() if booking.cancellation else None,
        'rating': booking.rating.to_document() if booking.rating else None,
        'status_timestamps': [
            [status.value, stamped_at.isoformat()] for status, stamped_at in booking.status_timestamps
        ],
    }


def row_to_booking(row: asyncpg.Record) -> Booking:
    document = row['document']
    return Booking(
        id=row['id'],
        client_id=row['client_id'],
        provider_id=row['provider_id'],
        service_type=row['service_type'],
        service_kind=ServiceKind(row['service_kind']),
        details=service_details_from_document(document['details']),
        scheduled_date=row['scheduled_date'],
        scheduled_time=row['scheduled_time'],
        time_zone=row['time_zone'],
        location=document['location'],
        status=BookingStatus(row['status']),
        pricing=PricingSnapshot.from_document(document['pricing']),
        cancellation=Cancellation.from_document(document.get('cancellation')),
        rating=Rating.from_document(document.get('rating')),
        status_timestamps=tuple(
            (BookingStatus(status), datetime.fromisoformat(stamped_at))
            for status, stamped_at in document.get('status_timestamps', [])
        ),
        version=row['version'],
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )
