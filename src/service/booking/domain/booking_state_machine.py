"""
Booking State Machine

    REQUESTED  -> SEARCHING, CANCELLED
    SEARCHING  -> ASSIGNED, CANCELLED
    ASSIGNED   -> CONFIRMED, CANCELLED
    CONFIRMED  -> COMPLETED, CANCELLED, NO_SHOW
    COMPLETED / CANCELLED / NO_SHOW are terminal (a COMPLETED booking may take one rating)

While REQUESTED or SEARCHING the owner may still amend schedule, location
and service details; the status stays put and the price snapshot is kept.

Every function here is pure: it returns ``(new_booking, event)`` or raises,
and never touches the booking it was given.
"""

from datetime import date, datetime
from typing import Any, Mapping, Optional

import attrs

from src.platform.exception.exceptions import (
    DuplicateReviewError,
    InvalidStateTransitionError,
    ValidationError,
)
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.cancellation_policy import decide_refund
from src.service.booking.domain.domain_event.booking_domain_event import (
    BookingDomainEvent,
    BookingEventName,
)
from src.service.booking.domain.entity.booking_entity import (
    Booking,
    ensure_future_schedule,
    ensure_location,
)
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.service_kind import CancelledBy
from src.service.booking.domain.value_object.cancellation import Cancellation
from src.service.booking.domain.value_object.rating import Rating
from src.service.booking.domain.value_object.service_details import (
    ServiceDetails,
    service_details_to_document,
)


TRANSITIONS: Mapping[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.REQUESTED: frozenset({BookingStatus.SEARCHING, BookingStatus.CANCELLED}),
    BookingStatus.SEARCHING: frozenset({BookingStatus.ASSIGNED, BookingStatus.CANCELLED}),
    BookingStatus.ASSIGNED: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

AMENDABLE_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.REQUESTED, BookingStatus.SEARCHING}
)

EVENT_NAME_BY_STATUS: Mapping[BookingStatus, str] = {
    BookingStatus.REQUESTED: BookingEventName.CREATED,
    BookingStatus.SEARCHING: BookingEventName.SEARCHING,
    BookingStatus.ASSIGNED: BookingEventName.ASSIGNED,
    BookingStatus.CONFIRMED: BookingEventName.CONFIRMED,
    BookingStatus.COMPLETED: BookingEventName.COMPLETED,
    BookingStatus.CANCELLED: BookingEventName.CANCELLED,
    BookingStatus.NO_SHOW: BookingEventName.NO_SHOW,
}


def can_transition(current: BookingStatus, requested: BookingStatus) -> bool:
    return requested in TRANSITIONS[current]


def _event(booking: Booking, event_name: str, payload: dict, now: datetime) -> BookingDomainEvent:
    return BookingDomainEvent(
        event_name=event_name,
        booking_id=booking.id,
        client_id=booking.client_id,
        status=booking.status,
        payload=payload,
        occurred_at=now,
    )


@Logger.io
def booking_created(booking: Booking) -> BookingDomainEvent:
    return _event(
        booking,
        BookingEventName.CREATED,
        {
            'service_type': booking.service_type,
            'service_kind': booking.service_kind.value,
            'scheduled_date': booking.scheduled_date.isoformat(),
            'scheduled_time': booking.scheduled_time,
            'pricing': booking.pricing.to_document(),
        },
        booking.created_at,
    )


@Logger.io
def transition(
    booking: Booking,
    to_status: BookingStatus,
    *,
    now: datetime,
    provider_id: Optional[str] = None,
    cancelled_by: Optional[CancelledBy] = None,
    reason: Optional[str] = None,
) -> tuple[Booking, BookingDomainEvent]:
    """
    Move ``booking`` to ``to_status``.

    Raises:
        InvalidStateTransitionError: ``to_status`` is not reachable from the current status
        ValidationError: transition-specific input missing (provider for ASSIGNED,
            canceller and reason for CANCELLED)
    """
    if not can_transition(booking.status, to_status):
        raise InvalidStateTransitionError(booking.status.value, to_status.value)

    changes: dict = {
        'status': to_status,
        'updated_at': now,
        'status_timestamps': booking.status_timestamps + ((to_status, now),),
        'version': booking.version + 1,
    }
    payload: dict = {'previous_status': booking.status.value}

    if to_status == BookingStatus.ASSIGNED:
        if not provider_id:
            raise ValidationError('provider_id is required to assign a booking')
        changes['provider_id'] = provider_id
        payload['provider_id'] = provider_id

    elif to_status == BookingStatus.CANCELLED:
        if cancelled_by is None:
            raise ValidationError('cancelled_by is required to cancel a booking')
        if not reason or not reason.strip():
            raise ValidationError('A cancellation reason is required')
        decision = decide_refund(
            payable_amount=booking.pricing.payable_amount,
            scheduled_at=booking.scheduled_at,
            now=now,
        )
        cancellation = Cancellation(
            cancelled_by=cancelled_by,
            reason=reason.strip(),
            cancelled_at=now,
            refund_amount=decision.refund_amount,
            cancellation_fee=decision.cancellation_fee,
        )
        changes['cancellation'] = cancellation
        payload.update(
            {
                'cancelled_by': cancelled_by.value,
                'reason': cancellation.reason,
                'refund_amount': str(cancellation.refund_amount),
                'cancellation_fee': str(cancellation.cancellation_fee),
                'currency': booking.pricing.currency,
            }
        )

    elif to_status == BookingStatus.COMPLETED:
        payload['payable_amount'] = str(booking.pricing.payable_amount)

    if booking.provider_id and 'provider_id' not in payload:
        payload['provider_id'] = booking.provider_id

    updated = attrs.evolve(booking, **changes)
    return updated, _event(updated, EVENT_NAME_BY_STATUS[to_status], payload, now)


@Logger.io
def attach_review(booking: Booking, rating: Rating) -> tuple[Booking, BookingDomainEvent]:
    """
    Attach the single rating a COMPLETED booking may carry.

    Raises:
        InvalidStateTransitionError: booking is not COMPLETED
        DuplicateReviewError: booking already has a rating
    """
    if booking.status != BookingStatus.COMPLETED:
        raise InvalidStateTransitionError(
            booking.status.value,
            'reviewed',
            f'Only completed bookings can be reviewed (status is {booking.status})',
        )
    if booking.rating is not None:
        raise DuplicateReviewError()

    updated = attrs.evolve(
        booking, rating=rating, updated_at=rating.rated_at, version=booking.version + 1
    )
    return updated, _event(
        updated,
        BookingEventName.REVIEWED,
        {'provider_id': booking.provider_id, 'rating': rating.to_document()},
        rating.rated_at,
    )


@Logger.io
def amend_booking(
    booking: Booking,
    *,
    now: datetime,
    scheduled_date: Optional[date] = None,
    scheduled_time: Optional[str] = None,
    location: Optional[Mapping[str, Any]] = None,
    details: Optional[ServiceDetails] = None,
) -> tuple[Booking, BookingDomainEvent]:
    """
    Owner edits before a provider is assigned. Pricing is never recomputed.

    Raises:
        InvalidStateTransitionError: booking is past SEARCHING
        ValidationError: nothing to change, schedule not in the future, no address,
            or details of another service kind
    """
    if booking.status not in AMENDABLE_STATUSES:
        raise InvalidStateTransitionError(
            booking.status.value,
            'updated',
            f'Cannot update booking in {booking.status} status',
        )

    changes: dict = {}
    payload: dict = {}
    if scheduled_date is not None or scheduled_time is not None:
        new_date = scheduled_date or booking.scheduled_date
        new_time = scheduled_time or booking.scheduled_time
        ensure_future_schedule(new_date, new_time, booking.time_zone, now)
        changes.update(scheduled_date=new_date, scheduled_time=new_time)
        payload.update(scheduled_date=new_date.isoformat(), scheduled_time=new_time)
    if location is not None:
        ensure_location(location)
        changes['location'] = dict(location)
        payload['location_updated'] = True
    if details is not None:
        if details.kind != booking.service_kind:
            raise ValidationError(
                f'{booking.service_type} takes {booking.service_kind} details, got {details.kind}'
            )
        changes['details'] = details
        payload['details'] = service_details_to_document(details)
    if not changes:
        raise ValidationError('Nothing to update')

    payload['updated_fields'] = sorted(changes)
    updated = attrs.evolve(booking, **changes, updated_at=now, version=booking.version + 1)
    return updated, _event(updated, BookingEventName.UPDATED, payload, now)
