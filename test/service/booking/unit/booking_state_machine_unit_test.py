from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import attrs
import pytest
from uuid_utils import uuid7

from src.platform.exception.exceptions import (
    DuplicateReviewError,
    InvalidStateTransitionError,
    ValidationError,
)
from src.service.booking.domain.booking_state_machine import (
    TRANSITIONS,
    amend_booking,
    attach_review,
    booking_created,
    transition,
)
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.service_kind import CancelledBy, ServiceKind
from src.service.booking.domain.value_object.pricing import calculate_pricing
from src.service.booking.domain.value_object.rating import Rating
from src.service.booking.domain.value_object.service_details import NursingDetails, PackageDetails
from test.constants import CLIENT_ID, LOCATION, NOW, PROVIDER_ID


ALL_PAIRS = [(current, requested) for current in BookingStatus for requested in BookingStatus]
ILLEGAL_PAIRS = [(c, r) for c, r in ALL_PAIRS if r not in TRANSITIONS[c]]


@pytest.fixture
def booking(injection_entry) -> Booking:
    return Booking.create(
        id=uuid7(),
        client_id=CLIENT_ID,
        service_type='INJECTION',
        details=NursingDetails(injection_type='IM', medicine='Vitamin B12'),
        scheduled_date=date(2026, 10, 20),
        scheduled_time='12:00',
        time_zone='UTC',
        location=LOCATION,
        pricing=calculate_pricing(injection_entry, NOW),
        now=NOW,
    )


def walk(booking: Booking, *statuses: BookingStatus) -> Booking:
    for step, status in enumerate(statuses, start=1):
        booking, _ = transition(
            booking, status, now=NOW + timedelta(minutes=step), provider_id=PROVIDER_ID
        )
    return booking


def rating(stars: int = 5) -> Rating:
    return Rating(stars=stars, review='On time and gentle', punctuality=5, rated_at=NOW)


@pytest.mark.unit
class TestBookingCreate:
    def test_new_booking_starts_requested(self, booking):
        assert booking.status == BookingStatus.REQUESTED
        assert booking.service_kind == ServiceKind.NURSING
        assert booking.version == 0
        assert booking.status_history == {BookingStatus.REQUESTED: NOW}
        assert booking.scheduled_at == datetime(2026, 10, 20, 12, 0, tzinfo=timezone.utc)

    def test_created_event_carries_pricing_snapshot(self, booking):
        event = booking_created(booking)

        assert event.event_name == 'booking.created'
        assert event.status == BookingStatus.REQUESTED
        assert event.payload['pricing']['payable_amount'] == '1357.00'

    @pytest.mark.parametrize(
        'overrides',
        [
            {'scheduled_date': date(2026, 10, 18), 'scheduled_time': '09:59'},
            {'scheduled_time': '7:00'},
            {'scheduled_time': '25:00'},
            {'location': {'type': 'HOME'}},
            {'client_id': ''},
            {'time_zone': 'Mars/Olympus_Mons'},
        ],
    )
    def test_invalid_input_is_rejected(self, injection_entry, overrides):
        fields = {
            'id': uuid7(),
            'client_id': CLIENT_ID,
            'service_type': 'INJECTION',
            'details': NursingDetails(),
            'scheduled_date': date(2026, 10, 20),
            'scheduled_time': '12:00',
            'time_zone': 'UTC',
            'location': LOCATION,
            'pricing': calculate_pricing(injection_entry, NOW),
            'now': NOW,
        } | overrides

        with pytest.raises(ValidationError):
            Booking.create(**fields)


@pytest.mark.unit
class TestTransitions:
    def test_happy_path_to_completed(self, booking):
        # When
        completed = walk(
            booking,
            BookingStatus.SEARCHING,
            BookingStatus.ASSIGNED,
            BookingStatus.CONFIRMED,
            BookingStatus.COMPLETED,
        )

        # Then
        assert completed.status == BookingStatus.COMPLETED
        assert completed.provider_id == PROVIDER_ID
        assert completed.version == 4
        assert list(completed.status_history) == [
            BookingStatus.REQUESTED,
            BookingStatus.SEARCHING,
            BookingStatus.ASSIGNED,
            BookingStatus.CONFIRMED,
            BookingStatus.COMPLETED,
        ]
        assert completed.pricing == booking.pricing

    def test_each_transition_emits_one_named_event(self, booking):
        searching, event = transition(booking, BookingStatus.SEARCHING, now=NOW)

        assert event.event_name == 'booking.searching'
        assert event.booking_id == booking.id
        assert event.status == BookingStatus.SEARCHING
        assert event.payload['previous_status'] == 'requested'
        assert searching.updated_at == NOW

    @pytest.mark.parametrize('current,requested', ILLEGAL_PAIRS)
    def test_illegal_transition_is_rejected_and_booking_untouched(
        self, booking, current, requested
    ):
        # Given
        source = attrs.evolve(booking, status=current)

        # When / Then
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            transition(
                source,
                requested,
                now=NOW,
                provider_id=PROVIDER_ID,
                cancelled_by=CancelledBy.PROVIDER,
                reason='unavailable',
            )

        assert exc_info.value.current == current.value
        assert exc_info.value.requested == requested.value
        assert source.status == current
        assert source.version == booking.version

    @pytest.mark.parametrize('terminal', [BookingStatus.COMPLETED, BookingStatus.NO_SHOW])
    def test_terminal_bookings_cannot_be_cancelled(self, booking, terminal):
        with pytest.raises(InvalidStateTransitionError):
            transition(
                attrs.evolve(booking, status=terminal),
                BookingStatus.CANCELLED,
                now=NOW,
                cancelled_by=CancelledBy.CLIENT,
                reason='changed my mind',
            )

    def test_assignment_requires_provider(self, booking):
        searching = walk(booking, BookingStatus.SEARCHING)

        with pytest.raises(ValidationError):
            transition(searching, BookingStatus.ASSIGNED, now=NOW)

    @pytest.mark.parametrize(
        'cancelled_by,reason', [(None, 'unwell'), (CancelledBy.CLIENT, ''), (CancelledBy.CLIENT, '   ')]
    )
    def test_cancellation_requires_canceller_and_reason(self, booking, cancelled_by, reason):
        with pytest.raises(ValidationError):
            transition(
                booking, BookingStatus.CANCELLED, now=NOW, cancelled_by=cancelled_by, reason=reason
            )

    def test_cancellation_records_refund_decision(self, booking):
        # Given: 50 hours before the visit
        # When
        cancelled, event = transition(
            booking,
            BookingStatus.CANCELLED,
            now=NOW,
            cancelled_by=CancelledBy.CLIENT,
            reason=' Feeling better ',
        )

        # Then
        assert cancelled.cancellation.refund_amount == Decimal('1357.00')
        assert cancelled.cancellation.cancellation_fee == Decimal('0.00')
        assert cancelled.cancellation.reason == 'Feeling better'
        assert event.event_name == 'booking.cancelled'
        assert event.payload['refund_amount'] == '1357.00'
        assert event.payload['cancelled_by'] == 'client'


@pytest.mark.unit
class TestAttachReview:
    def test_completed_booking_takes_one_rating(self, booking):
        completed = walk(
            booking,
            BookingStatus.SEARCHING,
            BookingStatus.ASSIGNED,
            BookingStatus.CONFIRMED,
            BookingStatus.COMPLETED,
        )

        reviewed, event = attach_review(completed, rating())

        assert reviewed.rating.stars == 5
        assert reviewed.status == BookingStatus.COMPLETED
        assert reviewed.version == completed.version + 1
        assert event.event_name == 'booking.reviewed'
        assert event.payload['provider_id'] == PROVIDER_ID

    def test_second_review_is_rejected(self, booking):
        completed = attrs.evolve(booking, status=BookingStatus.COMPLETED)
        reviewed, _ = attach_review(completed, rating(5))

        with pytest.raises(DuplicateReviewError):
            attach_review(reviewed, rating(1))

    @pytest.mark.parametrize(
        'status', [s for s in BookingStatus if s != BookingStatus.COMPLETED]
    )
    def test_only_completed_bookings_can_be_reviewed(self, booking, status):
        with pytest.raises(InvalidStateTransitionError):
            attach_review(attrs.evolve(booking, status=status), rating())


@pytest.mark.unit
class TestAmendBooking:
    def test_reschedule_keeps_status_and_price(self, booking):
        # When: the owner moves the visit into the night
        updated, event = amend_booking(
            booking, now=NOW, scheduled_date=date(2026, 10, 21), scheduled_time='23:30'
        )

        # Then: only the schedule changes, the original price is kept
        assert (updated.scheduled_date, updated.scheduled_time) == (date(2026, 10, 21), '23:30')
        assert updated.status == BookingStatus.REQUESTED
        assert updated.pricing == booking.pricing
        assert updated.version == booking.version + 1
        assert event.event_name == 'booking.updated'
        assert event.payload['updated_fields'] == ['scheduled_date', 'scheduled_time']

    def test_location_and_details_can_change_while_searching(self, booking):
        searching = walk(booking, BookingStatus.SEARCHING)
        new_location = LOCATION | {'floor_number': '3'}

        updated, event = amend_booking(
            searching,
            now=NOW,
            location=new_location,
            details=NursingDetails(injection_type='IV', medicine='Saline'),
        )

        assert updated.location == new_location
        assert updated.details.injection_type == 'IV'
        assert updated.status == BookingStatus.SEARCHING
        assert event.payload['updated_fields'] == ['details', 'location']

    def test_assigned_booking_can_no_longer_be_updated(self, booking):
        assigned = walk(booking, BookingStatus.SEARCHING, BookingStatus.ASSIGNED)

        with pytest.raises(InvalidStateTransitionError):
            amend_booking(assigned, now=NOW, scheduled_time='15:00')

    def test_cancelled_booking_can_no_longer_be_updated(self, booking):
        cancelled, _ = transition(
            booking,
            BookingStatus.CANCELLED,
            now=NOW,
            cancelled_by=CancelledBy.CLIENT,
            reason='not needed',
        )

        with pytest.raises(InvalidStateTransitionError):
            amend_booking(cancelled, now=NOW, scheduled_time='15:00')

    @pytest.mark.parametrize(
        'changes',
        [
            {},
            {'scheduled_date': date(2026, 10, 17)},
            {'scheduled_time': '9:5'},
            {'location': {'contact_phone': '+91-9000000000'}},
            {'details': PackageDetails(total_sessions=10)},
        ],
    )
    def test_invalid_changes_are_rejected(self, booking, changes):
        with pytest.raises(ValidationError):
            amend_booking(booking, now=NOW, **changes)
