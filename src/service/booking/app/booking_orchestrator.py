"""
Booking Orchestrator

Single entry point for callers (HTTP controller, staff tooling). Every write
runs the same sequence:

    1. validate input and current state        (state machine, no I/O)
    2. persist booking + outbox entry          (one conditional statement)
    3. publish the event                       (Kafka, bounded)
    4. return BookingOperationResult

A failure in step 3 never undoes step 2. The result then carries
``published=False`` and the broker error, and the outbox dispatcher keeps
retrying the entry in the background.
"""

from datetime import date
from typing import Any, Mapping, Optional

import attrs
from uuid_utils import UUID

from src.platform.exception.exceptions import BrokerUnavailableError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.advance_booking_status_use_case import (
    AdvanceBookingStatusUseCase,
)
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.booking.app.command.dispatch_outbox_use_case import DispatchOutboxUseCase
from src.service.booking.app.command.review_booking_use_case import ReviewBookingUseCase
from src.service.booking.app.command.update_booking_use_case import UpdateBookingUseCase
from src.service.booking.app.dto.booking_page import BookingPage
from src.service.booking.app.dto.outbox_entry import PersistedChange
from src.service.booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.booking.app.query.list_bookings_use_case import ListBookingsUseCase
from src.service.booking.domain.domain_event.booking_domain_event import BookingDomainEvent
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.service_kind import CancelledBy


@attrs.frozen
class BookingOperationResult:
    booking: Booking
    event: BookingDomainEvent
    published: bool
    publish_error: Optional[BrokerUnavailableError] = None

    @property
    def degraded(self) -> bool:
        """Committed, but the announcement is still waiting in the outbox."""
        return not self.published


class BookingOrchestrator:
    def __init__(
        self,
        *,
        create_booking_use_case: CreateBookingUseCase,
        cancel_booking_use_case: CancelBookingUseCase,
        review_booking_use_case: ReviewBookingUseCase,
        update_booking_use_case: UpdateBookingUseCase,
        advance_booking_status_use_case: AdvanceBookingStatusUseCase,
        dispatch_outbox_use_case: DispatchOutboxUseCase,
        get_booking_use_case: GetBookingUseCase,
        list_bookings_use_case: ListBookingsUseCase,
    ) -> None:
        self.create_booking_use_case = create_booking_use_case
        self.cancel_booking_use_case = cancel_booking_use_case
        self.review_booking_use_case = review_booking_use_case
        self.update_booking_use_case = update_booking_use_case
        self.advance_booking_status_use_case = advance_booking_status_use_case
        self.dispatch_outbox_use_case = dispatch_outbox_use_case
        self.get_booking_use_case = get_booking_use_case
        self.list_bookings_use_case = list_bookings_use_case

    async def _announce(self, change: PersistedChange) -> BookingOperationResult:
        error = await self.dispatch_outbox_use_case.publish_entry(entry=change.outbox_entry)
        if error is not None:
            Logger.base.warning(
                f'📭 [DEGRADED] {change.event.event_name} for booking {change.booking.id} '
                f'committed, publish deferred to outbox: {error}'
            )
        return BookingOperationResult(
            booking=change.booking,
            event=change.event,
            published=error is None,
            publish_error=error,
        )

    @Logger.io
    async def create(
        self,
        *,
        client_id: str,
        service_type: str,
        scheduled_date: date,
        scheduled_time: str,
        location: Mapping[str, Any],
        details: Optional[Mapping[str, Any]] = None,
    ) -> BookingOperationResult:
        change = await self.create_booking_use_case.create(
            client_id=client_id,
            service_type=service_type,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            location=location,
            details=details,
        )
        return await self._announce(change)

    @Logger.io
    async def cancel(self, *, booking_id: UUID, client_id: str, reason: str) -> BookingOperationResult:
        change = await self.cancel_booking_use_case.cancel(
            booking_id=booking_id, client_id=client_id, reason=reason
        )
        return await self._announce(change)

    @Logger.io
    async def review(
        self, *, booking_id: UUID, client_id: str, rating_payload: Mapping[str, Any]
    ) -> BookingOperationResult:
        change = await self.review_booking_use_case.review(
            booking_id=booking_id, client_id=client_id, rating_payload=rating_payload
        )
        return await self._announce(change)

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
    ) -> BookingOperationResult:
        change = await self.update_booking_use_case.update(
            booking_id=booking_id,
            client_id=client_id,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            location=location,
            details=details,
        )
        return await self._announce(change)

    @Logger.io
    async def advance(
        self,
        *,
        booking_id: UUID,
        to_status: BookingStatus,
        provider_id: Optional[str] = None,
        cancelled_by: Optional[CancelledBy] = None,
        reason: Optional[str] = None,
    ) -> BookingOperationResult:
        change = await self.advance_booking_status_use_case.advance(
            booking_id=booking_id,
            to_status=to_status,
            provider_id=provider_id,
            cancelled_by=cancelled_by,
            reason=reason,
        )
        return await self._announce(change)

    async def get(self, *, booking_id: UUID, client_id: str) -> Booking:
        return await self.get_booking_use_case.get_booking(booking_id=booking_id, client_id=client_id)

    async def list_upcoming(self, *, client_id: str) -> list[Booking]:
        return await self.list_bookings_use_case.list_upcoming(client_id=client_id)

    async def list_history(self, *, client_id: str, page: int = 1, page_size: int = 10) -> BookingPage:
        return await self.list_bookings_use_case.list_history(
            client_id=client_id, page=page, page_size=page_size
        )

    async def list_bookings(
        self,
        *,
        client_id: str,
        status: Optional[BookingStatus] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> BookingPage:
        return await self.list_bookings_use_case.list_bookings(
            client_id=client_id, status=status, page=page, page_size=page_size
        )
