"""
In-memory stand-ins for the repository, catalog and publisher ports.

``InMemoryBookingStore`` keeps the conditional-update contract of the
PostgreSQL repository: a transition only applies while the stored booking
still has the status and version it was computed from. Reads yield to the
event loop so concurrent callers really interleave between read and write.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Iterable

import attrs
from uuid_utils import UUID

from src.platform.exception.exceptions import (
    BrokerUnavailableError,
    NotFoundError,
    StaleStateError,
    StoreUnavailableError,
)
from src.service.booking.app.booking_orchestrator import BookingOrchestrator
from src.service.booking.app.command.advance_booking_status_use_case import (
    AdvanceBookingStatusUseCase,
)
from src.service.booking.app.command.booking_transition_runner import BookingTransitionRunner
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.booking.app.command.dispatch_outbox_use_case import DispatchOutboxUseCase
from src.service.booking.app.command.review_booking_use_case import ReviewBookingUseCase
from src.service.booking.app.command.update_booking_use_case import UpdateBookingUseCase
from src.service.booking.app.dto.outbox_entry import OutboxEntry
from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.app.interface.i_booking_event_publisher import IBookingEventPublisher
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.app.interface.i_outbox_repo import IOutboxRepo
from src.service.booking.app.interface.i_service_catalog import IServiceCatalog
from src.service.booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.booking.app.query.list_bookings_use_case import ListBookingsUseCase
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import TERMINAL_STATUSES
from src.service.booking.domain.value_object.pricing import ServiceCatalogEntry


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


class InMemoryBookingStore(IBookingCommandRepo, IBookingQueryRepo, IOutboxRepo):
    def __init__(self) -> None:
        self.bookings: dict[UUID, Booking] = {}
        self.outbox: dict[UUID, OutboxEntry] = {}
        self.unavailable = False

    def _check_available(self) -> None:
        if self.unavailable:
            raise StoreUnavailableError()

    # --- command side ---

    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        self._check_available()
        booking = self.bookings.get(booking_id)
        await asyncio.sleep(0)
        return booking

    async def create(self, *, booking: Booking, outbox_entry: OutboxEntry) -> Booking:
        self._check_available()
        self.bookings[booking.id] = booking
        self.outbox[outbox_entry.id] = outbox_entry
        return booking

    async def save_transition(
        self, *, previous: Booking, updated: Booking, outbox_entry: OutboxEntry
    ) -> Booking:
        self._check_available()
        current = self.bookings.get(previous.id)
        if (
            current is None
            or current.status != previous.status
            or current.version != previous.version
        ):
            raise StaleStateError(f'Booking {previous.id} is no longer {previous.status}')
        self.bookings[updated.id] = updated
        self.outbox[outbox_entry.id] = outbox_entry
        return updated

    # --- query side ---

    async def get_for_client(self, *, booking_id: UUID, client_id: str) -> Booking | None:
        self._check_available()
        booking = self.bookings.get(booking_id)
        return booking if booking and booking.client_id == client_id else None

    async def list_upcoming(self, *, client_id, from_date, from_time, limit) -> list[Booking]:
        self._check_available()
        active = [
            b
            for b in self.bookings.values()
            if b.client_id == client_id
            and b.status not in TERMINAL_STATUSES
            and (b.scheduled_date, b.scheduled_time) >= (from_date, from_time)
        ]
        return sorted(active, key=lambda b: (b.scheduled_date, b.scheduled_time))[:limit]

    async def list_history(self, *, client_id, offset, limit) -> tuple[list[Booking], int]:
        self._check_available()
        terminal = sorted(
            (
                b
                for b in self.bookings.values()
                if b.client_id == client_id and b.status in TERMINAL_STATUSES
            ),
            key=lambda b: b.updated_at,
            reverse=True,
        )
        return terminal[offset : offset + limit], len(terminal)

    async def list_for_client(self, *, client_id, status, offset, limit) -> tuple[list[Booking], int]:
        self._check_available()
        matching = sorted(
            (
                b
                for b in self.bookings.values()
                if b.client_id == client_id and (status is None or b.status == status)
            ),
            key=lambda b: b.created_at,
            reverse=True,
        )
        return matching[offset : offset + limit], len(matching)

    # --- outbox ---

    async def fetch_pending(self, *, limit: int) -> list[OutboxEntry]:
        self._check_available()
        pending = [e for e in self.outbox.values() if not e.is_delivered]
        return sorted(pending, key=lambda e: e.created_at)[:limit]

    async def mark_delivered(self, *, entry_id: UUID, delivered_at: datetime) -> None:
        self._check_available()
        entry = self.outbox[entry_id]
        self.outbox[entry_id] = attrs.evolve(
            entry, delivered_at=delivered_at, attempts=entry.attempts + 1
        )

    async def record_failure(self, *, entry_id: UUID, error: str) -> None:
        self._check_available()
        entry = self.outbox[entry_id]
        self.outbox[entry_id] = attrs.evolve(entry, attempts=entry.attempts + 1, last_error=error)

    def pending_entries(self) -> list[OutboxEntry]:
        return [e for e in self.outbox.values() if not e.is_delivered]


class InMemoryServiceCatalog(IServiceCatalog):
    def __init__(self, entries: Iterable[ServiceCatalogEntry] = ()) -> None:
        self.entries = {entry.service_type: entry for entry in entries}

    async def get_active_entry(self, *, service_type: str) -> ServiceCatalogEntry:
        try:
            return self.entries[service_type]
        except KeyError:
            raise NotFoundError(f'Service type {service_type} is not offered') from None


class RecordingEventPublisher(IBookingEventPublisher):
    def __init__(self) -> None:
        self.published: list[OutboxEntry] = []
        self.unavailable = False

    async def publish(self, *, entry: OutboxEntry) -> None:
        if self.unavailable:
            raise BrokerUnavailableError('message-broker not reachable within 0.1s')
        self.published.append(entry)

    def event_names(self) -> list[str]:
        return [entry.event_name for entry in self.published]


def build_orchestrator(
    *,
    store: InMemoryBookingStore,
    catalog: IServiceCatalog,
    event_publisher: IBookingEventPublisher,
    clock: FixedClock,
    max_stale_retries: int = 2,
    time_zone: str = 'UTC',
    service_name: str = 'patient-booking-service',
) -> BookingOrchestrator:
    runner = BookingTransitionRunner(
        booking_command_repo=store,
        service_name=service_name,
        max_stale_retries=max_stale_retries,
    )
    return BookingOrchestrator(
        create_booking_use_case=CreateBookingUseCase(
            booking_command_repo=store,
            service_catalog=catalog,
            service_name=service_name,
            time_zone=time_zone,
            clock=clock,
        ),
        cancel_booking_use_case=CancelBookingUseCase(transition_runner=runner, clock=clock),
        review_booking_use_case=ReviewBookingUseCase(transition_runner=runner, clock=clock),
        update_booking_use_case=UpdateBookingUseCase(transition_runner=runner, clock=clock),
        advance_booking_status_use_case=AdvanceBookingStatusUseCase(
            transition_runner=runner, clock=clock
        ),
        dispatch_outbox_use_case=DispatchOutboxUseCase(
            outbox_repo=store, event_publisher=event_publisher, clock=clock
        ),
        get_booking_use_case=GetBookingUseCase(booking_query_repo=store),
        list_bookings_use_case=ListBookingsUseCase(
            booking_query_repo=store,
            upcoming_limit=10,
            max_page_size=50,
            time_zone=time_zone,
            clock=clock,
        ),
    )
