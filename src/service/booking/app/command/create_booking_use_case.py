from datetime import date
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo

from uuid_utils import uuid7

from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock, utc_now
from src.service.booking.app.dto.outbox_entry import OutboxEntry, PersistedChange
from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.app.interface.i_service_catalog import IServiceCatalog
from src.service.booking.domain.booking_state_machine import booking_created
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.value_object.pricing import calculate_pricing
from src.service.booking.domain.value_object.service_details import build_service_details


class CreateBookingUseCase:
    """
    Flow:
    1. Resolve the active catalog entry (404 when the service type is unknown)
    2. Validate details against the entry's service kind
    3. Snapshot pricing at the current local time
    4. Insert booking + booking.created outbox entry atomically
    """

    def __init__(
        self,
        *,
        booking_command_repo: IBookingCommandRepo,
        service_catalog: IServiceCatalog,
        service_name: str,
        time_zone: str,
        clock: Clock = utc_now,
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.service_catalog = service_catalog
        self.service_name = service_name
        self.time_zone = time_zone
        self.clock = clock

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
    ) -> PersistedChange:
        entry = await self.service_catalog.get_active_entry(service_type=service_type)
        service_details = build_service_details(entry.kind, details)

        now = self.clock()
        pricing = calculate_pricing(entry, now.astimezone(ZoneInfo(self.time_zone)))
        booking = Booking.create(
            id=uuid7(),
            client_id=client_id,
            service_type=service_type,
            details=service_details,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            time_zone=self.time_zone,
            location=location,
            pricing=pricing,
            now=now,
        )

        event = booking_created(booking)
        outbox_entry = OutboxEntry.from_event(event, service=self.service_name)
        saved = await self.booking_command_repo.create(booking=booking, outbox_entry=outbox_entry)

        Logger.base.info(
            f'🆕 [CREATE] booking {saved.id} ({service_type}) payable '
            f'{pricing.payable_amount} {pricing.currency}'
        )
        return PersistedChange(booking=saved, event=event, outbox_entry=outbox_entry)
