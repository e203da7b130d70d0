from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import attrs
from uuid_utils import UUID

from src.platform.exception.exceptions import ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.service_kind import ServiceKind
from src.service.booking.domain.value_object.cancellation import Cancellation
from src.service.booking.domain.value_object.pricing import PricingSnapshot
from src.service.booking.domain.value_object.rating import Rating
from src.service.booking.domain.value_object.service_details import ServiceDetails


StatusStamp = tuple[BookingStatus, datetime]


def parse_scheduled_time(value: str) -> time:
    """'HH:MM', 24h clock."""
    try:
        hours, minutes = value.split(':')
        if len(hours) != 2 or len(minutes) != 2:
            raise ValueError(value)
        return time(int(hours), int(minutes))
    except ValueError:
        raise ValidationError(f'scheduled_time must be HH:MM (24h), got {value!r}') from None


def _zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f'Unknown time zone: {name!r}') from None


def ensure_future_schedule(
    scheduled_date: date, scheduled_time: str, time_zone: str, now: datetime
) -> datetime:
    scheduled_at = datetime.combine(
        scheduled_date, parse_scheduled_time(scheduled_time), tzinfo=_zone(time_zone)
    )
    if scheduled_at <= now:
        raise ValidationError('Booking must be scheduled in the future')
    return scheduled_at


def ensure_location(location: Optional[Mapping[str, Any]]) -> None:
    if not location or not location.get('address'):
        raise ValidationError('location.address is required')


@attrs.frozen(kw_only=True)
class Booking:
    """
    One home-health visit from request to delivery.

    Instances are immutable; every change goes through the state machine,
    which returns a new snapshot via ``attrs.evolve``.
    """

    id: UUID
    client_id: str
    provider_id: Optional[str] = None
    service_type: str
    service_kind: ServiceKind
    details: ServiceDetails
    scheduled_date: date
    scheduled_time: str
    time_zone: str = 'UTC'
    location: Mapping[str, Any]
    status: BookingStatus = BookingStatus.REQUESTED
    pricing: PricingSnapshot
    cancellation: Optional[Cancellation] = None
    rating: Optional[Rating] = None
    status_timestamps: tuple[StatusStamp, ...] = ()
    version: int = 0  # bumped on every write, guards the conditional update
    created_at: datetime
    updated_at: datetime

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: UUID,
        client_id: str,
        service_type: str,
        details: ServiceDetails,
        scheduled_date: date,
        scheduled_time: str,
        time_zone: str,
        location: Mapping[str, Any],
        pricing: PricingSnapshot,
        now: datetime,
    ) -> 'Booking':
        if not client_id:
            raise ValidationError('client_id is required')
        ensure_location(location)
        ensure_future_schedule(scheduled_date, scheduled_time, time_zone, now)

        return cls(
            id=id,
            client_id=client_id,
            service_type=service_type,
            service_kind=details.kind,
            details=details,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            time_zone=time_zone,
            location=dict(location),
            status=BookingStatus.REQUESTED,
            pricing=pricing,
            status_timestamps=((BookingStatus.REQUESTED, now),),
            created_at=now,
            updated_at=now,
        )

    @property
    def scheduled_at(self) -> datetime:
        return datetime.combine(
            self.scheduled_date,
            parse_scheduled_time(self.scheduled_time),
            tzinfo=ZoneInfo(self.time_zone),
        )

    @property
    def status_history(self) -> dict[BookingStatus, datetime]:
        return dict(self.status_timestamps)

    def is_owned_by(self, client_id: str) -> bool:
        return self.client_id == client_id

    def is_upcoming(self, now: Optional[datetime] = None) -> bool:
        return not self.status.is_terminal and self.scheduled_at >= (
            now or datetime.now(timezone.utc)
        )
