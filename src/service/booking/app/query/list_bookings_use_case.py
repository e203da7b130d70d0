from datetime import timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from src.platform.exception.exceptions import ValidationError
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock, utc_now
from src.service.booking.app.dto.booking_page import BookingPage
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus


class ListBookingsUseCase:
    def __init__(
        self,
        *,
        booking_query_repo: IBookingQueryRepo,
        upcoming_limit: int,
        max_page_size: int,
        time_zone: str,
        clock: Clock = utc_now,
    ) -> None:
        self.booking_query_repo = booking_query_repo
        self.upcoming_limit = upcoming_limit
        self.max_page_size = max_page_size
        self.time_zone = time_zone
        self.clock = clock

    @Logger.io
    async def list_upcoming(self, *, client_id: str) -> list[Booking]:
        # Round up to the whole minute; a visit at this exact minute is still upcoming
        local_now = self.clock().astimezone(ZoneInfo(self.time_zone))
        threshold = local_now.replace(second=0, microsecond=0)
        if threshold < local_now:
            threshold += timedelta(minutes=1)
        return await self.booking_query_repo.list_upcoming(
            client_id=client_id,
            from_date=threshold.date(),
            from_time=threshold.strftime('%H:%M'),
            limit=self.upcoming_limit,
        )

    @Logger.io
    async def list_history(self, *, client_id: str, page: int = 1, page_size: int = 10) -> BookingPage:
        self._check_page(page, page_size)
        items, total = await self.booking_query_repo.list_history(
            client_id=client_id, offset=(page - 1) * page_size, limit=page_size
        )
        return BookingPage(items=items, total=total, page=page, page_size=page_size)

    @Logger.io
    async def list_bookings(
        self,
        *,
        client_id: str,
        status: Optional[BookingStatus] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> BookingPage:
        self._check_page(page, page_size)
        items, total = await self.booking_query_repo.list_for_client(
            client_id=client_id, status=status, offset=(page - 1) * page_size, limit=page_size
        )
        return BookingPage(items=items, total=total, page=page, page_size=page_size)

    def _check_page(self, page: int, page_size: int) -> None:
        if page < 1:
            raise ValidationError('page must be >= 1')
        if not 1 <= page_size <= self.max_page_size:
            raise ValidationError(f'page_size must be between 1 and {self.max_page_size}')
