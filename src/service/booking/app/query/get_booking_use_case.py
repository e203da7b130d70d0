from uuid_utils import UUID

from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.domain.entity.booking_entity import Booking


class GetBookingUseCase:
    def __init__(self, *, booking_query_repo: IBookingQueryRepo) -> None:
        self.booking_query_repo = booking_query_repo

    @Logger.io
    async def get_booking(self, *, booking_id: UUID, client_id: str) -> Booking:
        # Someone else's booking is reported exactly like a missing one
        booking = await self.booking_query_repo.get_for_client(
            booking_id=booking_id, client_id=client_id
        )
        if not booking:
            raise NotFoundError('Booking not found')
        return booking
