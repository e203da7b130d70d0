from abc import ABC, abstractmethod
from datetime import date

from uuid_utils import UUID

from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus


class IBookingQueryRepo(ABC):
    @abstractmethod
    async def get_for_client(self, *, booking_id: UUID, client_id: str) -> Booking | None:
        """None when the booking does not exist or belongs to another client."""
        pass

    @abstractmethod
    async def list_upcoming(
        self, *, client_id: str, from_date: date, from_time: str, limit: int
    ) -> list[Booking]:
        """Non-terminal bookings scheduled at or after ``from_date`` ``from_time`` (local HH:MM), soonest first."""
        pass

    @abstractmethod
    async def list_history(
        self, *, client_id: str, offset: int, limit: int
    ) -> tuple[list[Booking], int]:
        """Terminal bookings (completed / cancelled / no-show), newest first, plus the total count."""
        pass

    @abstractmethod
    async def list_for_client(
        self, *, client_id: str, status: BookingStatus | None, offset: int, limit: int
    ) -> tuple[list[Booking], int]:
        """All of the client's bookings (optionally one status), newest first, plus the total count."""
        pass
