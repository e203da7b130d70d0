"""
Booking Command Repository Interface

Every write stores the booking and its outbox entry in one atomic statement.
"""

from abc import ABC, abstractmethod

from uuid_utils import UUID

from src.service.booking.app.dto.outbox_entry import OutboxEntry
from src.service.booking.domain.entity.booking_entity import Booking


class IBookingCommandRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        """Fresh read used to compute a transition (never cached)."""
        pass

    @abstractmethod
    async def create(self, *, booking: Booking, outbox_entry: OutboxEntry) -> Booking:
        """
        Insert a new booking together with its ``booking.created`` outbox entry

        Raises:
            StoreUnavailableError: document store not reachable
        """
        pass

    @abstractmethod
    async def save_transition(
        self, *, previous: Booking, updated: Booking, outbox_entry: OutboxEntry
    ) -> Booking:
        """
        Conditional update: applies only while the stored booking still has
        ``previous.status`` and ``previous.version``; the outbox entry is
        inserted in the same statement.

        Raises:
            StaleStateError: the booking changed since ``previous`` was read
            StoreUnavailableError: document store not reachable
        """
        pass
