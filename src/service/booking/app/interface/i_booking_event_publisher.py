from abc import ABC, abstractmethod

from src.service.booking.app.dto.outbox_entry import OutboxEntry


class IBookingEventPublisher(ABC):
    @abstractmethod
    async def publish(self, *, entry: OutboxEntry) -> None:
        """
        Deliver one outbox entry to its exchange

        Raises:
            BrokerUnavailableError: broker unreachable or delivery not confirmed in time
        """
        pass
