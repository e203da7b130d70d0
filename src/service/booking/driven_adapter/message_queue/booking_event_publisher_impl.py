from src.platform.message_queue.event_publisher import KafkaEventPublisher
from src.service.booking.app.dto.outbox_entry import OutboxEntry
from src.service.booking.app.interface.i_booking_event_publisher import IBookingEventPublisher


class BookingEventPublisherImpl(IBookingEventPublisher):
    """Outbox entry -> Kafka message keyed by booking id, so one booking's events stay ordered."""

    def __init__(self, *, kafka_event_publisher: KafkaEventPublisher) -> None:
        self.kafka_event_publisher = kafka_event_publisher

    async def publish(self, *, entry: OutboxEntry) -> None:
        await self.kafka_event_publisher.publish(
            topic=entry.exchange,
            key=str(entry.booking_id),
            value=entry.envelope,
            routing_key=entry.event_name,
        )
