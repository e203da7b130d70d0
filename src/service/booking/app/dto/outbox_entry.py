from datetime import datetime
from typing import Optional

import attrs
from uuid_utils import UUID, uuid7

from src.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder
from src.platform.message_queue.message_codec import MessageEnvelope
from src.service.booking.domain.domain_event.booking_domain_event import BookingDomainEvent
from src.service.booking.domain.entity.booking_entity import Booking


@attrs.frozen(kw_only=True)
class OutboxEntry:
    """An encoded event waiting for (or past) delivery; stored with the change it announces."""

    id: UUID
    booking_id: UUID
    event_name: str
    exchange: str
    envelope: bytes
    created_at: datetime
    attempts: int = 0
    delivered_at: Optional[datetime] = None
    last_error: Optional[str] = None

    @classmethod
    def from_event(cls, event: BookingDomainEvent, *, service: str) -> 'OutboxEntry':
        envelope = MessageEnvelope.build(
            event=event.event_name,
            data=event.to_message_data(),
            service=service,
            occurred_at=event.occurred_at,
        )
        return cls(
            id=uuid7(),
            booking_id=event.booking_id,
            event_name=event.event_name,
            exchange=KafkaTopicBuilder.for_event_name(event.event_name),
            envelope=envelope.encode(),
            created_at=event.occurred_at,
        )

    @property
    def is_delivered(self) -> bool:
        return self.delivered_at is not None


@attrs.frozen
class PersistedChange:
    """A booking write that committed, with the event and outbox entry stored alongside it."""

    booking: Booking
    event: BookingDomainEvent
    outbox_entry: OutboxEntry
