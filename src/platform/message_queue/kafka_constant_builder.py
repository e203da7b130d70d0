class EventFamily:
    BOOKING = 'booking'
    CLIENT = 'client'


class KafkaTopicBuilder:
    """
    Topic ("exchange") per event family; the routing key is the event name.

    Format: {family}.events
    """

    @staticmethod
    def booking_events() -> str:
        return f'{EventFamily.BOOKING}.events'

    @staticmethod
    def client_events() -> str:
        return f'{EventFamily.CLIENT}.events'

    @staticmethod
    def for_event_name(event_name: str) -> str:
        """booking.cancelled -> booking.events, client.registered -> client.events"""
        family, _, action = event_name.partition('.')
        if not action:
            raise ValueError(f'Event name must look like "<family>.<action>": {event_name!r}')
        if family == EventFamily.BOOKING:
            return KafkaTopicBuilder.booking_events()
        if family == EventFamily.CLIENT:
            return KafkaTopicBuilder.client_events()
        raise ValueError(f'Unknown event family: {family!r}')

    @staticmethod
    def get_all_topics() -> list[str]:
        return [KafkaTopicBuilder.booking_events(), KafkaTopicBuilder.client_events()]
