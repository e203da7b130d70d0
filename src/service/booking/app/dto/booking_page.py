import attrs

from src.service.booking.domain.entity.booking_entity import Booking


@attrs.frozen
class BookingPage:
    items: list[Booking]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size if self.page_size else 0
