from abc import ABC, abstractmethod

from src.service.booking.domain.value_object.pricing import ServiceCatalogEntry


class IServiceCatalog(ABC):
    @abstractmethod
    async def get_active_entry(self, *, service_type: str) -> ServiceCatalogEntry:
        """
        Current catalog entry for ``service_type``

        Raises:
            NotFoundError: no active entry for this service type
            ValidationError: stored entry is invalid (e.g. overlapping surge windows)
        """
        pass
