from datetime import time

from src.platform.database.asyncpg_setting import PostgresDocumentStore
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_service_catalog import IServiceCatalog
from src.service.booking.domain.enum.service_kind import ServiceKind
from src.service.booking.domain.value_object.pricing import ServiceCatalogEntry, SurgeWindow


class ServiceCatalogImpl(IServiceCatalog):
    """Read-only view of the catalog table maintained by the catalog service."""

    def __init__(self, *, store: PostgresDocumentStore) -> None:
        self.store = store

    @Logger.io
    async def get_active_entry(self, *, service_type: str) -> ServiceCatalogEntry:
        async with self.store.connection() as conn:
            row = await conn.fetchrow(
                """
                SELECT service_type, kind, base_price, currency, surge_windows
                FROM service_catalog
                WHERE service_type = $1 AND is_active
                """,
                service_type,
            )
        if not row:
            raise NotFoundError(f'Service type {service_type} is not offered')

        # surge_windows: [{"start": "22:00", "end": "06:00", "multiplier": "1.5"}, ...]
        return ServiceCatalogEntry(
            service_type=row['service_type'],
            kind=ServiceKind(row['kind']),
            base_price=row['base_price'],
            currency=row['currency'],
            surge_windows=[
                SurgeWindow(
                    start=time.fromisoformat(window['start']),
                    end=time.fromisoformat(window['end']),
                    multiplier=window['multiplier'],
                )
                for window in row['surge_windows'] or []
            ],
        )
