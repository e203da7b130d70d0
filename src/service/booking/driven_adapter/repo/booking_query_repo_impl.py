from datetime import date

from uuid_utils import UUID

from src.platform.database.asyncpg_setting import PostgresDocumentStore
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import TERMINAL_STATUSES, BookingStatus
from src.service.booking.driven_adapter.repo.booking_row_mapper import BOOKING_COLUMNS, row_to_booking


_TERMINAL = sorted(status.value for status in TERMINAL_STATUSES)
_ACTIVE = sorted(status.value for status in BookingStatus if status not in TERMINAL_STATUSES)


class BookingQueryRepoImpl(IBookingQueryRepo):
    def __init__(self, *, store: PostgresDocumentStore) -> None:
        self.store = store

    @Logger.io
    async def get_for_client(self, *, booking_id: UUID, client_id: str) -> Booking | None:
        async with self.store.connection() as conn:
            row = await conn.fetchrow(
                f'SELECT {BOOKING_COLUMNS} FROM booking WHERE id = $1 AND client_id = $2',
                booking_id,
                client_id,
            )
        return row_to_booking(row) if row else None

    @Logger.io
    async def list_upcoming(
        self, *, client_id: str, from_date: date, from_time: str, limit: int
    ) -> list[Booking]:
        async with self.store.connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {BOOKING_COLUMNS}
                FROM booking
                WHERE client_id = $1
                  AND status = ANY($2::text[])
                  AND (scheduled_date, scheduled_time) >= ($3::date, $4::text)
                ORDER BY scheduled_date, scheduled_time
                LIMIT $5
                """,
                client_id,
                _ACTIVE,
                from_date,
                from_time,
                limit,
            )
        return [row_to_booking(row) for row in rows]

    @Logger.io
    async def list_history(
        self, *, client_id: str, offset: int, limit: int
    ) -> tuple[list[Booking], int]:
        async with self.store.connection() as conn:
            total = await conn.fetchval(
                'SELECT count(*) FROM booking WHERE client_id = $1 AND status = ANY($2::text[])',
                client_id,
                _TERMINAL,
            )
            rows = await conn.fetch(
                f"""
                SELECT {BOOKING_COLUMNS}
                FROM booking
                WHERE client_id = $1
                  AND status = ANY($2::text[])
                ORDER BY updated_at DESC
                LIMIT $3 OFFSET $4
                """,
                client_id,
                _TERMINAL,
                limit,
                offset,
            )
        return [row_to_booking(row) for row in rows], total

    @Logger.io
    async def list_for_client(
        self, *, client_id: str, status: BookingStatus | None, offset: int, limit: int
    ) -> tuple[list[Booking], int]:
        # NULL status means no filter
        status_value = status.value if status else None
        async with self.store.connection() as conn:
            total = await conn.fetchval(
                """
                SELECT count(*) FROM booking
                WHERE client_id = $1 AND ($2::text IS NULL OR status = $2::text)
                """,
                client_id,
                status_value,
            )
            rows = await conn.fetch(
                f"""
                SELECT {BOOKING_COLUMNS}
                FROM booking
                WHERE client_id = $1
                  AND ($2::text IS NULL OR status = $2::text)
                ORDER BY created_at DESC, id DESC
                LIMIT $3 OFFSET $4
                """,
                client_id,
                status_value,
                limit,
                offset,
            )
        return [row_to_booking(row) for row in rows], total
