"""
Booking Command Repository Implementation

Each write is a single statement: a data-modifying CTE changes the booking
and inserts its outbox entry, so both commit or neither does. Transitions
are conditional on the status and version the decision was computed
against; zero rows back means another writer got there first.
"""

from datetime import timedelta

from uuid_utils import UUID

from src.platform.database.asyncpg_setting import PostgresDocumentStore
from src.platform.exception.exceptions import StaleStateError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.outbox_entry import OutboxEntry
from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.driven_adapter.repo.booking_row_mapper import (
    BOOKING_COLUMNS,
    booking_to_document,
    row_to_booking,
)


class BookingCommandRepoImpl(IBookingCommandRepo):
    def __init__(self, *, store: PostgresDocumentStore, outbox_claim_lease_seconds: float) -> None:
        self.store = store
        # Fresh entries are claimed for the inline publish so the dispatcher leaves them alone
        self.outbox_claim_lease = timedelta(seconds=outbox_claim_lease_seconds)

    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        async with self.store.connection() as conn:
            row = await conn.fetchrow(
                f'SELECT {BOOKING_COLUMNS} FROM booking WHERE id = $1',
                booking_id,
            )
        return row_to_booking(row) if row else None

    @Logger.io
    async def create(self, *, booking: Booking, outbox_entry: OutboxEntry) -> Booking:
        async with self.store.connection() as conn:
            row = await conn.fetchrow(
                f"""
                WITH inserted_booking AS (
                    INSERT INTO booking (
                        id, client_id, provider_id, service_type, service_kind, status,
                        scheduled_date, scheduled_time, time_zone, payable_amount,
                        document, version, created_at, updated_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
                    RETURNING {BOOKING_COLUMNS}
                ),
                inserted_outbox AS (
                    INSERT INTO booking_outbox (
                        id, booking_id, event_name, exchange, envelope, created_at, claimed_until
                    )
                    SELECT $15, id, $16, $17, $18, $19, $20 FROM inserted_booking
                    RETURNING id
                )
                SELECT * FROM inserted_booking
                """,
                booking.id,
                booking.client_id,
                booking.provider_id,
                booking.service_type,
                booking.service_kind.value,
                booking.status.value,
                booking.scheduled_date,
                booking.scheduled_time,
                booking.time_zone,
                booking.pricing.payable_amount,
                booking_to_document(booking),
                booking.version,
                booking.created_at,
                booking.updated_at,
                *self._outbox_args(outbox_entry),
            )
        return row_to_booking(row)

    @Logger.io
    async def save_transition(
        self, *, previous: Booking, updated: Booking, outbox_entry: OutboxEntry
    ) -> Booking:
        async with self.store.connection() as conn:
            row = await conn.fetchrow(
                f"""
                WITH updated_booking AS (
                    UPDATE booking
                    SET status = $4,
                        provider_id = $5,
                        document = $6,
                        version = $7,
                        updated_at = $8,
                        scheduled_date = $9,
                        scheduled_time = $10
                    WHERE id = $1 AND status = $2 AND version = $3
                    RETURNING {BOOKING_COLUMNS}
                ),
                inserted_outbox AS (
                    INSERT INTO booking_outbox (
                        id, booking_id, event_name, exchange, envelope, created_at, claimed_until
                    )
                    SELECT $11, id, $12, $13, $14, $15, $16 FROM updated_booking
                    RETURNING id
                )
                SELECT * FROM updated_booking
                """,
                previous.id,
                previous.status.value,
                previous.version,
                updated.status.value,
                updated.provider_id,
                booking_to_document(updated),
                updated.version,
                updated.updated_at,
                updated.scheduled_date,
                updated.scheduled_time,
                *self._outbox_args(outbox_entry),
            )

        if not row:
            raise StaleStateError(
                f'Booking {previous.id} is no longer {previous.status} (version {previous.version})'
            )

        Logger.base.info(
            f'💾 [CAS] booking {previous.id} {previous.status} -> {updated.status} v{updated.version} '
            f'+ outbox {outbox_entry.event_name}'
        )
        return row_to_booking(row)

    def _outbox_args(self, entry: OutboxEntry) -> tuple:
        return (
            entry.id,
            entry.event_name,
            entry.exchange,
            entry.envelope,
            entry.created_at,
            entry.created_at + self.outbox_claim_lease,
        )
