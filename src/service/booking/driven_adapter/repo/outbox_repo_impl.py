from datetime import datetime, timedelta

import asyncpg
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import PostgresDocumentStore
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock, utc_now
from src.service.booking.app.dto.outbox_entry import OutboxEntry
from src.service.booking.app.interface.i_outbox_repo import IOutboxRepo


_OUTBOX_COLUMNS = """
    id, booking_id, event_name, exchange, envelope, created_at,
    attempts, delivered_at, last_error
"""
_MAX_ERROR_LENGTH = 1000


class OutboxRepoImpl(IOutboxRepo):
    def __init__(
        self,
        *,
        store: PostgresDocumentStore,
        claim_lease_seconds: float,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.claim_lease = timedelta(seconds=claim_lease_seconds)
        self.clock = clock

    @staticmethod
    def _row_to_entry(row: asyncpg.Record) -> OutboxEntry:
        return OutboxEntry(
            id=row['id'],
            booking_id=row['booking_id'],
            event_name=row['event_name'],
            exchange=row['exchange'],
            envelope=bytes(row['envelope']),
            created_at=row['created_at'],
            attempts=row['attempts'],
            delivered_at=row['delivered_at'],
            last_error=row['last_error'],
        )

    @Logger.io
    async def fetch_pending(self, *, limit: int) -> list[OutboxEntry]:
        """
        Claim up to ``limit`` pending entries for one lease period.

        SKIP LOCKED plus the lease lets several dispatchers (one per replica)
        drain the same table without handing the same entry to two of them.
        """
        now = self.clock()
        async with self.store.connection() as conn:
            rows = await conn.fetch(
                f"""
                UPDATE booking_outbox
                SET claimed_until = $2
                WHERE id IN (
                    SELECT id FROM booking_outbox
                    WHERE delivered_at IS NULL
                      AND (claimed_until IS NULL OR claimed_until < $1)
                    ORDER BY created_at
                    LIMIT $3
                    FOR UPDATE SKIP LOCKED
                )
                RETURNING {_OUTBOX_COLUMNS}
                """,
                now,
                now + self.claim_lease,
                limit,
            )
        return sorted((self._row_to_entry(row) for row in rows), key=lambda e: e.created_at)

    @Logger.io
    async def mark_delivered(self, *, entry_id: UUID, delivered_at: datetime) -> None:
        async with self.store.connection() as conn:
            await conn.execute(
                """
                UPDATE booking_outbox
                SET delivered_at = $2, claimed_until = NULL, attempts = attempts + 1
                WHERE id = $1
                """,
                entry_id,
                delivered_at,
            )

    @Logger.io
    async def record_failure(self, *, entry_id: UUID, error: str) -> None:
        async with self.store.connection() as conn:
            await conn.execute(
                """
                UPDATE booking_outbox
                SET attempts = attempts + 1, last_error = $2, claimed_until = NULL
                WHERE id = $1
                """,
                entry_id,
                error[:_MAX_ERROR_LENGTH],
            )
