"""init_db_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Schema:
- booking: booking documents (JSONB) with queryable status / schedule / version columns
- booking_outbox: events written with the booking change, drained by the dispatcher
- service_catalog: read-only copy of the catalog entries used for pricing

Note: service_catalog.surge_windows uses:
  [{"start": "22:00", "end": "06:00", "multiplier": "1.5"}]
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'service_catalog',
        sa.Column('service_type', sa.String(length=64), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('base_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='INR'),
        sa.Column('surge_windows', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('service_type'),
        sa.CheckConstraint("kind IN ('nursing', 'physiotherapy', 'package')", name='ck_catalog_kind'),
        sa.CheckConstraint('base_price > 0', name='ck_catalog_base_price_positive'),
    )

    op.create_table(
        'booking',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', sa.String(length=64), nullable=False),
        sa.Column('provider_id', sa.String(length=64), nullable=True),
        sa.Column('service_type', sa.String(length=64), nullable=False),
        sa.Column('service_kind', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('scheduled_time', sa.String(length=5), nullable=False),
        sa.Column('time_zone', sa.String(length=64), nullable=False),
        sa.Column('payable_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('document', JSONB(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('requested', 'searching', 'assigned', 'confirmed', "
            "'completed', 'cancelled', 'no_show')",
            name='ck_booking_status',
        ),
    )
    op.create_index(
        'ix_booking_client_status_schedule',
        'booking',
        ['client_id', 'status', 'scheduled_date'],
    )
    op.create_index('ix_booking_client_updated', 'booking', ['client_id', 'updated_at'])

    op.create_table(
        'booking_outbox',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('booking_id', UUID(as_uuid=True), nullable=False),
        sa.Column('event_name', sa.String(length=64), nullable=False),
        sa.Column('exchange', sa.String(length=64), nullable=False),
        sa.Column('envelope', sa.LargeBinary(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('claimed_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['booking_id'], ['booking.id']),
    )
    # Dispatcher only ever scans undelivered rows
    op.create_index(
        'ix_booking_outbox_pending',
        'booking_outbox',
        ['created_at'],
        postgresql_where=sa.text('delivered_at IS NULL'),
    )


def downgrade() -> None:
    op.drop_index('ix_booking_outbox_pending', table_name='booking_outbox')
    op.drop_table('booking_outbox')
    op.drop_index('ix_booking_client_updated', table_name='booking')
    op.drop_index('ix_booking_client_status_schedule', table_name='booking')
    op.drop_table('booking')
    op.drop_table('service_catalog')
