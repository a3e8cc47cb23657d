"""Initial schema - tables, private events, reservations, venue hours, booking windows, audit log.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


RESERVATION_EXCLUSION_CONSTRAINT = 'ex_reservations_table_no_overlap'


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
    ]


def upgrade() -> None:
    """Create initial database tables."""
    is_postgresql = op.get_bind().dialect.name == 'postgresql'

    if is_postgresql:
        # Needed for "table_id WITH =" inside a gist exclusion constraint
        op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')

    # Create tables table
    op.create_table(
        'tables',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('table_number', sa.Integer(), nullable=False),
        sa.Column('seats', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('seats >= 1', name=op.f('ck_tables_seats_positive')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_tables')),
        sa.UniqueConstraint('table_number', name=op.f('uq_tables_table_number')),
    )
    op.create_index(op.f('ix_tables_created_at'), 'tables', ['created_at'], unique=False)

    # Create private_events table
    op.create_table(
        'private_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('full_day', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('end_time > start_time', name=op.f('ck_private_events_time_order')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_private_events')),
    )
    op.create_index(op.f('ix_private_events_start_time'), 'private_events', ['start_time'], unique=False)
    op.create_index(op.f('ix_private_events_end_time'), 'private_events', ['end_time'], unique=False)
    op.create_index(op.f('ix_private_events_status'), 'private_events', ['status'], unique=False)
    op.create_index(op.f('ix_private_events_created_at'), 'private_events', ['created_at'], unique=False)
    op.create_index('ix_private_events_status_start', 'private_events', ['status', 'start_time'], unique=False)

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('table_id', sa.Integer(), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('private_event_id', sa.Integer(), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('end_time > start_time', name=op.f('ck_reservations_time_order')),
        sa.CheckConstraint('party_size >= 1', name=op.f('ck_reservations_party_size_positive')),
        sa.ForeignKeyConstraint(['table_id'], ['tables.id'], name=op.f('fk_reservations_table_id_tables')),
        sa.ForeignKeyConstraint(
            ['private_event_id'], ['private_events.id'],
            name=op.f('fk_reservations_private_event_id_private_events'),
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_reservations')),
    )
    op.create_index(op.f('ix_reservations_table_id'), 'reservations', ['table_id'], unique=False)
    op.create_index(op.f('ix_reservations_start_time'), 'reservations', ['start_time'], unique=False)
    op.create_index(op.f('ix_reservations_status'), 'reservations', ['status'], unique=False)
    op.create_index(op.f('ix_reservations_private_event_id'), 'reservations', ['private_event_id'], unique=False)
    op.create_index(op.f('ix_reservations_phone'), 'reservations', ['phone'], unique=False)
    op.create_index(op.f('ix_reservations_created_at'), 'reservations', ['created_at'], unique=False)
    op.create_index('ix_reservations_table_start', 'reservations', ['table_id', 'start_time'], unique=False)
    op.create_index('ix_reservations_status_start', 'reservations', ['status', 'start_time'], unique=False)

    if is_postgresql:
        op.execute(
            f"ALTER TABLE reservations ADD CONSTRAINT {RESERVATION_EXCLUSION_CONSTRAINT} "
            "EXCLUDE USING gist (table_id WITH =, tstzrange(start_time, end_time, '[)') WITH &&) "
            "WHERE (status = 'active' AND table_id IS NOT NULL)"
        )

    # Create venue_hours table
    op.create_table(
        'venue_hours',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=True),
        sa.Column('date', sa.Date(), nullable=True),
        sa.Column('time_ranges', sa.JSON(), nullable=True),
        sa.Column('full_day', sa.Boolean(), nullable=False),
        sa.Column('label', sa.String(length=200), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            'day_of_week IS NULL OR (day_of_week >= 0 AND day_of_week <= 6)',
            name=op.f('ck_venue_hours_day_of_week_range'),
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_venue_hours')),
    )
    op.create_index(op.f('ix_venue_hours_type'), 'venue_hours', ['type'], unique=False)
    op.create_index(op.f('ix_venue_hours_date'), 'venue_hours', ['date'], unique=False)
    op.create_index(op.f('ix_venue_hours_created_at'), 'venue_hours', ['created_at'], unique=False)
    op.create_index('ix_venue_hours_type_date', 'venue_hours', ['type', 'date'], unique=False)
    op.create_index('ix_venue_hours_type_day', 'venue_hours', ['type', 'day_of_week'], unique=False)

    # Create booking_windows table
    op.create_table(
        'booking_windows',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('end_date >= start_date', name=op.f('ck_booking_windows_date_order')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_booking_windows')),
    )
    op.create_index(op.f('ix_booking_windows_is_active'), 'booking_windows', ['is_active'], unique=False)
    op.create_index(op.f('ix_booking_windows_created_at'), 'booking_windows', ['created_at'], unique=False)

    # Create audit_log table
    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=100), nullable=False),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_audit_log')),
    )
    op.create_index(op.f('ix_audit_log_action'), 'audit_log', ['action'], unique=False)
    op.create_index(op.f('ix_audit_log_entity_type'), 'audit_log', ['entity_type'], unique=False)
    op.create_index(op.f('ix_audit_log_entity_id'), 'audit_log', ['entity_id'], unique=False)
    op.create_index(op.f('ix_audit_log_created_at'), 'audit_log', ['created_at'], unique=False)
    op.create_index('ix_audit_log_entity', 'audit_log', ['entity_type', 'entity_id'], unique=False)


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('ix_audit_log_entity', table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_created_at'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_entity_id'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_entity_type'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_action'), table_name='audit_log')
    op.drop_table('audit_log')

    op.drop_index(op.f('ix_booking_windows_created_at'), table_name='booking_windows')
    op.drop_index(op.f('ix_booking_windows_is_active'), table_name='booking_windows')
    op.drop_table('booking_windows')

    op.drop_index('ix_venue_hours_type_day', table_name='venue_hours')
    op.drop_index('ix_venue_hours_type_date', table_name='venue_hours')
    op.drop_index(op.f('ix_venue_hours_created_at'), table_name='venue_hours')
    op.drop_index(op.f('ix_venue_hours_date'), table_name='venue_hours')
    op.drop_index(op.f('ix_venue_hours_type'), table_name='venue_hours')
    op.drop_table('venue_hours')

    # Dropping the table drops the exclusion constraint with it
    op.drop_index('ix_reservations_status_start', table_name='reservations')
    op.drop_index('ix_reservations_table_start', table_name='reservations')
    op.drop_index(op.f('ix_reservations_created_at'), table_name='reservations')
    op.drop_index(op.f('ix_reservations_phone'), table_name='reservations')
    op.drop_index(op.f('ix_reservations_private_event_id'), table_name='reservations')
    op.drop_index(op.f('ix_reservations_status'), table_name='reservations')
    op.drop_index(op.f('ix_reservations_start_time'), table_name='reservations')
    op.drop_index(op.f('ix_reservations_table_id'), table_name='reservations')
    op.drop_table('reservations')

    op.drop_index('ix_private_events_status_start', table_name='private_events')
    op.drop_index(op.f('ix_private_events_created_at'), table_name='private_events')
    op.drop_index(op.f('ix_private_events_status'), table_name='private_events')
    op.drop_index(op.f('ix_private_events_end_time'), table_name='private_events')
    op.drop_index(op.f('ix_private_events_start_time'), table_name='private_events')
    op.drop_table('private_events')

    op.drop_index(op.f('ix_tables_created_at'), table_name='tables')
    op.drop_table('tables')
