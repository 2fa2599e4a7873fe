"""Create marketplace tables: users, events, swap_requests

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2025-11-03 10:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    event_status = postgresql.ENUM(
        'BUSY', 'SWAPPABLE', 'SWAP_PENDING',
        name='event_status',
        create_type=False,
    )
    event_status.create(op.get_bind(), checkfirst=True)

    swap_request_status = postgresql.ENUM(
        'PENDING', 'ACCEPTED', 'REJECTED',
        name='swap_request_status',
        create_type=False,
    )
    swap_request_status.create(op.get_bind(), checkfirst=True)

    # Users (public identity only)
    op.create_table('users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Events
    op.create_table('events',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('start_time', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('end_time', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('status', event_status, nullable=False, server_default='BUSY'),
        sa.Column('owner_id', sa.UUID(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('end_time > start_time', name='check_event_time_range'),
        sa.CheckConstraint('length(title) > 0', name='check_event_title_not_empty'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_events_owner_id', 'events', ['owner_id'])
    op.create_index('ix_events_start_time', 'events', ['start_time'])
    op.create_index('ix_events_status', 'events', ['status'])
    op.create_index('idx_events_status_start_time', 'events', ['status', 'start_time'])

    # Swap requests (append-only audit trail)
    op.create_table('swap_requests',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('status', swap_request_status, nullable=False, server_default='PENDING'),
        sa.Column('requester_id', sa.UUID(), nullable=False),
        sa.Column('recipient_id', sa.UUID(), nullable=False),
        sa.Column('my_slot_id', sa.UUID(), nullable=False),
        sa.Column('their_slot_id', sa.UUID(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('my_slot_id <> their_slot_id', name='check_swap_distinct_slots'),
        sa.ForeignKeyConstraint(['requester_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipient_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_swap_requests_status', 'swap_requests', ['status'])
    op.create_index('ix_swap_requests_requester_id', 'swap_requests', ['requester_id'])
    op.create_index('ix_swap_requests_recipient_id', 'swap_requests', ['recipient_id'])
    op.create_index('idx_swap_requests_recipient_created', 'swap_requests',
                    ['recipient_id', 'created_at'])
    op.create_index('idx_swap_requests_requester_created', 'swap_requests',
                    ['requester_id', 'created_at'])

    # At most one open request per slot
    op.create_index('uq_swap_requests_pending_my_slot', 'swap_requests', ['my_slot_id'],
                    unique=True, postgresql_where=sa.text("status = 'PENDING'"))
    op.create_index('uq_swap_requests_pending_their_slot', 'swap_requests', ['their_slot_id'],
                    unique=True, postgresql_where=sa.text("status = 'PENDING'"))


def downgrade() -> None:
    op.drop_index('uq_swap_requests_pending_their_slot', table_name='swap_requests')
    op.drop_index('uq_swap_requests_pending_my_slot', table_name='swap_requests')
    op.drop_index('idx_swap_requests_requester_created', table_name='swap_requests')
    op.drop_index('idx_swap_requests_recipient_created', table_name='swap_requests')
    op.drop_index('ix_swap_requests_recipient_id', table_name='swap_requests')
    op.drop_index('ix_swap_requests_requester_id', table_name='swap_requests')
    op.drop_index('ix_swap_requests_status', table_name='swap_requests')
    op.drop_table('swap_requests')

    op.drop_index('idx_events_status_start_time', table_name='events')
    op.drop_index('ix_events_status', table_name='events')
    op.drop_index('ix_events_start_time', table_name='events')
    op.drop_index('ix_events_owner_id', table_name='events')
    op.drop_table('events')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    op.execute('DROP TYPE IF EXISTS swap_request_status')
    op.execute('DROP TYPE IF EXISTS event_status')
