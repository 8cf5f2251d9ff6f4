"""booking schema

Revision ID: 5b2f0c9d1a47
Revises:
Create Date: 2026-10-19 10:12:44.318207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5b2f0c9d1a47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Tenants
    op.create_table(
        'businesses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('phone_number', sa.String(20), nullable=True),
        sa.Column('timezone', sa.String(50), server_default='UTC'),
        sa.Column('calendar_settings', sa.JSON, nullable=True),
        sa.Column('notification_settings', sa.JSON, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
    )

    # 2. Services, workers and the worker/service link
    op.create_table(
        'services',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('duration', sa.Integer, nullable=False, server_default='30'),
        sa.Column('is_group_service', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('max_capacity', sa.Integer, nullable=True),
        sa.Column('min_capacity', sa.Integer, nullable=True),
        sa.Column('allow_waitlist', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint(
            'is_group_service = false OR (max_capacity IS NOT NULL AND max_capacity > 1)',
            name='check_group_service_capacity',
        ),
    )
    op.create_index('ix_services_business_id', 'services', ['business_id'])
    op.create_index('ix_services_is_active', 'services', ['is_active'])

    op.create_table(
        'workers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('ix_workers_business_id', 'workers', ['business_id'])

    op.create_table(
        'worker_services',
        sa.Column('worker_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('workers.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'customers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('is_blocked', sa.Boolean, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('ix_customers_business_id', 'customers', ['business_id'])

    # 3. Appointments (tenant-local naive times, optimistic version column)
    op.create_table(
        'appointments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('worker_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('workers.id'), nullable=False),
        sa.Column('start', sa.DateTime, nullable=False),
        sa.Column('end', sa.DateTime, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='confirmed'),
        sa.Column('is_group_appointment', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('current_participants', sa.Integer, nullable=False, server_default='1'),
        sa.Column('version', sa.Integer, nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('cancelled_at', sa.DateTime, nullable=True),
        sa.Column('reschedule_status', sa.String(20), nullable=True),
        sa.Column('requested_start', sa.DateTime, nullable=True),
        sa.Column('requested_end', sa.DateTime, nullable=True),
        sa.Column('reschedule_requested_at', sa.DateTime, nullable=True),
        sa.Column('reschedule_rejection_reason', sa.String(500), nullable=True),
        sa.CheckConstraint('"end" > start', name='check_appointment_end_after_start'),
        sa.CheckConstraint('current_participants >= 0', name='check_appointment_participants'),
    )
    op.create_index('idx_appointments_worker_window', 'appointments', ['business_id', 'worker_id', 'start', 'end'])

    # At most one confirmed appointment per worker over any instant
    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
    op.execute(
        'ALTER TABLE appointments ADD CONSTRAINT excl_appointments_worker_overlap '
        'EXCLUDE USING gist (worker_id WITH =, tsrange(start, "end") WITH &&) '
        "WHERE (status = 'confirmed')"
    )

    op.create_table(
        'appointment_participants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('appointment_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='confirmed'),
        sa.Column('joined_at', sa.DateTime, nullable=False),
        sa.UniqueConstraint('appointment_id', 'customer_id', name='uq_appointment_participant'),
    )
    op.create_index('ix_appointment_participants_appointment_id', 'appointment_participants', ['appointment_id'])

    # 4. Reminder queue
    op.create_table(
        'reminder_queue',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('appointment_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('scheduled_for', sa.DateTime, nullable=False),
        sa.Column('channel', sa.String(20), nullable=False),
        sa.Column('days_before', sa.Integer, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('sent_at', sa.DateTime, nullable=True),
        sa.Column('error_message', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('idx_reminder_queue_status_scheduled', 'reminder_queue', ['status', 'scheduled_for'])
    op.create_index('ix_reminder_queue_appointment_id', 'reminder_queue', ['appointment_id'])
    op.create_index('ix_reminder_queue_business_id', 'reminder_queue', ['business_id'])


def downgrade() -> None:
    """Downgrade schema."""

    # Drop tables in reverse order (due to foreign keys)
    op.drop_index('ix_reminder_queue_business_id', 'reminder_queue')
    op.drop_index('ix_reminder_queue_appointment_id', 'reminder_queue')
    op.drop_index('idx_reminder_queue_status_scheduled', 'reminder_queue')
    op.drop_table('reminder_queue')

    op.drop_index('ix_appointment_participants_appointment_id', 'appointment_participants')
    op.drop_table('appointment_participants')

    op.execute('ALTER TABLE appointments DROP CONSTRAINT IF EXISTS excl_appointments_worker_overlap')
    op.drop_index('idx_appointments_worker_window', 'appointments')
    op.drop_table('appointments')

    op.drop_index('ix_customers_business_id', 'customers')
    op.drop_table('customers')
    op.drop_table('worker_services')
    op.drop_index('ix_workers_business_id', 'workers')
    op.drop_table('workers')
    op.drop_index('ix_services_is_active', 'services')
    op.drop_index('ix_services_business_id', 'services')
    op.drop_table('services')
    op.drop_table('businesses')
