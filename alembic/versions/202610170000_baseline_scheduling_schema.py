"""Baseline scheduling schema

Revision ID: 202610170000
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '202610170000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'specialists',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'services',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'patients',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_patients_email', 'patients', ['email'], unique=True)

    op.create_table(
        'specialist_schedules',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('specialist_id', sa.String(36), sa.ForeignKey('specialists.id'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('lunch_start', sa.Time(), nullable=True),
        sa.Column('lunch_end', sa.Time(), nullable=True),
        sa.Column('allowed_services', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index(
        'idx_specialist_schedules_specialist_day', 'specialist_schedules', ['specialist_id', 'day_of_week']
    )

    op.create_table(
        'schedule_exceptions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('specialist_id', sa.String(36), sa.ForeignKey('specialists.id'), nullable=False),
        sa.Column('exception_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('lunch_start', sa.Time(), nullable=True),
        sa.Column('lunch_end', sa.Time(), nullable=True),
        sa.Column('allowed_services', sa.JSON(), nullable=True),
        sa.Column('reason', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index(
        'idx_schedule_exceptions_specialist_date', 'schedule_exceptions', ['specialist_id', 'exception_date']
    )

    op.create_table(
        'closures',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('specialist_id', sa.String(36), sa.ForeignKey('specialists.id'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.String(500), nullable=True),
        sa.Column('closure_type', sa.String(20), nullable=False, server_default='vacation'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint('end_date >= start_date', name='ck_closures_date_range'),
    )
    op.create_index(
        'idx_closures_specialist_range', 'closures', ['specialist_id', 'start_date', 'end_date']
    )

    op.create_table(
        'appointments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('specialist_id', sa.String(36), sa.ForeignKey('specialists.id'), nullable=False),
        sa.Column('service_id', sa.String(36), sa.ForeignKey('services.id'), nullable=True),
        sa.Column('patient_id', sa.String(36), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('appointment_time', sa.Time(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='scheduled'),
        sa.Column('notes', sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        'idx_appointments_specialist_date', 'appointments', ['specialist_id', 'appointment_date']
    )
    # Double-booking guard: one live appointment per specialist, date and start time
    op.create_index(
        'uq_appointments_active_slot',
        'appointments',
        ['specialist_id', 'appointment_date', 'appointment_time'],
        unique=True,
        postgresql_where=sa.text("status != 'cancelled'"),
        sqlite_where=sa.text("status != 'cancelled'"),
    )


def downgrade() -> None:
    op.drop_index('uq_appointments_active_slot', table_name='appointments')
    op.drop_index('idx_appointments_specialist_date', table_name='appointments')
    op.drop_table('appointments')
    op.drop_index('idx_closures_specialist_range', table_name='closures')
    op.drop_table('closures')
    op.drop_index('idx_schedule_exceptions_specialist_date', table_name='schedule_exceptions')
    op.drop_table('schedule_exceptions')
    op.drop_index('idx_specialist_schedules_specialist_day', table_name='specialist_schedules')
    op.drop_table('specialist_schedules')
    op.drop_index('idx_patients_email', table_name='patients')
    op.drop_table('patients')
    op.drop_table('services')
    op.drop_table('specialists')
