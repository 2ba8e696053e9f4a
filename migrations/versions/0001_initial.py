"""initial tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    # statuses and special-date types are stored as plain strings (native_enum=False)
    op.create_table('subjects',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('color', sa.String(32), nullable=False, server_default=''),
    )

    op.create_table('time_slots',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
    )
    op.create_index('ix_time_slots_start', 'time_slots', ['start_time'])

    op.create_table('day_slots',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('time_slot_id', sa.String(64), sa.ForeignKey('time_slots.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day', sa.String(16), nullable=False),
        sa.Column('subject_id', sa.String(64), nullable=True),
        sa.UniqueConstraint('time_slot_id', 'day', name='uq_day_slot_cell'),
    )
    op.create_index('ix_day_slots_day', 'day_slots', ['day'])

    op.create_table('combined_slots',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('day_slot_ids', sa.JSON(), nullable=False),
        sa.Column('subject_id', sa.String(64), nullable=False),
        sa.Column('day', sa.String(16), nullable=False),
    )
    op.create_index('ix_combined_slots_subject_id', 'combined_slots', ['subject_id'])

    op.create_table('attendance_records',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time_slot_id', sa.String(64), nullable=False),
        sa.Column('original_subject_id', sa.String(64), nullable=True),
        sa.Column('actual_subject_id', sa.String(64), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('date', 'time_slot_id', name='uq_attendance_occurrence'),
    )
    op.create_index('ix_attendance_records_date', 'attendance_records', ['date'])

    op.create_table('special_dates',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
    )
    op.create_index('ix_special_dates_date', 'special_dates', ['date'], unique=True)

    op.create_table('extra_classes',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time_slot_id', sa.String(64), nullable=False),
        sa.Column('subject_id', sa.String(64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
    )
    op.create_index('ix_extra_classes_date', 'extra_classes', ['date'])
    op.create_index('ix_extra_classes_subject_id', 'extra_classes', ['subject_id'])

    op.create_table('term_settings',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
    )
    op.create_index('ix_term_settings_is_active', 'term_settings', ['is_active'])

    op.create_table('imported_attendance',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('subject_id', sa.String(64), nullable=False, unique=True),
        sa.Column('import_date', sa.Date(), nullable=False),
        sa.Column('total_lectures', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('attended_lectures', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('missed_lectures', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cancelled_lectures', sa.Integer(), nullable=False, server_default='0'),
    )

def downgrade():
    op.drop_table('imported_attendance')
    op.drop_index('ix_term_settings_is_active', table_name='term_settings')
    op.drop_table('term_settings')
    op.drop_index('ix_extra_classes_subject_id', table_name='extra_classes')
    op.drop_index('ix_extra_classes_date', table_name='extra_classes')
    op.drop_table('extra_classes')
    op.drop_index('ix_special_dates_date', table_name='special_dates')
    op.drop_table('special_dates')
    op.drop_index('ix_attendance_records_date', table_name='attendance_records')
    op.drop_table('attendance_records')
    op.drop_index('ix_combined_slots_subject_id', table_name='combined_slots')
    op.drop_table('combined_slots')
    op.drop_index('ix_day_slots_day', table_name='day_slots')
    op.drop_table('day_slots')
    op.drop_index('ix_time_slots_start', table_name='time_slots')
    op.drop_table('time_slots')
    op.drop_table('subjects')
