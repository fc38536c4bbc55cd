"""Create calendar_events and logged_meetings tables

Revision ID: 3e7a1c5b9d20
Revises:
Create Date: 2026-10-19

calendar_events mirrors provider events created through the gateway.
logged_meetings holds manually recorded meetings.
Both tables are soft-deleted through is_active/deleted_at.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3e7a1c5b9d20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('calendar_events',
        sa.Column('external_id', sa.String(length=255), nullable=False),
        sa.Column('provider', sa.String(length=20), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=True),
        sa.Column('lead_id', sa.String(length=64), nullable=True),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('timezone', sa.String(length=100), nullable=True),
        sa.Column('all_day', sa.Boolean(), nullable=False),
        sa.Column('location_type', sa.String(length=50), nullable=True),
        sa.Column('location_details', sa.String(length=500), nullable=True),
        sa.Column('attendees', sa.JSON(), nullable=False),
        sa.Column('organizer', sa.String(length=255), nullable=True),
        sa.Column('organizer_name', sa.String(length=255), nullable=True),
        sa.Column('meeting_link', sa.String(length=1000), nullable=True),
        sa.Column('is_online_meeting', sa.Boolean(), nullable=False),
        sa.Column('online_meeting_provider', sa.String(length=50), nullable=True),
        sa.Column('outcome', sa.String(length=100), nullable=True),
        sa.Column('id', sa.CHAR(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('calendar_events', schema=None) as batch_op:
        batch_op.create_index('idx_calendar_event_external', ['external_id'], unique=False)
        batch_op.create_index('idx_calendar_event_lead', ['lead_id'], unique=False)
        batch_op.create_index('idx_calendar_event_user', ['user_id'], unique=False)
        batch_op.create_index('idx_calendar_event_start', ['start_time'], unique=False)
        batch_op.create_index(batch_op.f('ix_calendar_events_is_active'), ['is_active'], unique=False)

    op.create_table('logged_meetings',
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('meeting_type', sa.String(length=20), nullable=False),
        sa.Column('virtual_provider', sa.String(length=50), nullable=True),
        sa.Column('meeting_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('location', sa.String(length=500), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('outcome', sa.String(length=50), nullable=False),
        sa.Column('participants', sa.JSON(), nullable=False),
        sa.Column('lead_id', sa.String(length=64), nullable=True),
        sa.Column('logged_by', sa.String(length=255), nullable=False),
        sa.Column('organization_id', sa.String(length=64), nullable=False),
        sa.Column('activity_id', sa.String(length=64), nullable=True),
        sa.Column('task_id', sa.String(length=64), nullable=True),
        sa.Column('attachment', sa.String(length=1000), nullable=True),
        sa.Column('meeting_metadata', sa.JSON(), nullable=False),
        sa.Column('id', sa.CHAR(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('logged_meetings', schema=None) as batch_op:
        batch_op.create_index('idx_logged_meeting_lead', ['lead_id'], unique=False)
        batch_op.create_index('idx_logged_meeting_datetime', ['meeting_datetime'], unique=False)
        batch_op.create_index(batch_op.f('ix_logged_meetings_is_active'), ['is_active'], unique=False)


def downgrade() -> None:
    with op.batch_alter_table('logged_meetings', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_logged_meetings_is_active'))
        batch_op.drop_index('idx_logged_meeting_datetime')
        batch_op.drop_index('idx_logged_meeting_lead')
    op.drop_table('logged_meetings')

    with op.batch_alter_table('calendar_events', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_calendar_events_is_active'))
        batch_op.drop_index('idx_calendar_event_start')
        batch_op.drop_index('idx_calendar_event_user')
        batch_op.drop_index('idx_calendar_event_lead')
        batch_op.drop_index('idx_calendar_event_external')
    op.drop_table('calendar_events')
