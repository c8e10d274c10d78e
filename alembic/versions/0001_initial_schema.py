"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'departments',
        *_base_columns(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(20), nullable=False, unique=True, index=True),
        sa.Column('icon', sa.String(10), nullable=False, server_default='📚'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    )

    op.create_table(
        'subjects',
        *_base_columns(),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('departments.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('estimated_hours', sa.Integer(), nullable=False, server_default='20'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.UniqueConstraint('department_id', 'code', name='uq_subjects_department_code'),
    )

    op.create_table(
        'resources',
        *_base_columns(),
        sa.Column('subject_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    )

    op.create_table(
        'users',
        *_base_columns(),
        sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('last_activity', sa.DateTime(timezone=True), nullable=True),
        sa.Column('primary_subject_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('subjects.id', ondelete='RESTRICT'), nullable=True, index=True),
        sa.Column('locked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('lock_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('onboarding_complete', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('session_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('aar_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_study_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unlock_requested', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('unlock_requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('session_count >= 0', name='ck_users_session_count'),
        sa.CheckConstraint('aar_count >= 0', name='ck_users_aar_count'),
        sa.CheckConstraint('total_study_minutes >= 0', name='ck_users_total_study_minutes'),
        sa.CheckConstraint(
            '(primary_subject_id IS NULL AND locked_at IS NULL AND lock_expires_at IS NULL)'
            ' OR (primary_subject_id IS NOT NULL AND locked_at IS NOT NULL AND lock_expires_at IS NOT NULL)',
            name='ck_users_lock_fields',
        ),
        sa.CheckConstraint('NOT unlock_requested OR primary_subject_id IS NOT NULL', name='ck_users_unlock_requires_lock'),
    )

    op.create_table(
        'access_codes',
        *_base_columns(),
        sa.Column('code', sa.String(50), nullable=False, unique=True, index=True),
        sa.Column('used', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('used_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sent_to_email', sa.String(255), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'password_resets',
        *_base_columns(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('token', sa.String(128), nullable=False, unique=True, index=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default=sa.text('false')),
    )

    op.create_table(
        'study_sessions',
        *_base_columns(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('subject_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('subjects.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('session_type', sa.String(50), nullable=False, server_default='active_recall'),
        sa.Column('planned_duration', sa.Integer(), nullable=False),
        sa.Column('actual_duration', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
    )
    op.create_index(
        'uq_study_sessions_one_active',
        'study_sessions',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text('NOT is_completed'),
    )

    op.create_table(
        'aar_entries',
        *_base_columns(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('subject_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('subjects.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('what_worked', sa.Text(), nullable=False),
        sa.Column('what_blocked', sa.Text(), nullable=False),
        sa.Column('tomorrow_plan', sa.Text(), nullable=False),
    )

    op.create_table(
        'notifications',
        *_base_columns(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('type', sa.String(50), nullable=False, server_default='general'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('data', sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('aar_entries')
    op.drop_index('uq_study_sessions_one_active', table_name='study_sessions')
    op.drop_table('study_sessions')
    op.drop_table('password_resets')
    op.drop_table('access_codes')
    op.drop_table('users')
    op.drop_table('resources')
    op.drop_table('subjects')
    op.drop_table('departments')
