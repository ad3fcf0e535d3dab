"""users, workout assignments/logs, set logs, exercise metrics

Revision ID: 5b1e7c9d2a40
Revises:
Create Date: 2026-10-18 10:12:03.114820

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# define the enum type once so we can create/drop it explicitly
user_role = postgresql.ENUM('client', 'coach', 'admin', name='user_role')


# revision identifiers, used by Alembic.
revision: str = '5b1e7c9d2a40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    user_role.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('role', postgresql.ENUM(name='user_role', create_type=False), nullable=False, server_default='client'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'workout_templates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
    )

    op.create_table(
        'workout_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('template_id', sa.Integer(), sa.ForeignKey('workout_templates.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )

    op.create_table(
        'workout_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('workout_assignment_id', sa.Integer(), sa.ForeignKey('workout_assignments.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('session_id', sa.String(length=36), nullable=True, index=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_sets_completed', sa.Integer(), nullable=True),
        sa.Column('total_reps_completed', sa.Integer(), nullable=True),
        sa.Column('total_weight_lifted', sa.Numeric(12, 2), nullable=True),
        sa.Column('total_duration_minutes', sa.Integer(), nullable=True),
    )
    # at most one active log per client + assignment
    op.create_index(
        'uq_workout_logs_active', 'workout_logs', ['client_id', 'workout_assignment_id'],
        unique=True, postgresql_where=sa.text('completed_at IS NULL'),
    )

    op.create_table(
        'workout_set_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('workout_log_id', sa.Integer(), sa.ForeignKey('workout_logs.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('block_id', sa.String(length=64), nullable=False),
        sa.Column('block_type', sa.String(length=32), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('template_exercise_id', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('exercise_id', sa.String(length=64), nullable=True, index=True),
        sa.Column('weight', sa.Float(), nullable=True),
        sa.Column('reps', sa.Integer(), nullable=True),
        sa.Column('set_number', sa.Integer(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=False),
    )

    op.create_table(
        'user_exercise_metrics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('exercise_id', sa.String(length=64), nullable=False),
        sa.Column('estimated_1rm', sa.Float(), nullable=True),
        sa.Column('best_weight', sa.Float(), nullable=True),
        sa.Column('best_reps', sa.Integer(), nullable=True),
        sa.Column('best_volume', sa.Float(), nullable=True),
        sa.Column('best_volume_weight', sa.Float(), nullable=True),
        sa.Column('best_volume_reps', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'exercise_id', name='uq_user_exercise_metrics'),
    )


def downgrade() -> None:
    op.drop_table('user_exercise_metrics')
    op.drop_table('workout_set_logs')
    op.drop_index('uq_workout_logs_active', table_name='workout_logs')
    op.drop_table('workout_logs')
    op.drop_table('workout_assignments')
    op.drop_table('workout_templates')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
    user_role.drop(op.get_bind(), checkfirst=True)
