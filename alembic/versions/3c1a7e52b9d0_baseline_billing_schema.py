"""baseline_billing_schema

Revision ID: 3c1a7e52b9d0
Revises:
Create Date: 2026-10-19 09:12:44.118203

Production-safe migration: only creates tables that do not exist yet.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '3c1a7e52b9d0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def _timestamp(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=nullable)


def upgrade() -> None:
    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('full_name', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('password_hash', sa.String(), nullable=True),
            _timestamp('created_at'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    if not table_exists('subscriptions'):
        op.create_table('subscriptions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('plan_id', sa.String(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('stripe_customer_id', sa.String(), nullable=True),
            sa.Column('stripe_subscription_id', sa.String(), nullable=True),
            sa.Column('current_period_start', sa.DateTime(timezone=True), nullable=True),
            sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=True),
            _timestamp('created_at'),
            _timestamp('updated_at'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id')
        )
        op.create_index(op.f('ix_subscriptions_id'), 'subscriptions', ['id'], unique=False)
        op.create_index(op.f('ix_subscriptions_stripe_subscription_id'), 'subscriptions', ['stripe_subscription_id'], unique=False)

    if not table_exists('jobs'):
        op.create_table('jobs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('department', sa.String(), nullable=True),
            sa.Column('location', sa.String(), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('status', sa.String(), nullable=True),
            _timestamp('created_at'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_jobs_id'), 'jobs', ['id'], unique=False)
        op.create_index(op.f('ix_jobs_user_id'), 'jobs', ['user_id'], unique=False)

    if not table_exists('candidates'):
        op.create_table('candidates',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('full_name', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=True),
            sa.Column('current_position', sa.String(), nullable=True),
            sa.Column('status', sa.String(), nullable=True),
            _timestamp('created_at'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_candidates_id'), 'candidates', ['id'], unique=False)
        op.create_index(op.f('ix_candidates_user_id'), 'candidates', ['user_id'], unique=False)

    if not table_exists('interviews'):
        op.create_table('interviews',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('candidate_id', sa.Integer(), nullable=True),
            sa.Column('job_id', sa.Integer(), nullable=True),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('duration_minutes', sa.Integer(), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('status', sa.String(), nullable=True),
            _timestamp('created_at', nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.ForeignKeyConstraint(['candidate_id'], ['candidates.id'], ),
            sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_interviews_id'), 'interviews', ['id'], unique=False)
        op.create_index(op.f('ix_interviews_user_id'), 'interviews', ['user_id'], unique=False)
        op.create_index('idx_interviews_user_created', 'interviews', ['user_id', 'created_at'], unique=False)

    if not table_exists('team_members'):
        op.create_table('team_members',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('role', sa.String(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('invited_by', sa.Integer(), nullable=True),
            sa.Column('member_user_id', sa.Integer(), nullable=True),
            _timestamp('invited_at'),
            sa.Column('joined_at', sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.ForeignKeyConstraint(['invited_by'], ['users.id'], ),
            sa.ForeignKeyConstraint(['member_user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'email', name='uq_team_members_user_email')
        )
        op.create_index(op.f('ix_team_members_id'), 'team_members', ['id'], unique=False)
        op.create_index(op.f('ix_team_members_user_id'), 'team_members', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_table('team_members')
    op.drop_table('interviews')
    op.drop_table('candidates')
    op.drop_table('jobs')
    op.drop_table('subscriptions')
    op.drop_table('users')
