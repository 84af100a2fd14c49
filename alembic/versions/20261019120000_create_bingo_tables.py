"""create users, progress, progress_logs and proof_submissions

Revision ID: 20261019120000
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from bingo.db.base import utcnow


# revision identifiers, used by Alembic.
revision: str = '20261019120000'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SQUARES = [f"square_{i}" for i in range(1, 15)]

ACTIVE_WHERE = sa.text("status IN ('pending', 'approved')")


def upgrade() -> None:
    """Create the bingo tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('is_manager', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=utcnow(), nullable=True),
        sa.Column('last_active', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        *[sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.false()) for name in SQUARES],
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_progress_id'), 'progress', ['id'], unique=False)
    op.create_index(op.f('ix_progress_user_id'), 'progress', ['user_id'], unique=True)

    op.create_table(
        'progress_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('square_field', sa.String(length=32), nullable=False),
        sa.Column('action', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=utcnow(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_progress_logs_id'), 'progress_logs', ['id'], unique=False)
    op.create_index('ix_progress_logs_user_created', 'progress_logs', ['user_id', 'created_at', 'id'], unique=False)

    op.create_table(
        'proof_submissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('task_field', sa.String(length=32), nullable=False),
        sa.Column('task_label', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('receipt_number', sa.String(length=64), nullable=True),
        sa.Column('image_url', sa.String(length=512), nullable=False),
        sa.Column('image_path', sa.String(length=512), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('reviewed_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=utcnow(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_proof_submissions_id'), 'proof_submissions', ['id'], unique=False)
    op.create_index(op.f('ix_proof_submissions_user_id'), 'proof_submissions', ['user_id'], unique=False)
    op.create_index(op.f('ix_proof_submissions_status'), 'proof_submissions', ['status'], unique=False)
    op.create_index(
        'uq_active_submission',
        'proof_submissions',
        ['user_id', 'task_field'],
        unique=True,
        sqlite_where=ACTIVE_WHERE,
        postgresql_where=ACTIVE_WHERE,
    )


def downgrade() -> None:
    """Drop the bingo tables."""
    op.drop_index('uq_active_submission', table_name='proof_submissions')
    op.drop_index(op.f('ix_proof_submissions_status'), table_name='proof_submissions')
    op.drop_index(op.f('ix_proof_submissions_user_id'), table_name='proof_submissions')
    op.drop_index(op.f('ix_proof_submissions_id'), table_name='proof_submissions')
    op.drop_table('proof_submissions')

    op.drop_index('ix_progress_logs_user_created', table_name='progress_logs')
    op.drop_index(op.f('ix_progress_logs_id'), table_name='progress_logs')
    op.drop_table('progress_logs')

    op.drop_index(op.f('ix_progress_user_id'), table_name='progress')
    op.drop_index(op.f('ix_progress_id'), table_name='progress')
    op.drop_table('progress')

    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')
