"""create_batch_jobs_and_reflections

Revision ID: 3f2a9c41d7e0
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c41d7e0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

batch_job_status = sa.Enum(
    'PENDING', 'VALIDATING', 'IN_PROGRESS', 'PROCESSING', 'COMPLETED', 'FAILED', 'CANCELLED',
    name='batchjobstatus',
)


def upgrade() -> None:
    """Create the batch job tracking and reflection tables."""
    op.create_table(
        'batch_jobs',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('job_type', sa.String(), nullable=False),
        sa.Column('week', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('status', batch_job_status, nullable=False),
        sa.Column('external_status', sa.String(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('total_requests', sa.Integer(), nullable=False),
        sa.Column('success_count', sa.Integer(), nullable=True),
        sa.Column('error_count', sa.Integer(), nullable=True),
        sa.Column('errors', sa.JSON(), nullable=True),
        sa.Column('output_file_id', sa.String(), nullable=True),
        sa.Column('error_file_id', sa.String(), nullable=True),
        sa.Column('error_message', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_type', 'week', 'year', name='uq_batch_jobs_logical_key'),
    )
    op.create_index('ix_batch_jobs_job_type', 'batch_jobs', ['job_type'])
    op.create_index('ix_batch_jobs_status', 'batch_jobs', ['status'])
    op.create_index('ix_batch_jobs_submitted_at', 'batch_jobs', ['submitted_at'])

    op.create_table(
        'reflections',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('week', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('completed_todos', sa.JSON(), nullable=True),
        sa.Column('incomplete_count', sa.Integer(), nullable=False),
        sa.Column('notes', sa.JSON(), nullable=True),
        sa.Column('notes_generated_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_reflections_user_id', 'reflections', ['user_id'])


def downgrade() -> None:
    """Drop the batch job tracking and reflection tables."""
    op.drop_index('ix_reflections_user_id', table_name='reflections')
    op.drop_table('reflections')
    op.drop_index('ix_batch_jobs_submitted_at', table_name='batch_jobs')
    op.drop_index('ix_batch_jobs_status', table_name='batch_jobs')
    op.drop_index('ix_batch_jobs_job_type', table_name='batch_jobs')
    op.drop_table('batch_jobs')
    batch_job_status.drop(op.get_bind(), checkfirst=True)
