"""Initial schema: clearance requests, steps, history

Revision ID: 0001
Revises:
Create Date: 2026-09-14

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create clearance_requests table
    op.create_table(
        'clearance_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.String(64), nullable=False),
        sa.Column('student_name', sa.String(255), nullable=False),
        sa.Column('student_department', sa.String(255), nullable=True),
        sa.Column('student_roll_no', sa.String(64), nullable=True),
        sa.Column('submission_date', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    # One request per student
    op.create_index('ix_clearance_requests_student_id', 'clearance_requests', ['student_id'], unique=True)
    op.create_index('ix_clearance_requests_student_department', 'clearance_requests', ['student_department'])
    op.create_index('ix_clearance_requests_submission_date', 'clearance_requests', ['submission_date'])

    # Create clearance_steps table
    op.create_table(
        'clearance_steps',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('request_id', sa.Uuid(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(50), nullable=False),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('department', sa.String(255), nullable=False),
        sa.Column('approver_role', sa.String(50), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('approver_id', sa.String(64), nullable=True),
        sa.Column('approver_name', sa.String(255), nullable=True),
        sa.Column('approval_date', sa.DateTime(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['request_id'], ['clearance_requests.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('request_id', 'key', name='uq_clearance_steps_request_key')
    )
    op.create_index('ix_clearance_steps_request_id', 'clearance_steps', ['request_id'])
    op.create_index('ix_clearance_steps_department', 'clearance_steps', ['department'])
    op.create_index('ix_clearance_steps_approver_role', 'clearance_steps', ['approver_role'])
    op.create_index('ix_clearance_steps_status', 'clearance_steps', ['status'])

    # Create clearance_history table
    op.create_table(
        'clearance_history',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('request_id', sa.Uuid(), nullable=False),
        sa.Column('step_id', sa.Uuid(), nullable=False),
        sa.Column('from_status', sa.String(20), nullable=False),
        sa.Column('to_status', sa.String(20), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=True),
        sa.Column('user_name', sa.String(255), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['request_id'], ['clearance_requests.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['step_id'], ['clearance_steps.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_clearance_history_request_id', 'clearance_history', ['request_id'])
    op.create_index('ix_clearance_history_created_at', 'clearance_history', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_clearance_history_created_at', table_name='clearance_history')
    op.drop_index('ix_clearance_history_request_id', table_name='clearance_history')
    op.drop_table('clearance_history')

    op.drop_index('ix_clearance_steps_status', table_name='clearance_steps')
    op.drop_index('ix_clearance_steps_approver_role', table_name='clearance_steps')
    op.drop_index('ix_clearance_steps_department', table_name='clearance_steps')
    op.drop_index('ix_clearance_steps_request_id', table_name='clearance_steps')
    op.drop_table('clearance_steps')

    op.drop_index('ix_clearance_requests_submission_date', table_name='clearance_requests')
    op.drop_index('ix_clearance_requests_student_department', table_name='clearance_requests')
    op.drop_index('ix_clearance_requests_student_id', table_name='clearance_requests')
    op.drop_table('clearance_requests')
