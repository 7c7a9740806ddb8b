"""Add the submitting account to clearance requests

Revision ID: 0003
Revises: 0002
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0003'
down_revision: Union[str, None] = '0002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table('clearance_requests') as batch_op:
        batch_op.add_column(sa.Column('student_user_id', sa.String(64), nullable=True))
        batch_op.create_index('ix_clearance_requests_student_user_id', ['student_user_id'])

    # Requests filed before this column existed were keyed by the account id
    op.execute("UPDATE clearance_requests SET student_user_id = student_id WHERE student_user_id IS NULL")


def downgrade() -> None:
    with op.batch_alter_table('clearance_requests') as batch_op:
        batch_op.drop_index('ix_clearance_requests_student_user_id')
        batch_op.drop_column('student_user_id')
