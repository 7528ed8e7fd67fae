"""add composite index for quiz attempt rate-limit window lookups

Revision ID: b2c3d4e5f6g7
Revises: a1b2c3d4e5f6
Create Date: 2026-09-14 16:45:00.000000

"""
from typing import Sequence, Union
from alembic import op

# revision identifiers, used by Alembic.
revision: str = 'b2c3d4e5f6g7'
down_revision: Union[str, None] = 'a1b2c3d4e5f6'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Submissions count attempts per profile inside a rolling window
    op.create_index('idx_quiz_attempts_profile_started', 'quiz_attempts', ['profile_id', 'started_at'])


def downgrade() -> None:
    op.drop_index('idx_quiz_attempts_profile_started', table_name='quiz_attempts')
