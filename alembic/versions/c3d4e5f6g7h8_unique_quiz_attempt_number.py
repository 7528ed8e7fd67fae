"""unique attempt number per profile on quiz_attempts

Revision ID: c3d4e5f6g7h8
Revises: b2c3d4e5f6g7
Create Date: 2026-10-20 11:30:00.000000

"""
from typing import Sequence, Union
from alembic import op

# revision identifiers, used by Alembic.
revision: str = 'c3d4e5f6g7h8'
down_revision: Union[str, None] = 'b2c3d4e5f6g7'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Concurrent submissions both computed max + 1; the second insert must fail instead
    with op.batch_alter_table('quiz_attempts') as batch_op:
        batch_op.create_unique_constraint('uq_quiz_attempts_profile_number', ['profile_id', 'attempt_number'])


def downgrade() -> None:
    with op.batch_alter_table('quiz_attempts') as batch_op:
        batch_op.drop_constraint('uq_quiz_attempts_profile_number', type_='unique')
