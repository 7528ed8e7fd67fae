"""initial schema: profiles, doers, activation, training, quiz, projects

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-09-02 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# (name, table, columns, unique); mirrors index=True / unique=True on the models
INDEXES = [
    ('ix_profiles_id', 'profiles', ['id'], False),
    ('ix_profiles_email', 'profiles', ['email'], True),
    ('ix_doers_id', 'doers', ['id'], False),
    ('ix_doers_profile_id', 'doers', ['profile_id'], True),
    ('ix_supervisors_id', 'supervisors', ['id'], False),
    ('ix_supervisors_profile_id', 'supervisors', ['profile_id'], True),
    ('ix_training_modules_id', 'training_modules', ['id'], False),
    ('ix_training_progress_id', 'training_progress', ['id'], False),
    ('ix_training_progress_profile_id', 'training_progress', ['profile_id'], False),
    ('ix_quiz_questions_id', 'quiz_questions', ['id'], False),
    ('ix_quiz_questions_target_role', 'quiz_questions', ['target_role'], False),
    ('ix_quiz_attempts_id', 'quiz_attempts', ['id'], False),
    ('ix_quiz_attempts_profile_id', 'quiz_attempts', ['profile_id'], False),
    ('ix_doer_activation_id', 'doer_activation', ['id'], False),
    ('ix_doer_activation_doer_id', 'doer_activation', ['doer_id'], True),
    ('ix_projects_id', 'projects', ['id'], False),
    ('ix_projects_status', 'projects', ['status'], False),
    ('ix_projects_doer_id', 'projects', ['doer_id'], False),
    ('ix_projects_supervisor_id', 'projects', ['supervisor_id'], False),
    ('ix_project_deliverables_id', 'project_deliverables', ['id'], False),
    ('ix_project_deliverables_project_id', 'project_deliverables', ['project_id'], False),
]


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('role', sa.String(20), server_default='doer', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'doers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('profile_id', sa.Integer(), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('qualification', sa.String(255), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('bank_account_name', sa.String(100), nullable=True),
        sa.Column('bank_account_number', sa.String(18), nullable=True),
        sa.Column('bank_ifsc_code', sa.String(11), nullable=True),
        sa.Column('bank_name', sa.String(255), nullable=True),
        sa.Column('upi_id', sa.String(255), nullable=True),
        sa.Column('is_activated', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('total_earnings', sa.Float(), server_default='0', nullable=False),
        sa.Column('average_rating', sa.Float(), server_default='0', nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'supervisors',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('profile_id', sa.Integer(), sa.ForeignKey('profiles.id'), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'training_modules',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('content_url', sa.String(500), nullable=True),
        sa.Column('sequence_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_mandatory', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'training_progress',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('profile_id', sa.Integer(), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('module_id', sa.Integer(), sa.ForeignKey('training_modules.id'), nullable=False),
        sa.Column('status', sa.String(20), server_default='not_started', nullable=False),
        sa.Column('progress_percentage', sa.Integer(), server_default='0', nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('profile_id', 'module_id', name='uq_training_progress_profile_module'),
    )

    op.create_table(
        'quiz_questions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('target_role', sa.String(20), server_default='doer', nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(20), server_default='single_choice', nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('correct_option_ids', sa.JSON(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('points', sa.Integer(), server_default='1', nullable=False),
        sa.Column('sequence_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'quiz_attempts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('profile_id', sa.Integer(), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('target_role', sa.String(20), server_default='doer', nullable=False),
        sa.Column('attempt_number', sa.Integer(), nullable=False),
        sa.Column('score_percentage', sa.Float(), nullable=False),
        sa.Column('correct_answers', sa.Integer(), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('passing_score', sa.Float(), nullable=False),
        sa.Column('is_passed', sa.Boolean(), nullable=False),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('started_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'doer_activation',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('doer_id', sa.Integer(), sa.ForeignKey('doers.id'), nullable=False),
        sa.Column('training_completed', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('training_completed_at', sa.DateTime(), nullable=True),
        sa.Column('quiz_passed', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('quiz_passed_at', sa.DateTime(), nullable=True),
        sa.Column('quiz_attempt_id', sa.Integer(), sa.ForeignKey('quiz_attempts.id'), nullable=True),
        sa.Column('total_quiz_attempts', sa.Integer(), server_default='0', nullable=False),
        sa.Column('bank_details_added', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('bank_details_added_at', sa.DateTime(), nullable=True),
        sa.Column('is_fully_activated', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('activated_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_number', sa.String(50), nullable=True, unique=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('subject', sa.String(100), nullable=True),
        sa.Column('status', sa.String(30), server_default='paid', nullable=False),
        sa.Column('doer_id', sa.Integer(), sa.ForeignKey('doers.id'), nullable=True),
        sa.Column('supervisor_id', sa.Integer(), sa.ForeignKey('supervisors.id'), nullable=True),
        sa.Column('deadline', sa.DateTime(), nullable=True),
        sa.Column('doer_payout', sa.Float(), server_default='0', nullable=False),
        sa.Column('is_urgent', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('doer_assigned_at', sa.DateTime(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'project_deliverables',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('uploaded_by', sa.Integer(), sa.ForeignKey('doers.id'), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_url', sa.String(1000), nullable=False),
        sa.Column('file_type', sa.String(100), nullable=True),
        sa.Column('file_size_bytes', sa.BigInteger(), nullable=True),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('qc_status', sa.String(20), server_default='pending', nullable=False),
        *_timestamps(),
    )

    for name, table, columns, unique in INDEXES:
        op.create_index(name, table, columns, unique=unique)


def downgrade() -> None:
    for name, table, _, _ in reversed(INDEXES):
        op.drop_index(name, table_name=table)
    op.drop_table('project_deliverables')
    op.drop_table('projects')
    op.drop_table('doer_activation')
    op.drop_table('quiz_attempts')
    op.drop_table('quiz_questions')
    op.drop_table('training_progress')
    op.drop_table('training_modules')
    op.drop_table('supervisors')
    op.drop_table('doers')
    op.drop_table('profiles')
