"""create planning tables

Revision ID: 4b1d2e7f9a10
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4b1d2e7f9a10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=False, server_default='UTC'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_id', 'users', ['id'])

    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('difficulty', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('difficulty BETWEEN 1 AND 5', name='ck_courses_difficulty'),
    )
    op.create_index('ix_courses_id', 'courses', ['id'])

    # status is a plain string: 'todo', 'in-progress' or 'done'
    op.create_table(
        'assessments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('estimated_hours', sa.Float(), nullable=False, server_default='1'),
        sa.Column('status', sa.String(20), nullable=False, server_default='todo'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_assessments_id', 'assessments', ['id'])
    op.create_index('ix_assessments_due_date', 'assessments', ['due_date'])

    op.create_table(
        'availability',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('weekday', sa.Integer(), nullable=False),
        sa.Column('hours_available', sa.Float(), nullable=False, server_default='2'),
        sa.UniqueConstraint('user_id', 'weekday', name='uq_availability_user_weekday'),
        sa.CheckConstraint('weekday BETWEEN 0 AND 6', name='ck_availability_weekday'),
        sa.CheckConstraint('hours_available >= 0', name='ck_availability_hours'),
    )
    op.create_index('ix_availability_id', 'availability', ['id'])

    op.create_table(
        'study_blocks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('assessment_id', sa.Integer(), sa.ForeignKey('assessments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plan_date', sa.Date(), nullable=False),
        sa.Column('title', sa.String(512), nullable=False),
        sa.Column('minutes', sa.Integer(), nullable=False),
        sa.Column('done', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_study_blocks_id', 'study_blocks', ['id'])
    op.create_index('ix_study_blocks_plan_date', 'study_blocks', ['plan_date'])

    op.create_table(
        'plan_summaries',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('shortfall_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('generated_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('plan_summaries')
    op.drop_index('ix_study_blocks_plan_date', table_name='study_blocks')
    op.drop_index('ix_study_blocks_id', table_name='study_blocks')
    op.drop_table('study_blocks')
    op.drop_index('ix_availability_id', table_name='availability')
    op.drop_table('availability')
    op.drop_index('ix_assessments_due_date', table_name='assessments')
    op.drop_index('ix_assessments_id', table_name='assessments')
    op.drop_table('assessments')
    op.drop_index('ix_courses_id', table_name='courses')
    op.drop_table('courses')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
