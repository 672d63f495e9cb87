"""Create jobs, saved filters, filter contexts and favorites

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('external_id', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('organization', sa.String(length=300), nullable=True),
        sa.Column('url', sa.String(length=1000), nullable=True),
        sa.Column('description_text', sa.Text(), nullable=True),
        sa.Column('cities_derived', sa.JSON(none_as_null=True), nullable=True),
        sa.Column('countries_derived', sa.JSON(none_as_null=True), nullable=True),
        sa.Column('employment_type', sa.JSON(none_as_null=True), nullable=True),
        sa.Column('ai_key_skills', sa.JSON(none_as_null=True), nullable=True),
        sa.Column('ai_keywords', sa.JSON(none_as_null=True), nullable=True),
        sa.Column('remote_derived', sa.Boolean(), nullable=True),
        sa.Column('ai_experience_level', sa.String(length=20), nullable=True),
        sa.Column('ai_work_arrangement', sa.String(length=50), nullable=True),
        sa.Column('ai_visa_sponsorship', sa.Boolean(), nullable=True),
        sa.Column('ai_salary_currency', sa.String(length=3), nullable=True),
        sa.Column('ai_salary_minvalue', sa.Float(), nullable=True),
        sa.Column('ai_salary_maxvalue', sa.Float(), nullable=True),
        sa.Column('ai_salary_unittext', sa.String(length=10), nullable=True),
        sa.Column('source', sa.String(length=100), nullable=True),
        sa.Column('linkedin_org_industry', sa.String(length=200), nullable=True),
        sa.Column('first_seen_date', sa.DateTime(), nullable=False),
        sa.Column('last_updated', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('expired_date', sa.DateTime(), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_jobs_external_id', 'jobs', ['external_id'], unique=True)
    op.create_index('ix_jobs_organization', 'jobs', ['organization'])
    op.create_index('ix_jobs_ai_experience_level', 'jobs', ['ai_experience_level'])
    op.create_index('ix_jobs_source', 'jobs', ['source'])
    op.create_index('ix_jobs_first_seen_date', 'jobs', ['first_seen_date'])
    op.create_index('ix_jobs_status', 'jobs', ['status'])

    op.create_table(
        'saved_filters',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('filters', sa.JSON(), nullable=False),
        sa.Column('notifications_enabled', sa.Boolean(), nullable=False),
        sa.Column('last_checked_at', sa.DateTime(), nullable=True),
        sa.Column('badge_count_snapshot', sa.Integer(), nullable=True),
        sa.Column('badge_count_expires_at', sa.DateTime(), nullable=True),
        sa.Column('new_jobs_since', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'name', name='uq_saved_filters_user_name'),
    )
    op.create_index('ix_saved_filters_user_id', 'saved_filters', ['user_id'])

    op.create_table(
        'filter_contexts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('saved_filter_id', sa.Integer(), nullable=False),
        sa.Column('viewing_since', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['saved_filter_id'], ['saved_filters.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_filter_contexts_user_id', 'filter_contexts', ['user_id'], unique=True)
    op.create_index('ix_filter_contexts_expires_at', 'filter_contexts', ['expires_at'])

    op.create_table(
        'favorites',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'job_id', name='uq_favorites_user_job'),
    )
    op.create_index('ix_favorites_user_id', 'favorites', ['user_id'])
    op.create_index('ix_favorites_job_id', 'favorites', ['job_id'])


def downgrade() -> None:
    op.drop_table('favorites')
    op.drop_table('filter_contexts')
    op.drop_table('saved_filters')
    op.drop_table('jobs')
