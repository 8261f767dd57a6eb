"""create crawl_jobs and crawl_pages tables

crawl_jobs holds one row per crawl attempt, keyed by the provider's job id,
with its lifecycle status (pending -> crawling -> processing ->
completed/failed), page and booth counters and timestamps.

crawl_pages buffers page content delivered by webhook callbacks until the
crawl completes and extraction runs. (job_id, url) is unique so a page that
is delivered twice is stored once.

See also: booth_ingest/entities/crawl_job.py, booth_ingest/entities/crawl_page.py

Revision ID: 002
Revises: 001
Create Date: 2026-10-18 00:01:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create crawl_jobs, crawl_pages and their indexes.

    Columns match booth_ingest/entities/crawl_job.py:
    - job_id: identifier assigned by the crawl provider (unique)
    - status: lifecycle state, only ever moved forward
    - page_limit / pages_received: cap and counter for buffered pages
    - booths_found / booths_inserted / booths_updated: extraction results
    - started_at / completed_at / duration_ms: timing
    """
    op.create_table(
        'crawl_jobs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_id', sa.String(length=255), nullable=False),
        sa.Column('source_id', sa.Integer(), nullable=False),
        sa.Column('source_name', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('page_limit', sa.Integer(), nullable=False),
        sa.Column('pages_received', sa.Integer(), nullable=False),
        sa.Column('booths_found', sa.Integer(), nullable=False),
        sa.Column('booths_inserted', sa.Integer(), nullable=False),
        sa.Column('booths_updated', sa.Integer(), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('webhook_url', sa.String(length=2048), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('duration_ms', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['source_id'], ['crawl_sources.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_id'),
    )
    op.create_index(op.f('ix_crawl_jobs_source_id'), 'crawl_jobs', ['source_id'])
    op.create_index(op.f('ix_crawl_jobs_status'), 'crawl_jobs', ['status'])
    op.create_index(op.f('ix_crawl_jobs_created_at'), 'crawl_jobs', ['created_at'])

    op.create_table(
        'crawl_pages',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_id', sa.String(length=255), nullable=False),
        sa.Column('url', sa.String(length=2048), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('content_format', sa.String(length=20), nullable=False),
        sa.Column('received_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['job_id'], ['crawl_jobs.job_id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_id', 'url', name='uq_crawl_pages_job_url'),
    )
    op.create_index(op.f('ix_crawl_pages_job_id'), 'crawl_pages', ['job_id'])


def downgrade() -> None:
    op.drop_index(op.f('ix_crawl_pages_job_id'), table_name='crawl_pages')
    op.drop_table('crawl_pages')
    op.drop_index(op.f('ix_crawl_jobs_created_at'), table_name='crawl_jobs')
    op.drop_index(op.f('ix_crawl_jobs_status'), table_name='crawl_jobs')
    op.drop_index(op.f('ix_crawl_jobs_source_id'), table_name='crawl_jobs')
    op.drop_table('crawl_jobs')
