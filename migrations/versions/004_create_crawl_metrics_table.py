"""create crawl_metrics table

Append-only table with one row per crawl job that reached a terminal
status. Source id and name are copied rather than referenced so metrics
outlive source renames and deletions.

See also: booth_ingest/entities/crawl_metric.py (CrawlMetric entity)

Revision ID: 004
Revises: 003
Create Date: 2026-10-18 00:03:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '004'
down_revision = '003'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'crawl_metrics',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_id', sa.String(length=255), nullable=False),
        sa.Column('source_id', sa.Integer(), nullable=False),
        sa.Column('source_name', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('pages_received', sa.Integer(), nullable=False),
        sa.Column('booths_found', sa.Integer(), nullable=False),
        sa.Column('booths_inserted', sa.Integer(), nullable=False),
        sa.Column('booths_updated', sa.Integer(), nullable=False),
        sa.Column('duration_ms', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_crawl_metrics_job_id'), 'crawl_metrics', ['job_id'])
    op.create_index(op.f('ix_crawl_metrics_source_id'), 'crawl_metrics', ['source_id'])


def downgrade() -> None:
    op.drop_index(op.f('ix_crawl_metrics_source_id'), table_name='crawl_metrics')
    op.drop_index(op.f('ix_crawl_metrics_job_id'), table_name='crawl_metrics')
    op.drop_table('crawl_metrics')
