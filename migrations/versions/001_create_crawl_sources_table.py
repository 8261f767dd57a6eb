"""create crawl_sources table

Adds the crawl_sources table: one row per site the pipeline can crawl,
with its extraction category, priority, optional page-limit hint and the
time of the last crawl attempt.

See also: booth_ingest/entities/crawl_source.py (CrawlSource entity)

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'crawl_sources',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('source_url', sa.String(length=2048), nullable=False),
        sa.Column('extractor_type', sa.String(length=100), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('page_limit', sa.Integer(), nullable=True),
        sa.Column('last_attempted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index(op.f('ix_crawl_sources_enabled'), 'crawl_sources', ['enabled'])


def downgrade() -> None:
    op.drop_index(op.f('ix_crawl_sources_enabled'), table_name='crawl_sources')
    op.drop_table('crawl_sources')
