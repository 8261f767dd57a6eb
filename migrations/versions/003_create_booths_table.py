"""create booths table

Adds the booths table: one row per deduplicated photo booth. identity_key
(lower-cased ``name|city``) is indexed but not unique; imported legacy data
already contains same-key duplicates and the upsert merges into the most
complete of them.

See also: booth_ingest/entities/booth.py (Booth entity)

Revision ID: 003
Revises: 002
Create Date: 2026-10-18 00:02:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '003'
down_revision = '002'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'booths',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('identity_key', sa.String(length=512), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=512), nullable=True),
        sa.Column('city', sa.String(length=255), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('machine_type', sa.String(length=100), nullable=True),
        sa.Column('machine_model', sa.String(length=100), nullable=True),
        sa.Column('cost', sa.String(length=100), nullable=True),
        sa.Column('hours', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('website', sa.String(length=2048), nullable=True),
        sa.Column('photo_url', sa.String(length=2048), nullable=True),
        sa.Column('source_names', sa.JSON(), nullable=False),
        sa.Column('source_urls', sa.JSON(), nullable=False),
        sa.Column('provenance_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )
    op.create_index(op.f('ix_booths_identity_key'), 'booths', ['identity_key'])
    op.create_index(op.f('ix_booths_city'), 'booths', ['city'])


def downgrade() -> None:
    op.drop_index(op.f('ix_booths_city'), table_name='booths')
    op.drop_index(op.f('ix_booths_identity_key'), table_name='booths')
    op.drop_table('booths')
