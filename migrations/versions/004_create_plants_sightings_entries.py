"""Normalized schema: plants, sightings, tree_entries and species_log view

Revision ID: 004
Revises: 003
Create Date: 2026-01-10 18:30:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from app.models.views import SPECIES_LOG_VIEW

# revision identifiers, used by Alembic.
revision: str = '004'
down_revision: Union[str, None] = '003'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ANON_POLICIES = [
    ("plants", "Allow public read access to plants", "SELECT", "USING (true)"),
    ("sightings", "Allow public read access to sightings", "SELECT", "USING (true)"),
    ("tree_entries", "Allow public read access to tree_entries", "SELECT", "USING (true)"),
    ("tree_entries", "Allow public insert access to tree_entries", "INSERT", "WITH CHECK (true)"),
    ("tree_entries", "Allow public update access to tree_entries", "UPDATE", "USING (true) WITH CHECK (true)"),
]


def upgrade() -> None:
    """Create plants/sightings/tree_entries, the species_log view and RLS policies"""

    # 1. One row per plant key
    op.create_table('plants',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('key', sa.String(255), nullable=False),
        sa.Column('common_name', sa.Text(), nullable=True),
        sa.Column('scientific_name', sa.Text(), nullable=True),
        sa.Column('scientific_name_authorship', sa.Text(), nullable=True),
        sa.Column('common_names', postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column('genus', sa.Text(), nullable=True),
        sa.Column('family', sa.Text(), nullable=True),
        sa.Column('gbif_id', sa.String(64), nullable=True),
        sa.Column('powo_id', sa.String(64), nullable=True),
        sa.Column('iucn_category', sa.String(16), nullable=True),
        sa.Column('reference_images', postgresql.JSONB(), nullable=True),
        sa.Column('plant_details', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),

        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_plants_key', 'plants', ['key'], unique=True)

    # 2. One row per identification event
    op.create_table('sightings',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('plant_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('image_path', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('lat', sa.Float(), nullable=True),
        sa.Column('lng', sa.Float(), nullable=True),
        sa.Column('organ', sa.String(16), nullable=True),
        sa.Column('identified_name', sa.Text(), nullable=True),
        sa.Column('confidence', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),

        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['plant_id'], ['plants.id']),
    )
    op.create_index('ix_sightings_plant_id', 'sightings', ['plant_id'])
    op.create_index('ix_sightings_created_at', 'sightings', ['created_at'])

    # 3. User notes per plant key, created lazily
    op.create_table('tree_entries',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('key', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),

        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tree_entries_key', 'tree_entries', ['key'], unique=True)

    # 4. Log view over the normalized tables
    op.execute(SPECIES_LOG_VIEW)

    # 5. Row level security
    for table in ("plants", "sightings", "tree_entries"):
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")

    for table, name, command, clause in ANON_POLICIES:
        op.execute(f"""
            DO $$
            BEGIN
              IF EXISTS (SELECT 1 FROM pg_roles WHERE rolname = 'anon') THEN
                CREATE POLICY "{name}" ON {table} FOR {command} TO anon {clause};
              END IF;
            END
            $$;
        """)


def downgrade() -> None:
    """Drop the normalized schema"""
    for table, name, _, _ in ANON_POLICIES:
        op.execute(f'DROP POLICY IF EXISTS "{name}" ON {table}')
    op.execute("DROP VIEW IF EXISTS species_log")
    op.drop_table('tree_entries')
    op.drop_table('sightings')
    op.drop_table('plants')
