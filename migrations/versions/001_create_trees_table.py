"""Create trees table

Revision ID: 001
Revises: 
Create Date: 2026-01-02 20:19:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """One row per identification event"""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table('trees',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('image_path', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('lat', sa.Float(), nullable=True),
        sa.Column('lng', sa.Float(), nullable=True),
        sa.Column('identified_name', sa.Text(), nullable=True),
        sa.Column('scientific_name', sa.Text(), nullable=True),
        sa.Column('genus', sa.Text(), nullable=True),
        sa.Column('family', sa.Text(), nullable=True),
        sa.Column('common_names', postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column('gbif_id', sa.String(64), nullable=True),
        sa.Column('powo_id', sa.String(64), nullable=True),
        sa.Column('iucn_category', sa.String(16), nullable=True),
        sa.Column('confidence', sa.Float(), nullable=True),
        sa.Column('features', postgresql.ARRAY(sa.Text()), nullable=True),

        sa.PrimaryKeyConstraint('id'),
    )

    op.create_index('trees_created_at_idx', 'trees', [sa.text('created_at DESC')])


def downgrade() -> None:
    op.drop_index('trees_created_at_idx', table_name='trees')
    op.drop_table('trees')
