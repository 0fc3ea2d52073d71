"""Create plant_log view (latest trees row per scientific name)

Revision ID: 003
Revises: 002
Create Date: 2026-01-02 21:00:00.000000

"""
from typing import Sequence, Union
from alembic import op

from app.models.views import PLANT_LOG_VIEW

# revision identifiers, used by Alembic.
revision: str = '003'
down_revision: Union[str, None] = '002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PLANT_LOG_POLICY = "Allow public read access to plant_log"


def upgrade() -> None:
    op.execute(PLANT_LOG_VIEW)

    # The view reads through trees' RLS
    op.execute(f"""
        DO $$
        BEGIN
          IF EXISTS (SELECT 1 FROM pg_roles WHERE rolname = 'anon') THEN
            CREATE POLICY "{PLANT_LOG_POLICY}"
              ON trees FOR SELECT TO anon USING (true);
          END IF;
        END
        $$;
    """)


def downgrade() -> None:
    op.execute(f'DROP POLICY IF EXISTS "{PLANT_LOG_POLICY}" ON trees')
    op.execute("DROP VIEW IF EXISTS plant_log")
