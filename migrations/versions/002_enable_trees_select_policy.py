"""Enable row level security on trees with public read

Revision ID: 002
Revises: 001
Create Date: 2026-01-02 20:19:31.000000

"""
from typing import Sequence, Union
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("ALTER TABLE trees ENABLE ROW LEVEL SECURITY")

    # The anon role only exists on Supabase-managed databases
    op.execute("""
        DO $$
        BEGIN
          IF EXISTS (SELECT 1 FROM pg_roles WHERE rolname = 'anon') THEN
            CREATE POLICY "Allow public read access to trees"
              ON trees FOR SELECT TO anon USING (true);
          END IF;
        END
        $$;
    """)


def downgrade() -> None:
    op.execute('DROP POLICY IF EXISTS "Allow public read access to trees" ON trees')
    op.execute("ALTER TABLE trees DISABLE ROW LEVEL SECURITY")
