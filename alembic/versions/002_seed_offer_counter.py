"""002: seed offer number counter

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Continue after the highest offer number already stored (0 on a fresh database)
    op.execute("""
        INSERT INTO documents (collection, id, fields)
        SELECT 'counters', 'offers', jsonb_build_object('value', COALESCE(MAX(
            CASE WHEN fields ->> 'offer_number' ~ '^oid[0-9]+$'
                 THEN SUBSTRING(fields ->> 'offer_number' FROM 4)::BIGINT
            END), 0))
        FROM documents
        WHERE collection = 'offers'
        ON CONFLICT (collection, id) DO NOTHING;
    """)


def downgrade() -> None:
    op.execute("DELETE FROM documents WHERE collection = 'counters' AND id = 'offers';")
