"""003: backfill purchases.inventory_reconciled

Revision ID: 003
Revises: 002
Create Date: 2026-10-20
"""
from typing import Sequence, Union

from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Purchases written before the flag existed only took stock on completion
    op.execute("""
        UPDATE documents
        SET fields = fields || jsonb_build_object(
            'inventory_reconciled', fields ->> 'status' = 'completed')
        WHERE collection = 'purchases'
          AND NOT fields ? 'inventory_reconciled';
    """)


def downgrade() -> None:
    # The backfilled values are indistinguishable from written ones
    pass
