"""001: create documents table

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE documents (
            collection      VARCHAR(64)     NOT NULL,
            id              VARCHAR(64)     NOT NULL,
            fields          JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_documents PRIMARY KEY (collection, id),
            CONSTRAINT ck_documents_fields_object CHECK (jsonb_typeof(fields) = 'object')
        );
    """)
    # jsonb_path_ops covers the @> containment used by array_contains filters
    op.execute(
        "CREATE INDEX idx_documents_fields ON documents USING GIN (fields jsonb_path_ops);"
    )
    op.execute("""
        CREATE INDEX idx_documents_offers_listed ON documents ((fields ->> 'status'))
        WHERE collection = 'offers';
    """)
    op.execute("""
        CREATE INDEX idx_documents_notifications_user ON documents ((fields ->> 'user_id'))
        WHERE collection = 'notifications';
    """)
    op.execute("""
        CREATE TRIGGER trg_documents_updated_at
            BEFORE UPDATE ON documents
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE documents IS 'Marketplace documents keyed by (collection, id)';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS documents CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
