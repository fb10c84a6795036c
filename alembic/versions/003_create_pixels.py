"""003: create pixels table

Revision ID: 003
Revises: 002
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE pixels (
            pixel_id    INT             PRIMARY KEY,
            status      VARCHAR(16)     NOT NULL DEFAULT 'free',
            color       VARCHAR(16),
            link        TEXT,
            order_id    VARCHAR(64)     REFERENCES orders (id),
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_pixels_id_range   CHECK (pixel_id BETWEEN 0 AND 999999),
            CONSTRAINT ck_pixels_status     CHECK (status IN ('free', 'reserved', 'sold')),
            CONSTRAINT ck_pixels_owner      CHECK ((status = 'free') = (order_id IS NULL)),
            CONSTRAINT ck_pixels_free_blank CHECK (
                status <> 'free' OR (color IS NULL AND link IS NULL)
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_pixels_order
        ON pixels (order_id)
        WHERE order_id IS NOT NULL;
    """)
    op.execute("""
        CREATE INDEX idx_pixels_claimed
        ON pixels (status, pixel_id)
        WHERE status <> 'free';
    """)
    op.execute("""
        CREATE TRIGGER trg_pixels_updated_at
            BEFORE UPDATE ON pixels
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS pixels CASCADE;")
