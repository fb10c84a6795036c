"""002: create orders table

Revision ID: 002
Revises: 001
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  VARCHAR(64)     PRIMARY KEY,
            reference           VARCHAR(32)     NOT NULL,
            pixel_ids           INTEGER[]       NOT NULL,
            amount              INT             NOT NULL,
            status              VARCHAR(16)     NOT NULL DEFAULT 'pending',
            appearance_mode     VARCHAR(16)     NOT NULL,
            color               VARCHAR(16),
            link                TEXT,
            individual_data     JSONB,
            payment_proof_url   TEXT,
            payment_note        TEXT,
            expires_at          TIMESTAMPTZ     NOT NULL,
            paid_at             TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_orders_reference        UNIQUE (reference),
            CONSTRAINT ck_orders_pixels_nonempty  CHECK (cardinality(pixel_ids) > 0),
            CONSTRAINT ck_orders_amount           CHECK (amount = cardinality(pixel_ids)),
            CONSTRAINT ck_orders_status           CHECK (status IN ('pending', 'paid', 'expired')),
            CONSTRAINT ck_orders_mode             CHECK (appearance_mode IN ('uniform', 'individual')),
            CONSTRAINT ck_orders_mode_payload     CHECK (
                (appearance_mode = 'uniform' AND individual_data IS NULL) OR
                (appearance_mode = 'individual' AND individual_data IS NOT NULL
                    AND color IS NULL AND link IS NULL)
            ),
            CONSTRAINT ck_orders_paid_at          CHECK ((status = 'paid') = (paid_at IS NOT NULL))
        );
    """)
    op.execute("""
        CREATE INDEX idx_orders_pending_expiry
        ON orders (expires_at)
        WHERE status = 'pending';
    """)
    op.execute("CREATE INDEX idx_orders_created ON orders (created_at DESC, id DESC);")
    op.execute("""
        CREATE INDEX idx_orders_paid_recent
        ON orders (paid_at DESC)
        WHERE status = 'paid';
    """)
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
