"""004: seed the 1000x1000 canvas

Revision ID: 004
Revises: 003
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Every pixel exists from the start; status changes never insert or delete rows
    op.execute("""
        INSERT INTO pixels (pixel_id, status)
        SELECT g, 'free' FROM generate_series(0, 999999) AS g;
    """)


def downgrade() -> None:
    op.execute("DELETE FROM pixels;")
