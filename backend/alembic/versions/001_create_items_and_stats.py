"""Create items and stats tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `items` catalog table and the single-row `stats` table,
       and seeds the visit counter row (id=1, visits=0).
Rollback: downgrade() drops both tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "image_url",
            sa.Text(),
            nullable=False,
            comment="Public URL of the item image",
        ),
        sa.Column(
            "image_path",
            sa.String(1024),
            nullable=True,
            comment="Blob path inside the bucket; NULL for rows created before it was stored",
        ),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # GET /items orders by created_at DESC
    op.create_index(
        "idx_items_created_at",
        "items",
        [sa.text("created_at DESC")],
    )

    stats = op.create_table(
        "stats",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("visits", sa.Integer(), server_default=sa.text("0"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    # The visit counter never creates its row
    op.bulk_insert(stats, [{"id": 1, "visits": 0}])


def downgrade() -> None:
    op.drop_table("stats")
    op.drop_index("idx_items_created_at", table_name="items")
    op.drop_table("items")
