"""Report download audit ledger."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261018_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "report_downloads",
        sa.Column("seq", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(length=36), nullable=False, unique=True),
        sa.Column("report_id", sa.String(length=50), nullable=False),
        sa.Column("report_name", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("parameters", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("downloaded_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_report_downloads_user_downloaded", "report_downloads", ["user_id", "downloaded_at"])


def downgrade() -> None:
    op.drop_index("ix_report_downloads_user_downloaded", table_name="report_downloads")
    op.drop_table("report_downloads")
