"""create bills and bill_items

Revision ID: 3f2a9c1d7e4b
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "3f2a9c1d7e4b"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Money and quantities are kept as decimal text; created_at as a UTC ISO string.
    op.create_table(
        "bills",
        sa.Column("invoice_number", sa.Text, primary_key=True),
        sa.Column("date", sa.Text, nullable=False),
        sa.Column("date_key", sa.Text, nullable=False),
        sa.Column("customer_name", sa.Text, nullable=False),
        sa.Column("customer_phone", sa.Text, nullable=True),
        sa.Column("total_amount", sa.Text, nullable=False, server_default="0"),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("synced_to_google_drive", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("google_drive_file_id", sa.Text, nullable=True),
    )
    op.create_index("ix_bills_created_at", "bills", ["created_at"])
    op.create_index("ix_bills_date_key", "bills", ["date_key"])
    op.create_index("ix_bills_customer_name", "bills", ["customer_name"])

    op.create_table(
        "bill_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "invoice_number",
            sa.Text,
            sa.ForeignKey("bills.invoice_number", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sno", sa.Integer, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("qty", sa.Text, nullable=False, server_default="0"),
        sa.Column("rate", sa.Text, nullable=False, server_default="0"),
        sa.Column("amount", sa.Text, nullable=False, server_default="0"),
    )
    op.create_index("ix_bill_items_invoice_number", "bill_items", ["invoice_number"])


def downgrade() -> None:
    op.drop_index("ix_bill_items_invoice_number", table_name="bill_items")
    op.drop_table("bill_items")
    op.drop_index("ix_bills_customer_name", table_name="bills")
    op.drop_index("ix_bills_date_key", table_name="bills")
    op.drop_index("ix_bills_created_at", table_name="bills")
    op.drop_table("bills")
