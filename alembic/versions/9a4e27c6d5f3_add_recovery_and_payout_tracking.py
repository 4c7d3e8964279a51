"""add recovery bookkeeping to paymentintent and paid_out_count to book

Revision ID: 9a4e27c6d5f3
Revises: 3f1c9a7d2b10
Create Date: 2026-09-16 17:41:08.502911

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9a4e27c6d5f3'
down_revision: Union[str, Sequence[str], None] = '3f1c9a7d2b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.add_column("paymentintent", sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"))
    op.add_column("paymentintent", sa.Column("last_error", sa.String(), nullable=True))
    op.add_column("paymentintent", sa.Column("last_checked_at", sa.DateTime(), nullable=True))
    op.add_column("paymentintent", sa.Column("next_check_at", sa.DateTime(), nullable=True))
    op.create_index(
        "ix_paymentintent_next_check_at",
        "paymentintent",
        ["next_check_at"]
    )

    # payouts stop zeroing sales_count
    op.add_column("book", sa.Column("paid_out_count", sa.Integer(), nullable=False, server_default="0"))


def downgrade():
    op.drop_column("book", "paid_out_count")
    op.drop_index("ix_paymentintent_next_check_at", table_name="paymentintent")
    op.drop_column("paymentintent", "next_check_at")
    op.drop_column("paymentintent", "last_checked_at")
    op.drop_column("paymentintent", "last_error")
    op.drop_column("paymentintent", "attempts")
