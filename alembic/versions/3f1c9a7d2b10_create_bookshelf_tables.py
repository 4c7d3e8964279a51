"""create bookshelf tables

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-09-02 10:14:52.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "book",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=False, server_default=""),
        sa.Column("language", sa.String(), nullable=False, server_default=""),
        sa.Column("page_count", sa.String(), nullable=False, server_default="Unknown"),
        sa.Column("cover", sa.String(), nullable=False),
        sa.Column("pdf", sa.String(), nullable=False),
        sa.Column("owner", sa.String(), nullable=False),
        sa.Column("owner_uid", sa.String(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("sales_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_book_owner", "book", ["owner"])
    op.create_index("ix_book_created_at", "book", ["created_at"])

    op.create_table(
        "paymentintent",
        sa.Column("payment_id", sa.String(), primary_key=True),
        sa.Column("book_id", sa.String(), sa.ForeignKey("book.id"), nullable=False),
        sa.Column("buyer_id", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("txid", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_paymentintent_book_id", "paymentintent", ["book_id"])
    op.create_index("ix_paymentintent_buyer_id", "paymentintent", ["buyer_id"])
    op.create_index("ix_paymentintent_status", "paymentintent", ["status"])
    op.create_index("ix_paymentintent_created_at", "paymentintent", ["created_at"])

    op.create_table(
        "purchasegrant",
        sa.Column("buyer_id", sa.String(), primary_key=True),
        sa.Column("book_id", sa.String(), sa.ForeignKey("book.id"), primary_key=True),
        sa.Column("payment_id", sa.String(), nullable=False),
        sa.Column("purchased_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "completionmarker",
        sa.Column("payment_id", sa.String(), primary_key=True),
        sa.Column("book_id", sa.String(), nullable=False),
        sa.Column("buyer_id", sa.String(), nullable=False),
        sa.Column("txid", sa.String(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "bookvote",
        sa.Column("book_id", sa.String(), sa.ForeignKey("book.id"), primary_key=True),
        sa.Column("user_uid", sa.String(), primary_key=True),
        sa.Column("vote", sa.String(), nullable=False),
        sa.Column("voted_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "payoutrequest",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("wallet_address", sa.String(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(), nullable=False, server_default="PI"),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("requested_at", sa.DateTime(), nullable=False),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_payoutrequest_username", "payoutrequest", ["username"])

    op.create_table(
        "creatoraccount",
        sa.Column("username", sa.String(), primary_key=True),
        sa.Column("last_payout_amount", sa.Float(), nullable=True),
        sa.Column("last_payout_at", sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("creatoraccount")
    op.drop_index("ix_payoutrequest_username", table_name="payoutrequest")
    op.drop_table("payoutrequest")
    op.drop_table("bookvote")
    op.drop_table("completionmarker")
    op.drop_table("purchasegrant")
    op.drop_index("ix_paymentintent_created_at", table_name="paymentintent")
    op.drop_index("ix_paymentintent_status", table_name="paymentintent")
    op.drop_index("ix_paymentintent_buyer_id", table_name="paymentintent")
    op.drop_index("ix_paymentintent_book_id", table_name="paymentintent")
    op.drop_table("paymentintent")
    op.drop_index("ix_book_created_at", table_name="book")
    op.drop_index("ix_book_owner", table_name="book")
    op.drop_table("book")
