"""Initial schema: users, items, cart entries and loans

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("daily_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("deposit_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("total_quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("available_quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("total_quantity >= 1", name="ck_items_total_positive"),
        sa.CheckConstraint(
            "available_quantity >= 0 AND available_quantity <= total_quantity",
            name="ck_items_available_in_range",
        ),
        sa.CheckConstraint("daily_price >= 0", name="ck_items_price_non_negative"),
        sa.CheckConstraint("deposit_amount >= 0", name="ck_items_deposit_non_negative"),
    )
    op.create_index("ix_items_owner_id", "items", ["owner_id"], unique=False)
    op.create_index("ix_items_name", "items", ["name"], unique=False)
    op.create_index("ix_items_category", "items", ["category"], unique=False)

    op.create_table(
        "cart_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("borrower_id", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("deposit", sa.Numeric(10, 2), nullable=False, server_default="0"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["borrower_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("borrower_id", "item_id", name="uq_cart_entries_borrower_item"),
    )
    op.create_index("ix_cart_entries_borrower_id", "cart_entries", ["borrower_id"], unique=False)

    op.create_table(
        "loans",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("borrower_id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("actual_return_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("daily_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("rental_fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("deposit_paid", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("deposit_returned", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("extension_requested", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("proposed_end_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"]),
        sa.ForeignKeyConstraint(["borrower_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_loans_item_id", "loans", ["item_id"], unique=False)
    op.create_index("ix_loans_borrower_id", "loans", ["borrower_id"], unique=False)
    op.create_index("ix_loans_owner_id", "loans", ["owner_id"], unique=False)
    op.create_index("ix_loans_status", "loans", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_loans_status", "loans")
    op.drop_index("ix_loans_owner_id", "loans")
    op.drop_index("ix_loans_borrower_id", "loans")
    op.drop_index("ix_loans_item_id", "loans")
    op.drop_table("loans")
    op.drop_index("ix_cart_entries_borrower_id", "cart_entries")
    op.drop_table("cart_entries")
    op.drop_index("ix_items_category", "items")
    op.drop_index("ix_items_name", "items")
    op.drop_index("ix_items_owner_id", "items")
    op.drop_table("items")
    op.drop_index("ix_users_email", "users")
    op.drop_table("users")
