"""Create catalog, price link and order tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates beverage_types, beverage_sizes, price_links, orders and
       order_items with their uniqueness, check and foreign key rules.

Referential rules:
    price_links → beverage_types / beverage_sizes   ON DELETE CASCADE
    order_items → orders                            ON DELETE CASCADE
    order_items → beverage_types / beverage_sizes   ON DELETE RESTRICT

Rollback: downgrade() drops all five tables (all data lost).
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
    # ── Catalog ───────────────────────────────────────────────────────────
    for table in ("beverage_types", "beverage_sizes"):
        op.create_table(
            table,
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("name", sa.String(100), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name", name=f"uq_{table}_name"),
        )

    # ── Price matrix ──────────────────────────────────────────────────────
    op.create_table(
        "price_links",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("beverage_type_id", sa.Uuid(), nullable=False),
        sa.Column("beverage_size_id", sa.Uuid(), nullable=False),
        sa.Column("price", sa.Numeric(7, 2), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["beverage_type_id"], ["beverage_types.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["beverage_size_id"], ["beverage_sizes.id"], ondelete="CASCADE"
        ),
        sa.UniqueConstraint(
            "beverage_type_id", "beverage_size_id", name="uq_price_links_type_size"
        ),
        sa.CheckConstraint("price >= 0", name="ck_price_links_price_non_negative"),
    )
    op.create_index("idx_price_links_size", "price_links", ["beverage_size_id"])

    # ── Orders ────────────────────────────────────────────────────────────
    op.create_table(
        "orders",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("customer_name", sa.String(200), nullable=False),
        sa.Column(
            "customer_contact",
            sa.String(200),
            nullable=False,
            comment="Phone number or email, format unconstrained",
        ),
        sa.Column(
            "confirmation_number",
            sa.String(128),
            nullable=False,
            comment="Customer-facing token, generated server-side",
        ),
        sa.Column("total_price", sa.Numeric(9, 2), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("confirmation_number", name="uq_orders_confirmation_number"),
    )
    op.create_index("idx_orders_created_at", "orders", ["created_at"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("order_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("beverage_type_id", sa.Uuid(), nullable=False),
        sa.Column("beverage_size_id", sa.Uuid(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column(
            "unit_price",
            sa.Numeric(7, 2),
            nullable=False,
            comment="Price of one unit, copied from price_links at order time",
        ),
        sa.Column(
            "line_total",
            sa.Numeric(9, 2),
            nullable=False,
            comment="unit_price * quantity, stored, never recomputed",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["beverage_type_id"], ["beverage_types.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["beverage_size_id"], ["beverage_sizes.id"], ondelete="RESTRICT"
        ),
        sa.CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
    )
    op.create_index(
        "idx_order_items_order", "order_items", ["order_id", "position"], unique=True
    )
    op.create_index("idx_order_items_type", "order_items", ["beverage_type_id"])
    op.create_index("idx_order_items_size", "order_items", ["beverage_size_id"])


def downgrade() -> None:
    op.drop_index("idx_order_items_size", table_name="order_items")
    op.drop_index("idx_order_items_type", table_name="order_items")
    op.drop_index("idx_order_items_order", table_name="order_items")
    op.drop_table("order_items")
    op.drop_index("idx_orders_created_at", table_name="orders")
    op.drop_table("orders")
    op.drop_index("idx_price_links_size", table_name="price_links")
    op.drop_table("price_links")
    op.drop_table("beverage_sizes")
    op.drop_table("beverage_types")
