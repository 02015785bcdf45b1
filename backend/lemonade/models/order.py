"""
Lemonade Backend: Order Models
===============================

What:  ORM models for the `orders` and `order_items` tables.

Lifecycle:
    Orders are written exactly once, together with all of their items, in the
    order processor's single transaction. Nothing in the application updates
    or deletes them afterwards. Prices are copied into the items (snapshot),
    so later catalog edits never change a placed order.

Referential rules:
    order_items.order_id          → orders.id          ON DELETE CASCADE
    order_items.beverage_type_id  → beverage_types.id  ON DELETE RESTRICT
    order_items.beverage_size_id  → beverage_sizes.id  ON DELETE RESTRICT

OrderItem has no relationship attribute back to Order. Items are reached
from their order (`Order.items`) and point back only by `order_id`.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lemonade.database import Base
from lemonade.models.beverage import BeverageSize, BeverageType

CUSTOMER_FIELD_MAX_LENGTH = 200


class OrderItem(Base):
    """One line of an order: what was ordered, how many, and at what price."""

    __tablename__ = "order_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    # 0-based index of the line within the order as it was placed
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    beverage_type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("beverage_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    beverage_size_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("beverage_sizes.id", ondelete="RESTRICT"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(7, 2),
        nullable=False,
        comment="Price of one unit, copied from price_links at order time",
    )
    line_total: Mapped[Decimal] = mapped_column(
        Numeric(9, 2),
        nullable=False,
        comment="unit_price * quantity, stored, never recomputed",
    )

    beverage_type: Mapped[BeverageType] = relationship(BeverageType, lazy="raise")
    beverage_size: Mapped[BeverageSize] = relationship(BeverageSize, lazy="raise")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        Index("idx_order_items_order", "order_id", "position", unique=True),
        Index("idx_order_items_type", "beverage_type_id"),
        Index("idx_order_items_size", "beverage_size_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<OrderItem(id={self.id}, order={self.order_id}, position={self.position}, "
            f"quantity={self.quantity}, line_total={self.line_total})>"
        )


class Order(Base):
    """
    A placed customer order.

    `total_price` always equals the sum of the items' `line_total`; the order
    processor computes both before the single write and never touches them
    again.
    """

    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_name: Mapped[str] = mapped_column(String(CUSTOMER_FIELD_MAX_LENGTH), nullable=False)
    customer_contact: Mapped[str] = mapped_column(
        String(CUSTOMER_FIELD_MAX_LENGTH),
        nullable=False,
        comment="Phone number or email, format unconstrained",
    )
    confirmation_number: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        unique=True,
        comment="Customer-facing token, generated server-side",
    )
    total_price: Mapped[Decimal] = mapped_column(Numeric(9, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    items: Mapped[List[OrderItem]] = relationship(
        OrderItem,
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=OrderItem.position,
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_orders_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, confirmation='{self.confirmation_number}', "
            f"total={self.total_price})>"
        )
