"""
Lemonade Backend: Catalog & Price Matrix Models
================================================

What:  ORM models for the `beverage_types`, `beverage_sizes` and `price_links`
       tables.
How:   Relationships are plain foreign-key columns plus explicitly loaded
       relationship attributes. Every relationship is `lazy="raise"`: callers
       must ask for what they read with `selectinload()`, so no query ever
       runs implicitly inside an async session.

Table Design:
    - UUID primary keys generated in Python (portable across PostgreSQL and SQLite)
    - name columns carry a UNIQUE constraint; the service layer pre-checks it
      to produce a precise error, the constraint catches concurrent races
    - price_links(beverage_type_id, beverage_size_id) is UNIQUE: one price per pair
    - price_links foreign keys are ON DELETE CASCADE: deleting a type or size
      removes its prices
"""

import uuid
from decimal import Decimal
from typing import List

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lemonade.database import Base

NAME_MAX_LENGTH = 100


class BeverageType(Base):
    """A kind of drink, e.g. "Classic Lemonade"."""

    __tablename__ = "beverage_types"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH),
        nullable=False,
        comment="Display name, unique across beverage types (case-sensitive)",
    )

    # Read-only view of this type's prices. Deletion of links is done
    # explicitly by the catalog store and by the FK cascade.
    price_links: Mapped[List["PriceLink"]] = relationship(
        "PriceLink",
        viewonly=True,
        lazy="raise",
        order_by="PriceLink.id",
    )

    __table_args__ = (
        UniqueConstraint("name", name="uq_beverage_types_name"),
    )

    def __repr__(self) -> str:
        return f"<BeverageType(id={self.id}, name='{self.name}')>"


class BeverageSize(Base):
    """A cup size, e.g. "Medium"."""

    __tablename__ = "beverage_sizes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH),
        nullable=False,
        comment="Display name, unique across beverage sizes (case-sensitive)",
    )

    price_links: Mapped[List["PriceLink"]] = relationship(
        "PriceLink",
        viewonly=True,
        lazy="raise",
        order_by="PriceLink.id",
    )

    __table_args__ = (
        UniqueConstraint("name", name="uq_beverage_sizes_name"),
    )

    def __repr__(self) -> str:
        return f"<BeverageSize(id={self.id}, name='{self.name}')>"


class PriceLink(Base):
    """
    The price of one (beverage type, beverage size) pair.

    Query Patterns:
        - Point lookup during order placement:
          WHERE beverage_type_id = :t AND beverage_size_id = :s
          → served by the uq_price_links_type_size index
        - Cascade/restrict checks by size:
          WHERE beverage_size_id = :s → idx_price_links_size
    """

    __tablename__ = "price_links"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    beverage_type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("beverage_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    beverage_size_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("beverage_sizes.id", ondelete="CASCADE"),
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(7, 2),
        nullable=False,
        comment="Current unit price, two fractional digits",
    )

    beverage_type: Mapped[BeverageType] = relationship(BeverageType, lazy="raise")
    beverage_size: Mapped[BeverageSize] = relationship(BeverageSize, lazy="raise")

    __table_args__ = (
        UniqueConstraint("beverage_type_id", "beverage_size_id", name="uq_price_links_type_size"),
        CheckConstraint("price >= 0", name="ck_price_links_price_non_negative"),
        Index("idx_price_links_size", "beverage_size_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<PriceLink(id={self.id}, type={self.beverage_type_id}, "
            f"size={self.beverage_size_id}, price={self.price})>"
        )
