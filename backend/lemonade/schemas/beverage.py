"""
Lemonade Backend: Catalog & Price Matrix Schemas
=================================================

What:  Pydantic models for beverage types, sizes and price links.

Request models only check shape (types, UUID format, unknown fields). Value
rules (non-empty names, non-negative prices with two decimals) are enforced by
the services, so Python callers and HTTP callers get the same errors.
"""

import uuid
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from lemonade.schemas.common import Money


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class BeverageCreate(BaseModel):
    """Body for POST /beverage/types and POST /beverage/sizes."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(description="Unique display name", examples=["Classic Lemonade"])


class BeverageUpdate(BaseModel):
    """Body for PATCH on a type or size. Omitted fields are left unchanged."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, description="New display name")


class PriceLinkCreate(BaseModel):
    """Body for POST /beverage/price-links."""
    model_config = ConfigDict(extra="forbid")

    beverage_type_id: uuid.UUID = Field(description="UUID of the beverage type")
    beverage_size_id: uuid.UUID = Field(description="UUID of the beverage size")
    price: Decimal = Field(description="Price for this type & size combination", examples=["2.50"])


class PriceLinkUpdate(BaseModel):
    """Body for PATCH /beverage/price-links/{id}. Only supplied fields are applied."""
    model_config = ConfigDict(extra="forbid")

    beverage_type_id: Optional[uuid.UUID] = None
    beverage_size_id: Optional[uuid.UUID] = None
    price: Optional[Decimal] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class BeverageRef(BaseModel):
    """Compact type/size reference embedded in price links and order items."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class PriceLinkSummary(BaseModel):
    """A price link as listed under its beverage type or size."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    beverage_type_id: uuid.UUID
    beverage_size_id: uuid.UUID
    price: Money


class BeverageResponse(BaseModel):
    """A beverage type or size with every price link that references it."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID = Field(description="Unique identifier (UUID)")
    name: str = Field(description="Display name")
    price_links: List[PriceLinkSummary] = Field(default_factory=list)


class PriceLinkResponse(BaseModel):
    """A price link with its beverage type and size resolved."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    beverage_type: BeverageRef
    beverage_size: BeverageRef
    price: Money
