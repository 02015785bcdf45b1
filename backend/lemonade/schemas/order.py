"""
Lemonade Backend: Order Schemas
================================

What:  Request and response models for placing and reading orders.

Response amounts (`unit_price`, `line_total`, `total_price`) are the values
stored when the order was placed. They are serialized as two-decimal strings.
"""

import uuid
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from lemonade.schemas.beverage import BeverageRef
from lemonade.schemas.common import Money


class OrderItemCreate(BaseModel):
    """One requested line: beverage type, size and quantity."""
    model_config = ConfigDict(extra="forbid")

    beverage_type_id: uuid.UUID = Field(description="UUID of the beverage type")
    beverage_size_id: uuid.UUID = Field(description="UUID of the beverage size")
    quantity: int = Field(description="Quantity of this beverage to order", examples=[2])


class OrderCreate(BaseModel):
    """Body for POST /orders."""
    model_config = ConfigDict(extra="forbid")

    customer_name: str = Field(examples=["Alice"])
    customer_contact: str = Field(description="Phone number or email", examples=["alice@example.com"])
    items: List[OrderItemCreate]


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    beverage_type: BeverageRef
    beverage_size: BeverageRef
    quantity: int
    unit_price: Money = Field(description="Unit price at the time the order was placed")
    line_total: Money = Field(description="unit_price * quantity")


class OrderResponse(BaseModel):
    """
    A placed order with its items in the order they were requested.

    Returned by POST /orders (201), GET /orders and GET /orders/{id}.
    """
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    customer_name: str
    customer_contact: str
    confirmation_number: str = Field(description="Customer-facing order token")
    total_price: Money = Field(description="Sum of all line totals")
    created_at: datetime
    items: List[OrderItemResponse]
