"""
ORM models. Importing this package registers every table on `Base.metadata`.
"""

from lemonade.models.beverage import BeverageSize, BeverageType, PriceLink
from lemonade.models.order import Order, OrderItem

__all__ = [
    "BeverageSize",
    "BeverageType",
    "Order",
    "OrderItem",
    "PriceLink",
]
