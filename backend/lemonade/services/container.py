"""
Lemonade Backend: Service Container
====================================

What:  Builds the core components against one session factory and wires them
       into each other explicitly.
Who:   The application factory (stores the result on `app.state.services`),
       the test fixtures, and any script that wants the core without HTTP.

Wiring:
    BeverageTypeStore ─┐
                       ├──▶ PriceMatrix ──▶ OrderProcessor ◀── ConfirmationNumberGenerator
    BeverageSizeStore ─┘
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lemonade.config import settings
from lemonade.services.catalog_service import BeverageSizeStore, BeverageTypeStore
from lemonade.services.confirmation import ConfirmationNumberGenerator
from lemonade.services.order_service import OrderProcessor
from lemonade.services.price_matrix import PriceMatrix


@dataclass(frozen=True)
class Services:
    types: BeverageTypeStore
    sizes: BeverageSizeStore
    price_matrix: PriceMatrix
    orders: OrderProcessor


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    confirmation_numbers: Optional[ConfirmationNumberGenerator] = None,
) -> Services:
    """
    Construct every core component.

    Args:
        session_factory: Shared by all components; each call opens its own session
        confirmation_numbers: Token source (defaults to one sized by
                              settings.confirmation_token_bytes)
    """
    if confirmation_numbers is None:
        confirmation_numbers = ConfirmationNumberGenerator(settings.confirmation_token_bytes)

    types = BeverageTypeStore(session_factory)
    sizes = BeverageSizeStore(session_factory)
    price_matrix = PriceMatrix(session_factory, types=types, sizes=sizes)
    orders = OrderProcessor(
        session_factory,
        price_matrix=price_matrix,
        confirmation_numbers=confirmation_numbers,
    )
    return Services(types=types, sizes=sizes, price_matrix=price_matrix, orders=orders)
