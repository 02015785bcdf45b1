"""
Lemonade Backend: Services Layer
=================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Each service is an explicitly constructed object holding a session
       factory; every public method is one unit of work. Services are wired
       together by `build_services()`, never through module-level singletons.

Service Inventory:
    - BeverageTypeStore / BeverageSizeStore: catalog CRUD, name uniqueness,
      cascade to price links, restrict on ordered items
    - PriceMatrix: price link CRUD, pair uniqueness, lookup for orders
    - OrderProcessor: atomic order placement with price snapshots
    - ConfirmationNumberGenerator: customer-facing order tokens
"""

from lemonade.services.catalog_service import BeverageSizeStore, BeverageTypeStore, CatalogStore
from lemonade.services.confirmation import ConfirmationNumberGenerator
from lemonade.services.container import Services, build_services
from lemonade.services.order_service import OrderProcessor
from lemonade.services.price_matrix import PriceMatrix

__all__ = [
    "BeverageSizeStore",
    "BeverageTypeStore",
    "CatalogStore",
    "ConfirmationNumberGenerator",
    "OrderProcessor",
    "PriceMatrix",
    "Services",
    "build_services",
]
