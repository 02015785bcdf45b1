"""
Lemonade Backend: Application Package
======================================

What: Beverage ordering backend. Keeps a catalog of beverage types and sizes,
      a price matrix linking them, and records customer orders as immutable
      snapshots of that matrix at order time.

Layering:

    ┌─────────────────────────────────────┐
    │      Routes + Middleware (HTTP)     │  ← translation only
    ├─────────────────────────────────────┤
    │   Services (catalog, pricing,       │  ← every business rule,
    │   order placement, confirmation)    │    one unit of work per call
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← async engine, session scope
    └─────────────────────────────────────┘

The service layer never imports FastAPI; it can be driven from any async
caller by building a container with `lemonade.services.build_services()`.
"""

__version__ = "1.0.0"
