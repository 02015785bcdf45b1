"""
Lemonade Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the whole suite.
How:   Every test gets its own SQLite database file (aiosqlite) under pytest's
       tmp_path, with the schema created from the ORM metadata. Services and
       the HTTP client are built against that database, so tests never share
       state and never need a running PostgreSQL.

Fixture Hierarchy (all function-scoped):
    engine ──▶ session_factory ──▶ services ──▶ menu
                       │
                       └──────────▶ test_client (FastAPI app over ASGITransport)
"""

import os
import tempfile
from types import SimpleNamespace
from decimal import Decimal

# Must happen before anything imports lemonade.config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="lemonade_test_"), "unused.db"
)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DB_CREATE_SCHEMA"] = "false"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from lemonade.database import build_engine, build_session_factory, create_schema
from lemonade.services import build_services


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite database with every table created."""
    db_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'lemonade.db'}")
    await create_schema(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def services(session_factory):
    """All core components wired against the per-test database."""
    return build_services(session_factory)


@pytest_asyncio.fixture
async def menu(services):
    """
    A small priced catalog.

        Classic Lemonade / Small = 2.50    Classic Lemonade / Large = 4.00
        Strawberry       / Small = 3.00    (Strawberry / Large has no price)
    """
    lemonade = await services.types.create("Classic Lemonade")
    strawberry = await services.types.create("Strawberry")
    small = await services.sizes.create("Small")
    large = await services.sizes.create("Large")

    lemonade_small = await services.price_matrix.create(lemonade.id, small.id, Decimal("2.50"))
    lemonade_large = await services.price_matrix.create(lemonade.id, large.id, Decimal("4.00"))
    strawberry_small = await services.price_matrix.create(strawberry.id, small.id, "3.00")

    return SimpleNamespace(
        lemonade=lemonade,
        strawberry=strawberry,
        small=small,
        large=large,
        lemonade_small=lemonade_small,
        lemonade_large=lemonade_large,
        strawberry_small=strawberry_small,
    )


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to a FastAPI app bound to the per-test database.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from lemonade.main import create_app

    app = create_app(session_factory)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
