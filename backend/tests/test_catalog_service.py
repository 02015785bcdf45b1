"""
Lemonade Backend: Catalog Store Tests
======================================

What we test:
    ✅ Create/get/list/update/delete for beverage types and sizes
    ✅ Name validation (empty, whitespace-only, too long)
    ✅ Case-sensitive uniqueness, per kind, also when enforced only by the constraint
    ✅ Delete cascades to price links and is blocked by placed orders
    ✅ Storage failures surface as DatabaseError
"""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import UniqueConstraint

from lemonade.database import build_engine, build_session_factory
from lemonade.exceptions import (
    ConflictError,
    DatabaseError,
    DuplicateNameError,
    NotFoundError,
    ValidationError,
)
from lemonade.models import BeverageSize, BeverageType
from lemonade.services import build_services


class TestCatalogCreate:

    @pytest.mark.asyncio
    async def test_create_and_get(self, services):
        """A created type can be fetched by id with no price links."""
        created = await services.types.create("Classic Lemonade")

        fetched = await services.types.get(created.id)
        assert fetched.id == created.id
        assert fetched.name == "Classic Lemonade"
        assert fetched.price_links == []

    @pytest.mark.asyncio
    async def test_get_accepts_string_id(self, services):
        created = await services.sizes.create("Small")
        fetched = await services.sizes.get(str(created.id))
        assert fetched.id == created.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", "x" * 101, None])
    async def test_invalid_names_rejected(self, services, name):
        with pytest.raises(ValidationError) as exc_info:
            await services.types.create(name)
        assert exc_info.value.field == "name"
        assert await services.types.list() == []

    @pytest.mark.asyncio
    async def test_name_at_max_length_accepted(self, services):
        created = await services.types.create("x" * 100)
        assert len(created.name) == 100

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, services):
        await services.types.create("Classic Lemonade")
        with pytest.raises(DuplicateNameError):
            await services.types.create("Classic Lemonade")
        assert len(await services.types.list()) == 1

    @pytest.mark.asyncio
    async def test_names_compare_case_sensitively(self, services):
        await services.types.create("Lemonade")
        await services.types.create("lemonade")
        assert [t.name for t in await services.types.list()] == ["Lemonade", "lemonade"]

    @pytest.mark.asyncio
    async def test_same_name_allowed_across_kinds(self, services):
        """A type and a size may share a name."""
        await services.types.create("Regular")
        await services.sizes.create("Regular")

    @pytest.mark.asyncio
    async def test_unique_constraint_reported_as_duplicate(self, services):
        """A writer that slips past the pre-check is stopped by the constraint."""
        await services.types.create("Classic Lemonade")
        with patch.object(services.types, "_ensure_unique_name", AsyncMock(return_value=None)):
            with pytest.raises(DuplicateNameError):
                await services.types.create("Classic Lemonade")
        assert len(await services.types.list()) == 1


class TestCatalogReadUpdate:

    @pytest.mark.asyncio
    async def test_get_missing_raises_not_found(self, services):
        with pytest.raises(NotFoundError) as exc_info:
            await services.types.get(uuid.uuid4())
        assert exc_info.value.resource == "beverage type"

    @pytest.mark.asyncio
    async def test_get_malformed_id_raises_validation(self, services):
        with pytest.raises(ValidationError):
            await services.types.get("not-a-uuid")

    @pytest.mark.asyncio
    async def test_list_includes_price_links(self, services, menu):
        types = {t.name: t for t in await services.types.list()}
        assert len(types["Classic Lemonade"].price_links) == 2
        assert [link.price for link in types["Strawberry"].price_links] == [Decimal("3.00")]

        sizes = {s.name: s for s in await services.sizes.list()}
        assert len(sizes["Small"].price_links) == 2
        assert len(sizes["Large"].price_links) == 1

    @pytest.mark.asyncio
    async def test_rename(self, services):
        created = await services.sizes.create("Small")
        updated = await services.sizes.update(created.id, name="Petite")
        assert updated.name == "Petite"
        assert (await services.sizes.get(created.id)).name == "Petite"

    @pytest.mark.asyncio
    async def test_rename_to_own_name_is_allowed(self, services):
        created = await services.sizes.create("Small")
        updated = await services.sizes.update(created.id, name="Small")
        assert updated.name == "Small"

    @pytest.mark.asyncio
    async def test_update_without_fields_is_noop(self, services):
        created = await services.sizes.create("Small")
        assert (await services.sizes.update(created.id)).name == "Small"

    @pytest.mark.asyncio
    async def test_rename_to_taken_name_rejected(self, services):
        await services.sizes.create("Small")
        large = await services.sizes.create("Large")
        with pytest.raises(DuplicateNameError):
            await services.sizes.update(large.id, name="Small")
        assert (await services.sizes.get(large.id)).name == "Large"

    @pytest.mark.asyncio
    async def test_rename_to_empty_rejected(self, services):
        created = await services.sizes.create("Small")
        with pytest.raises(ValidationError):
            await services.sizes.update(created.id, name="")

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, services):
        with pytest.raises(NotFoundError):
            await services.sizes.update(uuid.uuid4(), name="Anything")


class TestCatalogDelete:

    @pytest.mark.asyncio
    async def test_delete(self, services):
        created = await services.types.create("Classic Lemonade")
        await services.types.delete(created.id)
        with pytest.raises(NotFoundError):
            await services.types.get(created.id)

    @pytest.mark.asyncio
    async def test_delete_missing_raises_not_found(self, services):
        with pytest.raises(NotFoundError):
            await services.types.delete(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_delete_type_cascades_to_price_links(self, services, menu):
        await services.types.delete(menu.lemonade.id)

        remaining = await services.price_matrix.list()
        assert [link.id for link in remaining] == [menu.strawberry_small.id]
        with pytest.raises(NotFoundError):
            await services.price_matrix.get(menu.lemonade_small.id)

    @pytest.mark.asyncio
    async def test_delete_size_cascades_to_price_links(self, services, menu):
        await services.sizes.delete(menu.small.id)
        remaining = await services.price_matrix.list()
        assert [link.id for link in remaining] == [menu.lemonade_large.id]

    @pytest.mark.asyncio
    async def test_delete_blocked_while_ordered(self, services, menu):
        """Types and sizes referenced by a placed order cannot be deleted."""
        await services.orders.place_order(
            "Alice", "alice@example.com", [(menu.lemonade.id, menu.small.id, 1)]
        )

        with pytest.raises(ConflictError):
            await services.types.delete(menu.lemonade.id)
        with pytest.raises(ConflictError):
            await services.sizes.delete(menu.small.id)

        # Nothing was removed by the rejected deletes
        assert (await services.types.get(menu.lemonade.id)).name == "Classic Lemonade"
        assert len(await services.price_matrix.list()) == 3

    @pytest.mark.asyncio
    async def test_delete_unreferenced_type_with_orders_elsewhere(self, services, menu):
        await services.orders.place_order(
            "Alice", "alice@example.com", [(menu.lemonade.id, menu.small.id, 1)]
        )
        await services.types.delete(menu.strawberry.id)
        assert [t.name for t in await services.types.list()] == ["Classic Lemonade"]


class TestCatalogSchema:

    @pytest.mark.parametrize("model, constraint", [
        (BeverageType, "uq_beverage_types_name"),
        (BeverageSize, "uq_beverage_sizes_name"),
    ])
    def test_name_constraint_matches_migration(self, model, constraint):
        """The ORM declares the same named constraint that revision 001 creates."""
        names = {c.name for c in model.__table__.constraints if isinstance(c, UniqueConstraint)}
        assert constraint in names


class TestCatalogStorageFailure:

    @pytest.mark.asyncio
    async def test_missing_schema_raises_database_error(self, tmp_path):
        """SQLAlchemy failures are translated, never leaked."""
        engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        try:
            services = build_services(build_session_factory(engine))
            with pytest.raises(DatabaseError) as exc_info:
                await services.types.list()
            assert exc_info.value.context["operation"] == "list beverage types"
        finally:
            await engine.dispose()
