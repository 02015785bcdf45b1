"""
Lemonade Backend: Order Processor Tests
========================================

What we test:
    ✅ Pricing: unit_price snapshot, line totals, order total
    ✅ Items come back in the order they were requested
    ✅ Input validation happens before anything is written
    ✅ A missing price link aborts the whole order (nothing persisted)
    ✅ Placed orders ignore later price changes
    ✅ Commit followed by a failed reload raises InternalError
"""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from lemonade.exceptions import InternalError, NotFoundError, ValidationError
from lemonade.models import Order, OrderItem
from lemonade.schemas.order import OrderItemCreate


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model))


class TestPlaceOrder:

    @pytest.mark.asyncio
    async def test_single_item(self, services, menu):
        """2 x Classic Lemonade / Small at 2.50 totals 5.00."""
        order = await services.orders.place_order(
            "Alice", "alice@example.com", [(menu.lemonade.id, menu.small.id, 2)]
        )

        assert order.customer_name == "Alice"
        assert order.customer_contact == "alice@example.com"
        assert order.total_price == Decimal("5.00")
        assert len(order.items) == 1
        item = order.items[0]
        assert item.beverage_type.name == "Classic Lemonade"
        assert item.beverage_size.name == "Small"
        assert item.quantity == 2
        assert item.unit_price == Decimal("2.50")
        assert item.line_total == Decimal("5.00")

    @pytest.mark.asyncio
    async def test_multiple_items_keep_request_order(self, services, menu):
        order = await services.orders.place_order(
            "Bob",
            "+1 555 0100",
            [
                (menu.strawberry.id, menu.small.id, 1),
                (menu.lemonade.id, menu.large.id, 3),
                (menu.lemonade.id, menu.small.id, 1),
            ],
        )

        assert [(i.beverage_type.name, i.beverage_size.name) for i in order.items] == [
            ("Strawberry", "Small"),
            ("Classic Lemonade", "Large"),
            ("Classic Lemonade", "Small"),
        ]
        assert [i.line_total for i in order.items] == [
            Decimal("3.00"), Decimal("12.00"), Decimal("2.50"),
        ]
        assert order.total_price == Decimal("17.50")
        assert order.total_price == sum(i.line_total for i in order.items)

    @pytest.mark.asyncio
    async def test_same_pair_twice_is_two_lines(self, services, menu):
        order = await services.orders.place_order(
            "Alice",
            "alice@example.com",
            [(menu.lemonade.id, menu.small.id, 1), (menu.lemonade.id, menu.small.id, 2)],
        )
        assert [i.quantity for i in order.items] == [1, 2]
        assert order.total_price == Decimal("7.50")

    @pytest.mark.asyncio
    async def test_accepts_item_models(self, services, menu):
        """Items may be OrderItemCreate objects as well as tuples."""
        order = await services.orders.place_order(
            "Alice",
            "alice@example.com",
            [OrderItemCreate(
                beverage_type_id=menu.lemonade.id,
                beverage_size_id=menu.large.id,
                quantity=1,
            )],
        )
        assert order.total_price == Decimal("4.00")

    @pytest.mark.asyncio
    async def test_confirmation_numbers_are_distinct(self, services, menu):
        numbers = set()
        for _ in range(5):
            order = await services.orders.place_order(
                "Alice", "alice@example.com", [(menu.lemonade.id, menu.small.id, 1)]
            )
            assert order.confirmation_number
            assert order.confirmation_number != str(order.id)
            numbers.add(order.confirmation_number)
        assert len(numbers) == 5

    @pytest.mark.asyncio
    async def test_get_and_list(self, services, menu):
        placed = await services.orders.place_order(
            "Alice", "alice@example.com", [(menu.lemonade.id, menu.small.id, 1)]
        )

        fetched = await services.orders.get_order(placed.id)
        assert fetched.confirmation_number == placed.confirmation_number
        assert fetched.total_price == placed.total_price
        assert [i.id for i in fetched.items] == [i.id for i in placed.items]

        listed = await services.orders.list_orders()
        assert [o.id for o in listed] == [placed.id]

    @pytest.mark.asyncio
    async def test_get_missing_order(self, services):
        with pytest.raises(NotFoundError) as exc_info:
            await services.orders.get_order(uuid.uuid4())
        assert exc_info.value.resource == "order"


class TestOrderValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1, True, 1.5, "2", None])
    async def test_invalid_quantity(self, services, session_factory, menu, quantity):
        with pytest.raises(ValidationError) as exc_info:
            await services.orders.place_order(
                "Alice", "alice@example.com", [(menu.lemonade.id, menu.small.id, quantity)]
            )
        assert exc_info.value.field == "items[0].quantity"
        assert await _count(session_factory, Order) == 0

    @pytest.mark.asyncio
    async def test_invalid_quantity_in_later_item(self, services, session_factory, menu):
        with pytest.raises(ValidationError) as exc_info:
            await services.orders.place_order(
                "Alice",
                "alice@example.com",
                [(menu.lemonade.id, menu.small.id, 1), (menu.lemonade.id, menu.large.id, 0)],
            )
        assert exc_info.value.field == "items[1].quantity"
        assert await _count(session_factory, OrderItem) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("items", [[], None])
    async def test_empty_order(self, services, items):
        with pytest.raises(ValidationError) as exc_info:
            await services.orders.place_order("Alice", "alice@example.com", items)
        assert exc_info.value.field == "items"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name, contact, field", [
        ("", "alice@example.com", "customer_name"),
        ("   ", "alice@example.com", "customer_name"),
        ("Alice", "", "customer_contact"),
        ("Alice", "x" * 201, "customer_contact"),
    ])
    async def test_customer_fields_required(self, services, menu, name, contact, field):
        with pytest.raises(ValidationError) as exc_info:
            await services.orders.place_order(name, contact, [(menu.lemonade.id, menu.small.id, 1)])
        assert exc_info.value.field == field

    @pytest.mark.asyncio
    async def test_malformed_item_id(self, services, menu):
        with pytest.raises(ValidationError) as exc_info:
            await services.orders.place_order(
                "Alice", "alice@example.com", [("nope", menu.small.id, 1)]
            )
        assert exc_info.value.field == "items[0].beverage_type_id"

    @pytest.mark.asyncio
    async def test_wrong_tuple_shape(self, services, menu):
        with pytest.raises(ValidationError):
            await services.orders.place_order(
                "Alice", "alice@example.com", [(menu.lemonade.id, menu.small.id)]
            )

    @pytest.mark.asyncio
    async def test_quantity_above_column_range(self, services, session_factory, menu):
        with pytest.raises(ValidationError) as exc_info:
            await services.orders.place_order(
                "Alice", "alice@example.com", [(menu.lemonade.id, menu.small.id, 2**63)]
            )
        assert exc_info.value.field == "items[0].quantity"
        assert await _count(session_factory, Order) == 0

    @pytest.mark.asyncio
    async def test_oversized_line_total(self, services, session_factory, menu):
        """4,000,000 x 2.50 is 10,000,000.00, one cent past the largest storable amount."""
        with pytest.raises(ValidationError) as exc_info:
            await services.orders.place_order(
                "Alice", "alice@example.com", [(menu.lemonade.id, menu.small.id, 4_000_000)]
            )
        assert exc_info.value.field == "items[0].quantity"
        assert await _count(session_factory, Order) == 0
        assert await _count(session_factory, OrderItem) == 0

    @pytest.mark.asyncio
    async def test_oversized_order_total(self, services, session_factory, menu):
        """Each line fits on its own, their sum does not."""
        with pytest.raises(ValidationError) as exc_info:
            await services.orders.place_order(
                "Alice",
                "alice@example.com",
                [
                    (menu.lemonade.id, menu.small.id, 2_000_000),
                    (menu.lemonade.id, menu.small.id, 2_000_000),
                ],
            )
        assert exc_info.value.field == "items"
        assert await _count(session_factory, Order) == 0
        assert await _count(session_factory, OrderItem) == 0

    @pytest.mark.asyncio
    async def test_largest_storable_total_accepted(self, services, menu):
        bulk = await services.types.create("Bulk")
        link = await services.price_matrix.create(bulk.id, menu.small.id, "99999.99")
        order = await services.orders.place_order(
            "Alice", "alice@example.com", [(bulk.id, menu.small.id, 100)]
        )
        assert order.total_price == Decimal("9999999.00")
        assert order.items[0].line_total == link.price * 100


class TestOrderAtomicity:

    @pytest.mark.asyncio
    async def test_missing_price_link_persists_nothing(self, services, session_factory, menu):
        """One unpriced pair aborts the whole order, including the priced items."""
        with pytest.raises(NotFoundError) as exc_info:
            await services.orders.place_order(
                "Alice",
                "alice@example.com",
                [
                    (menu.lemonade.id, menu.small.id, 1),
                    (menu.strawberry.id, menu.large.id, 1),
                ],
            )

        error = exc_info.value
        assert error.resource == "price link"
        assert error.context["item_index"] == 1
        assert str(menu.strawberry.id) in error.message
        assert await _count(session_factory, Order) == 0
        assert await _count(session_factory, OrderItem) == 0
        assert await services.orders.list_orders() == []

    @pytest.mark.asyncio
    async def test_unknown_type_reported_as_missing_price(self, services, menu):
        with pytest.raises(NotFoundError) as exc_info:
            await services.orders.place_order(
                "Alice", "alice@example.com", [(uuid.uuid4(), menu.small.id, 1)]
            )
        assert exc_info.value.resource == "price link"

    @pytest.mark.asyncio
    async def test_reload_failure_raises_internal_error(self, services, menu):
        """The order commits, but a failed read-back is reported, not masked."""
        with patch.object(services.orders, "_fetch_order", AsyncMock(return_value=None)):
            with pytest.raises(InternalError) as exc_info:
                await services.orders.place_order(
                    "Alice", "alice@example.com", [(menu.lemonade.id, menu.small.id, 1)]
                )
        assert exc_info.value.message == "Unable to retrieve order after creation"
        assert len(await services.orders.list_orders()) == 1


class TestPriceSnapshot:

    @pytest.mark.asyncio
    async def test_price_change_does_not_affect_placed_order(self, services, menu):
        placed = await services.orders.place_order(
            "Alice", "alice@example.com", [(menu.lemonade.id, menu.small.id, 2)]
        )

        await services.price_matrix.update(menu.lemonade_small.id, price="9.99")

        fetched = await services.orders.get_order(placed.id)
        assert fetched.items[0].unit_price == Decimal("2.50")
        assert fetched.items[0].line_total == Decimal("5.00")
        assert fetched.total_price == Decimal("5.00")

        # New orders use the new price
        newer = await services.orders.place_order(
            "Bob", "bob@example.com", [(menu.lemonade.id, menu.small.id, 2)]
        )
        assert newer.total_price == Decimal("19.98")

    @pytest.mark.asyncio
    async def test_deleted_price_link_does_not_affect_placed_order(self, services, menu):
        placed = await services.orders.place_order(
            "Alice", "alice@example.com", [(menu.lemonade.id, menu.large.id, 1)]
        )
        await services.price_matrix.delete(menu.lemonade_large.id)

        fetched = await services.orders.get_order(placed.id)
        assert fetched.items[0].unit_price == Decimal("4.00")

        with pytest.raises(NotFoundError):
            await services.orders.place_order(
                "Bob", "bob@example.com", [(menu.lemonade.id, menu.large.id, 1)]
            )


class TestOrderScenario:

    @pytest.mark.asyncio
    async def test_two_medium_lemonades(self, services):
        """Lemonade / Medium at 3.00, two of them, then the price goes up."""
        lemonade = await services.types.create("Lemonade")
        medium = await services.sizes.create("Medium")
        link = await services.price_matrix.create(lemonade.id, medium.id, "3.00")

        order = await services.orders.place_order(
            "Alice", "a@x.com", [(lemonade.id, medium.id, 2)]
        )
        assert order.total_price == Decimal("6.00")
        [item] = order.items
        assert item.unit_price == Decimal("3.00")
        assert item.line_total == Decimal("6.00")

        await services.price_matrix.update(link.id, price="4.00")
        assert (await services.orders.get_order(order.id)).total_price == Decimal("6.00")
