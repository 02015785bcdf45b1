"""
Lemonade Backend: Order Transaction Processor
==============================================

What:  Places orders atomically and reads them back.
Who:   Called by the order routes, or directly by any async Python caller.

Placement Flow (place_order):
    ┌────────────┐   ┌──────────────────┐   ┌───────────────┐   ┌──────────┐
    │  Validate  │──▶│ Resolve prices   │──▶│ Single flush  │──▶│  Commit  │
    │  (no I/O)  │   │ (PriceMatrix     │   │ order + items │   │          │
    └────────────┘   │  lookup, same tx)│   └───────────────┘   └────┬─────┘
                     └──────────────────┘                            │
                                                    ┌────────────────▼─────┐
                                                    │ Reload in new session│
                                                    │ → OrderResponse      │
                                                    └──────────────────────┘

    Validation failures raise before a session is opened. A missing price
    link raises inside the transaction, before anything is added to the
    session, and the rollback discards the (empty) unit of work. Storage
    failures during the flush or commit roll back the whole order. There is
    no partially-created order visible to any caller.

Snapshot semantics:
    unit_price is copied from the price link when the order is placed;
    line_total and total_price are computed once and stored. Reads never
    recompute them, so later price changes do not affect placed orders.
"""

import logging
import uuid
from typing import Any, Callable, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from lemonade.exceptions import InternalError, NotFoundError, ValidationError
from lemonade.models import Order, OrderItem
from lemonade.models.order import CUSTOMER_FIELD_MAX_LENGTH
from lemonade.money import MAX_LINE_TOTAL, ZERO, line_total, quantize
from lemonade.schemas.order import OrderResponse
from lemonade.services.base import DatabaseService, coerce_uuid
from lemonade.services.price_matrix import PriceMatrix

logger = logging.getLogger(__name__)

# (beverage_type_id, beverage_size_id, quantity)
RequestedItem = Tuple[uuid.UUID, uuid.UUID, int]

# Range of the order_items.quantity INTEGER column
MAX_QUANTITY = 2**31 - 1


def _with_items(stmt):
    return stmt.options(
        selectinload(Order.items).selectinload(OrderItem.beverage_type),
        selectinload(Order.items).selectinload(OrderItem.beverage_size),
    )


class OrderProcessor(DatabaseService):
    """
    Order placement and retrieval.

    Args:
        session_factory: Factory for this service's own units of work
        price_matrix: Source of current prices (`lookup`)
        confirmation_numbers: Zero-argument callable returning a fresh token
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        price_matrix: PriceMatrix,
        confirmation_numbers: Callable[[], str],
    ):
        super().__init__(session_factory)
        self._price_matrix = price_matrix
        self._confirmation_numbers = confirmation_numbers

    async def place_order(
        self,
        customer_name: str,
        customer_contact: str,
        items: Sequence[Any],
    ) -> OrderResponse:
        """
        Price, persist and return a new order in one atomic unit of work.

        Args:
            customer_name: Non-empty customer name
            customer_contact: Non-empty phone number or email
            items: Non-empty sequence of (beverage_type_id, beverage_size_id,
                   quantity) tuples, or objects with those attributes
                   (e.g. OrderItemCreate)

        Returns:
            OrderResponse with items in the given order, each carrying its
            beverage type/size and the snapshot unit_price/line_total.

        Raises:
            ValidationError: Empty customer fields, no items, malformed ids,
                             or a quantity that is not an integer >= 1,
                             or a line total or order total above MAX_LINE_TOTAL
            NotFoundError: An item's (type, size) pair has no price link;
                           nothing is persisted
            DatabaseError: Storage failed during the write; nothing is persisted
            InternalError: The order committed but could not be read back
        """
        customer_name = self._require_text(customer_name, "customer_name")
        customer_contact = self._require_text(customer_contact, "customer_contact")
        requested = self._normalize_items(items)

        async with self.unit_of_work("place order") as session:
            order_items: List[OrderItem] = []
            total = ZERO
            for position, (type_id, size_id, quantity) in enumerate(requested):
                link = await self._price_matrix.lookup(type_id, size_id, session=session)
                if link is None:
                    logger.warning(
                        "Order rejected: no price for type=%s size=%s (item %d)",
                        type_id, size_id, position,
                    )
                    raise NotFoundError(
                        resource="price link",
                        message=(
                            f"Price link not found for beverage_type_id={type_id} "
                            f"& beverage_size_id={size_id}"
                        ),
                        context={
                            "beverage_type_id": str(type_id),
                            "beverage_size_id": str(size_id),
                            "item_index": position,
                        },
                    )

                unit_price = quantize(link.price)
                amount = line_total(unit_price, quantity)
                if amount > MAX_LINE_TOTAL:
                    raise ValidationError(
                        message=f"items[{position}] line total {amount} exceeds {MAX_LINE_TOTAL}",
                        field=f"items[{position}].quantity",
                        context={"line_total": str(amount)},
                    )
                total += amount
                if total > MAX_LINE_TOTAL:
                    raise ValidationError(
                        message=f"Order total {total} exceeds {MAX_LINE_TOTAL}",
                        field="items",
                        context={"total_price": str(total)},
                    )
                order_items.append(
                    OrderItem(
                        position=position,
                        beverage_type_id=type_id,
                        beverage_size_id=size_id,
                        quantity=quantity,
                        unit_price=unit_price,
                        line_total=amount,
                    )
                )

            order = Order(
                customer_name=customer_name,
                customer_contact=customer_contact,
                confirmation_number=self._confirmation_numbers(),
                total_price=quantize(total),
                items=order_items,
            )
            session.add(order)
            await session.flush()
            order_id = order.id

        logger.info(
            "Order %s placed: %d item(s), total %s, confirmation %s",
            order_id, len(order_items), order.total_price, order.confirmation_number,
        )
        return await self._reload(order_id)

    async def get_order(self, order_id: Any) -> OrderResponse:
        """Fetch one order with its items. Raises NotFoundError."""
        order_id = coerce_uuid(order_id, "id")
        async with self.unit_of_work("get order") as session:
            order = await self._fetch_order(session, order_id)
            if order is None:
                raise NotFoundError(resource="order", resource_id=str(order_id))
            return OrderResponse.model_validate(order)

    async def list_orders(self) -> List[OrderResponse]:
        """All orders, newest first, with items populated."""
        async with self.unit_of_work("list orders") as session:
            result = await session.execute(
                _with_items(select(Order)).order_by(Order.created_at.desc())
            )
            return [OrderResponse.model_validate(o) for o in result.scalars().all()]

    # ── Internals ─────────────────────────────────────────────────────────

    async def _reload(self, order_id: uuid.UUID) -> OrderResponse:
        async with self.unit_of_work("load placed order") as session:
            order = await self._fetch_order(session, order_id)
            if order is None:
                logger.error("Order %s committed but could not be reloaded", order_id)
                raise InternalError(
                    message="Unable to retrieve order after creation",
                    context={"order_id": str(order_id)},
                )
            return OrderResponse.model_validate(order)

    async def _fetch_order(self, session: AsyncSession, order_id: uuid.UUID) -> Optional[Order]:
        result = await session.execute(_with_items(select(Order)).where(Order.id == order_id))
        return result.scalar_one_or_none()

    @staticmethod
    def _require_text(value: Any, field: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(message=f"{field} must not be empty", field=field)
        if len(value) > CUSTOMER_FIELD_MAX_LENGTH:
            raise ValidationError(
                message=f"{field} must be at most {CUSTOMER_FIELD_MAX_LENGTH} characters",
                field=field,
            )
        return value

    @staticmethod
    def _normalize_items(items: Optional[Sequence[Any]]) -> List[RequestedItem]:
        if not items:
            raise ValidationError(message="Order must include at least one item", field="items")

        normalized: List[RequestedItem] = []
        for index, item in enumerate(items):
            if isinstance(item, (tuple, list)):
                if len(item) != 3:
                    raise ValidationError(
                        message=f"items[{index}] must be (beverage_type_id, beverage_size_id, quantity)",
                        field=f"items[{index}]",
                    )
                type_id, size_id, quantity = item
            else:
                type_id = getattr(item, "beverage_type_id", None)
                size_id = getattr(item, "beverage_size_id", None)
                quantity = getattr(item, "quantity", None)

            if (
                isinstance(quantity, bool)
                or not isinstance(quantity, int)
                or not 1 <= quantity <= MAX_QUANTITY
            ):
                raise ValidationError(
                    message=(
                        f"items[{index}].quantity must be an integer from 1 to {MAX_QUANTITY} "
                        f"(got {quantity!r})"
                    ),
                    field=f"items[{index}].quantity",
                )
            normalized.append((
                coerce_uuid(type_id, f"items[{index}].beverage_type_id"),
                coerce_uuid(size_id, f"items[{index}].beverage_size_id"),
                quantity,
            ))
        return normalized
