"""
Lemonade Backend: Price Matrix
===============================

What:  Manages price links, the single price of each (beverage type,
       beverage size) pair, and serves point lookups to the order processor.
How:   Type and size ids are resolved through the catalog stores inside the
       same session, so a link can never point at a missing entity. Pair
       uniqueness is pre-checked for a precise error and backed by the
       uq_price_links_type_size constraint for concurrent writers.

Update semantics (patch):
    Only the supplied fields are applied. The uniqueness check then runs
    against the resulting (type, size) pair, excluding the link itself, and
    it runs on every update, including price-only updates.
"""

import logging
import uuid
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from lemonade.exceptions import DuplicateLinkError, NotFoundError
from lemonade.models import PriceLink
from lemonade.money import PriceInput, parse_price
from lemonade.schemas.beverage import PriceLinkResponse
from lemonade.services.base import DatabaseService, coerce_uuid
from lemonade.services.catalog_service import BeverageSizeStore, BeverageTypeStore

logger = logging.getLogger(__name__)


def _with_refs(stmt):
    return stmt.options(
        selectinload(PriceLink.beverage_type),
        selectinload(PriceLink.beverage_size),
    )


class PriceMatrix(DatabaseService):
    """
    CRUD for price links plus `lookup()` for order placement.

    Args:
        session_factory: Factory for this service's own units of work
        types: Store used to resolve beverage type ids
        sizes: Store used to resolve beverage size ids
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        types: BeverageTypeStore,
        sizes: BeverageSizeStore,
    ):
        super().__init__(session_factory)
        self._types = types
        self._sizes = sizes

    async def create(
        self,
        beverage_type_id: Any,
        beverage_size_id: Any,
        price: PriceInput,
    ) -> PriceLinkResponse:
        """
        Set the price of a (type, size) pair.

        Raises:
            ValidationError: Price is negative, has more than 2 decimals, or
                             is not a number (checked before any database access)
            NotFoundError: Type or size does not exist
            DuplicateLinkError: The pair already has a price
        """
        amount = parse_price(price)
        type_id = coerce_uuid(beverage_type_id, "beverage_type_id")
        size_id = coerce_uuid(beverage_size_id, "beverage_size_id")

        async with self.unit_of_work("create price link") as session:
            beverage_type = await self._types.require(session, type_id)
            beverage_size = await self._sizes.require(session, size_id)
            await self._ensure_unique_pair(session, type_id, size_id)

            link = PriceLink(
                beverage_type=beverage_type,
                beverage_size=beverage_size,
                price=amount,
            )
            session.add(link)
            await self._flush_pair(session, type_id, size_id)
            logger.info(
                "Created price link %s: %s / %s = %s",
                link.id, beverage_type.name, beverage_size.name, amount,
            )
            return PriceLinkResponse.model_validate(link)

    async def get(self, link_id: Any) -> PriceLinkResponse:
        """Fetch one price link. Raises NotFoundError."""
        link_id = coerce_uuid(link_id, "id")
        async with self.unit_of_work("get price link") as session:
            link = await self._require(session, link_id)
            return PriceLinkResponse.model_validate(link)

    async def list(self) -> List[PriceLinkResponse]:
        """All price links with their type and size resolved."""
        async with self.unit_of_work("list price links") as session:
            result = await session.execute(_with_refs(select(PriceLink)).order_by(PriceLink.id))
            return [PriceLinkResponse.model_validate(link) for link in result.scalars().all()]

    async def update(
        self,
        link_id: Any,
        beverage_type_id: Optional[Any] = None,
        beverage_size_id: Optional[Any] = None,
        price: Optional[PriceInput] = None,
    ) -> PriceLinkResponse:
        """
        Patch a price link.

        Raises:
            ValidationError: Supplied price is invalid (before any database access)
            NotFoundError: Link, new type or new size does not exist
            DuplicateLinkError: Another link already prices the resulting pair
        """
        link_id = coerce_uuid(link_id, "id")
        amount = parse_price(price) if price is not None else None
        type_id = coerce_uuid(beverage_type_id, "beverage_type_id") if beverage_type_id is not None else None
        size_id = coerce_uuid(beverage_size_id, "beverage_size_id") if beverage_size_id is not None else None

        async with self.unit_of_work("update price link") as session:
            link = await self._require(session, link_id)

            # Resolve everything before mutating the link so no autoflush can
            # write a half-applied pair.
            beverage_type = link.beverage_type
            if type_id is not None and type_id != link.beverage_type_id:
                beverage_type = await self._types.require(session, type_id)
            beverage_size = link.beverage_size
            if size_id is not None and size_id != link.beverage_size_id:
                beverage_size = await self._sizes.require(session, size_id)
            await self._ensure_unique_pair(
                session, beverage_type.id, beverage_size.id, exclude_id=link.id,
            )

            link.beverage_type = beverage_type
            link.beverage_size = beverage_size
            if amount is not None:
                link.price = amount
            await self._flush_pair(session, beverage_type.id, beverage_size.id)

            logger.info(
                "Updated price link %s: %s / %s = %s",
                link.id, link.beverage_type.name, link.beverage_size.name, link.price,
            )
            return PriceLinkResponse.model_validate(link)

    async def delete(self, link_id: Any) -> None:
        """Delete a price link. Raises NotFoundError."""
        link_id = coerce_uuid(link_id, "id")
        async with self.unit_of_work("delete price link") as session:
            link = await self._require(session, link_id)
            await session.delete(link)
            await session.flush()
            logger.info("Deleted price link %s", link_id)

    async def lookup(
        self,
        beverage_type_id: uuid.UUID,
        beverage_size_id: uuid.UUID,
        session: Optional[AsyncSession] = None,
    ) -> Optional[PriceLink]:
        """
        Current price link for a pair, or None when the pair has no price.

        Pass `session` to read inside the caller's transaction (the order
        processor does). Without it the lookup runs in its own unit of work.
        Returns the ORM object with its type and size loaded; not exposed
        over HTTP.
        """
        if session is not None:
            return await self._lookup(session, beverage_type_id, beverage_size_id)
        async with self.unit_of_work("look up price") as own_session:
            return await self._lookup(own_session, beverage_type_id, beverage_size_id)

    # ── Internals ─────────────────────────────────────────────────────────

    async def _lookup(
        self,
        session: AsyncSession,
        beverage_type_id: uuid.UUID,
        beverage_size_id: uuid.UUID,
    ) -> Optional[PriceLink]:
        result = await session.execute(
            _with_refs(select(PriceLink)).where(
                PriceLink.beverage_type_id == beverage_type_id,
                PriceLink.beverage_size_id == beverage_size_id,
            )
        )
        return result.scalar_one_or_none()

    async def _require(self, session: AsyncSession, link_id: uuid.UUID) -> PriceLink:
        result = await session.execute(_with_refs(select(PriceLink)).where(PriceLink.id == link_id))
        link = result.scalar_one_or_none()
        if link is None:
            raise NotFoundError(resource="price link", resource_id=str(link_id))
        return link

    async def _ensure_unique_pair(
        self,
        session: AsyncSession,
        beverage_type_id: uuid.UUID,
        beverage_size_id: uuid.UUID,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        stmt = select(PriceLink.id).where(
            PriceLink.beverage_type_id == beverage_type_id,
            PriceLink.beverage_size_id == beverage_size_id,
        )
        if exclude_id is not None:
            stmt = stmt.where(PriceLink.id != exclude_id)
        if (await session.execute(stmt.limit(1))).first() is not None:
            raise DuplicateLinkError(beverage_type_id, beverage_size_id)

    async def _flush_pair(
        self,
        session: AsyncSession,
        beverage_type_id: uuid.UUID,
        beverage_size_id: uuid.UUID,
    ) -> None:
        try:
            await session.flush()
        except IntegrityError:
            # Type and size were resolved in this transaction, so the only
            # constraint left to fail is the pair's uniqueness.
            logger.warning(
                "Unique constraint rejected price link for %s / %s",
                beverage_type_id, beverage_size_id,
            )
            raise DuplicateLinkError(beverage_type_id, beverage_size_id)
