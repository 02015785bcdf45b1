"""
Lemonade Backend: Catalog Store
================================

What:  Create, read, update and delete beverage types and beverage sizes.
How:   One generic `CatalogStore`, specialised by `BeverageTypeStore` and
       `BeverageSizeStore` through class attributes (model, resource label,
       and the foreign-key columns that point at the model).
Who:   Called by the beverage routes and by `PriceMatrix`, which resolves
       type and size ids through `require()` inside its own session.

Rules:
    - Names are non-empty and unique per kind, compared case-sensitively.
      A pre-check raises DuplicateNameError; if two writers race past the
      pre-check, the UNIQUE constraint fails at flush and is reported as the
      same DuplicateNameError.
    - delete() is blocked with ConflictError while any order item references
      the record (restrict). Otherwise the record's price links are removed
      together with it (cascade), in the same transaction.
"""

import logging
import uuid
from typing import Any, ClassVar, List, Optional, Type, Union

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute, selectinload

from lemonade.exceptions import ConflictError, DuplicateNameError, NotFoundError, ValidationError
from lemonade.models import BeverageSize, BeverageType, OrderItem, PriceLink
from lemonade.models.beverage import NAME_MAX_LENGTH
from lemonade.schemas.beverage import BeverageResponse
from lemonade.services.base import DatabaseService, coerce_uuid

logger = logging.getLogger(__name__)

CatalogModel = Union[BeverageType, BeverageSize]


class CatalogStore(DatabaseService):
    """
    Generic store for a named catalog entity.

    Subclasses set:
        model:              ORM class (BeverageType or BeverageSize)
        resource:           Label used in messages ("beverage type")
        price_link_column:  PriceLink column referencing the model (cascade)
        order_item_column:  OrderItem column referencing the model (restrict)
    """

    model: ClassVar[Type[CatalogModel]]
    resource: ClassVar[str]
    price_link_column: ClassVar[InstrumentedAttribute]
    order_item_column: ClassVar[InstrumentedAttribute]

    # ── Public operations ─────────────────────────────────────────────────

    async def create(self, name: str) -> BeverageResponse:
        """
        Create a record with a unique name.

        Raises:
            ValidationError: Name is empty or too long
            DuplicateNameError: Another record of this kind has the name
        """
        name = self._validate_name(name)
        async with self.unit_of_work(f"create {self.resource}") as session:
            await self._ensure_unique_name(session, name)
            record = self.model(name=name)
            session.add(record)
            await self._flush_name(session, name)
            logger.info("Created %s %s (%s)", self.resource, record.id, name)
            return BeverageResponse(id=record.id, name=record.name, price_links=[])

    async def get(self, record_id: Any) -> BeverageResponse:
        """Fetch one record with its price links. Raises NotFoundError."""
        record_id = coerce_uuid(record_id, "id")
        async with self.unit_of_work(f"get {self.resource}") as session:
            record = await self.require(session, record_id, with_price_links=True)
            return BeverageResponse.model_validate(record)

    async def list(self) -> List[BeverageResponse]:
        """All records with their price links attached, ordered by name."""
        async with self.unit_of_work(f"list {self.resource}s") as session:
            result = await session.execute(
                select(self.model)
                .options(selectinload(self.model.price_links))
                .order_by(self.model.name)
            )
            return [BeverageResponse.model_validate(r) for r in result.scalars().all()]

    async def update(self, record_id: Any, name: Optional[str] = None) -> BeverageResponse:
        """
        Patch a record. Only supplied fields are applied.

        Uniqueness is re-checked only when the name actually changes, and the
        record being updated is excluded from the comparison.

        Raises:
            ValidationError: Supplied name is empty or too long
            NotFoundError: No record with this id
            DuplicateNameError: Another record of this kind has the new name
        """
        record_id = coerce_uuid(record_id, "id")
        if name is not None:
            name = self._validate_name(name)

        async with self.unit_of_work(f"update {self.resource}") as session:
            record = await self.require(session, record_id, with_price_links=True)
            if name is not None and name != record.name:
                await self._ensure_unique_name(session, name, exclude_id=record.id)
                old_name = record.name
                record.name = name
                await self._flush_name(session, name)
                logger.info("Renamed %s %s: %s -> %s", self.resource, record.id, old_name, name)
            return BeverageResponse.model_validate(record)

    async def delete(self, record_id: Any) -> None:
        """
        Delete a record and its price links.

        Raises:
            NotFoundError: No record with this id
            ConflictError: An order item still references the record
        """
        record_id = coerce_uuid(record_id, "id")
        async with self.unit_of_work(f"delete {self.resource}") as session:
            record = await self.require(session, record_id)

            referencing_items = await session.scalar(
                select(func.count()).select_from(OrderItem).where(self.order_item_column == record.id)
            )
            if referencing_items:
                raise self._in_use(record, referencing_items)

            removed = await session.execute(
                delete(PriceLink).where(self.price_link_column == record.id)
            )
            await session.delete(record)
            try:
                await session.flush()
            except IntegrityError:
                # An order referencing the record committed after the count above
                raise self._in_use(record, None)

            logger.info(
                "Deleted %s %s (%s) and %d price link(s)",
                self.resource, record.id, record.name, removed.rowcount or 0,
            )

    # ── Helpers shared with PriceMatrix ───────────────────────────────────

    async def require(
        self,
        session: AsyncSession,
        record_id: uuid.UUID,
        with_price_links: bool = False,
    ) -> CatalogModel:
        """
        Load a record inside the caller's session.

        Raises:
            NotFoundError: No record with this id
        """
        stmt = select(self.model).where(self.model.id == record_id)
        if with_price_links:
            stmt = stmt.options(selectinload(self.model.price_links))
        record = (await session.execute(stmt)).scalar_one_or_none()
        if record is None:
            raise NotFoundError(resource=self.resource, resource_id=str(record_id))
        return record

    # ── Internals ─────────────────────────────────────────────────────────

    def _validate_name(self, name: Any) -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(message=f"{self.resource} name must not be empty", field="name")
        if len(name) > NAME_MAX_LENGTH:
            raise ValidationError(
                message=f"{self.resource} name must be at most {NAME_MAX_LENGTH} characters",
                field="name",
            )
        return name

    async def _ensure_unique_name(
        self,
        session: AsyncSession,
        name: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        stmt = select(self.model.id).where(self.model.name == name)
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        if (await session.execute(stmt.limit(1))).first() is not None:
            raise DuplicateNameError(self.resource, name)

    async def _flush_name(self, session: AsyncSession, name: str) -> None:
        try:
            await session.flush()
        except IntegrityError:
            logger.warning("Unique constraint rejected %s name %r", self.resource, name)
            raise DuplicateNameError(self.resource, name)

    def _in_use(self, record: CatalogModel, count: Optional[int]) -> ConflictError:
        detail = f"{count} order item(s)" if count else "existing order items"
        return ConflictError(
            message=f"{self.resource} '{record.name}' is referenced by {detail} and cannot be deleted",
            context={"resource": self.resource, "resource_id": str(record.id)},
        )


class BeverageTypeStore(CatalogStore):
    model = BeverageType
    resource = "beverage type"
    price_link_column = PriceLink.beverage_type_id
    order_item_column = OrderItem.beverage_type_id


class BeverageSizeStore(CatalogStore):
    model = BeverageSize
    resource = "beverage size"
    price_link_column = PriceLink.beverage_size_id
    order_item_column = OrderItem.beverage_size_id
