"""
Lemonade Backend: Beverage Catalog Route Handlers
==================================================

What:  CRUD endpoints for beverage types, beverage sizes and price links.

Endpoints:
    POST   /beverage/types              201  create type
    GET    /beverage/types              200  list types (with price links)
    GET    /beverage/types/{id}         200  get type
    PATCH  /beverage/types/{id}         200  rename type
    DELETE /beverage/types/{id}         204  delete type (cascades to price links)
    ...same five for /beverage/sizes
    POST   /beverage/price-links        201  set price for a (type, size) pair
    GET    /beverage/price-links        200  list price links
    GET    /beverage/price-links/{id}   200  get price link
    PATCH  /beverage/price-links/{id}   200  patch type, size and/or price
    DELETE /beverage/price-links/{id}   204  delete price link
"""

import uuid
from typing import Callable, List

from fastapi import APIRouter, Depends, Response

from lemonade.dependencies import get_price_matrix, get_size_store, get_type_store
from lemonade.schemas.beverage import (
    BeverageCreate,
    BeverageResponse,
    BeverageUpdate,
    PriceLinkCreate,
    PriceLinkResponse,
    PriceLinkUpdate,
)
from lemonade.schemas.common import ErrorResponse
from lemonade.services import CatalogStore, PriceMatrix

router = APIRouter(prefix="/beverage", tags=["Beverages"])

_NOT_FOUND = {404: {"description": "Not found", "model": ErrorResponse}}
_CONFLICT = {409: {"description": "Conflicts with existing data", "model": ErrorResponse}}
_INVALID = {400: {"description": "Invalid input", "model": ErrorResponse}}


def _register_catalog_routes(
    path: str,
    resource: str,
    get_store: Callable[..., CatalogStore],
) -> None:
    """Register the five CRUD endpoints for one catalog entity kind."""

    @router.post(
        path,
        status_code=201,
        response_model=BeverageResponse,
        responses={**_INVALID, **_CONFLICT},
        summary=f"Create a {resource}",
        name=f"create_{resource.replace(' ', '_')}",
    )
    async def create(
        body: BeverageCreate,
        store: CatalogStore = Depends(get_store),
    ) -> BeverageResponse:
        return await store.create(body.name)

    @router.get(
        path,
        response_model=List[BeverageResponse],
        summary=f"List {resource}s with their price links",
        name=f"list_{resource.replace(' ', '_')}s",
    )
    async def list_all(store: CatalogStore = Depends(get_store)) -> List[BeverageResponse]:
        return await store.list()

    @router.get(
        f"{path}/{{record_id}}",
        response_model=BeverageResponse,
        responses=_NOT_FOUND,
        summary=f"Get a {resource} by ID",
        name=f"get_{resource.replace(' ', '_')}",
    )
    async def get_one(
        record_id: uuid.UUID,
        store: CatalogStore = Depends(get_store),
    ) -> BeverageResponse:
        return await store.get(record_id)

    @router.patch(
        f"{path}/{{record_id}}",
        response_model=BeverageResponse,
        responses={**_INVALID, **_NOT_FOUND, **_CONFLICT},
        summary=f"Rename a {resource}",
        name=f"update_{resource.replace(' ', '_')}",
    )
    async def update(
        record_id: uuid.UUID,
        body: BeverageUpdate,
        store: CatalogStore = Depends(get_store),
    ) -> BeverageResponse:
        return await store.update(record_id, name=body.name)

    @router.delete(
        f"{path}/{{record_id}}",
        status_code=204,
        responses={**_NOT_FOUND, **_CONFLICT},
        summary=f"Delete a {resource} and its price links",
        description=f"Rejected with 409 while any placed order references the {resource}.",
        name=f"delete_{resource.replace(' ', '_')}",
    )
    async def delete(
        record_id: uuid.UUID,
        store: CatalogStore = Depends(get_store),
    ) -> Response:
        await store.delete(record_id)
        return Response(status_code=204)


_register_catalog_routes("/types", "beverage type", get_type_store)
_register_catalog_routes("/sizes", "beverage size", get_size_store)


# ── Price Links ───────────────────────────────────────────────────────────

@router.post(
    "/price-links",
    status_code=201,
    response_model=PriceLinkResponse,
    responses={**_INVALID, **_NOT_FOUND, **_CONFLICT},
    summary="Set the price of a beverage type & size pair",
)
async def create_price_link(
    body: PriceLinkCreate,
    matrix: PriceMatrix = Depends(get_price_matrix),
) -> PriceLinkResponse:
    return await matrix.create(body.beverage_type_id, body.beverage_size_id, body.price)


@router.get(
    "/price-links",
    response_model=List[PriceLinkResponse],
    summary="List price links",
)
async def list_price_links(
    matrix: PriceMatrix = Depends(get_price_matrix),
) -> List[PriceLinkResponse]:
    return await matrix.list()


@router.get(
    "/price-links/{link_id}",
    response_model=PriceLinkResponse,
    responses=_NOT_FOUND,
    summary="Get a price link by ID",
)
async def get_price_link(
    link_id: uuid.UUID,
    matrix: PriceMatrix = Depends(get_price_matrix),
) -> PriceLinkResponse:
    return await matrix.get(link_id)


@router.patch(
    "/price-links/{link_id}",
    response_model=PriceLinkResponse,
    responses={**_INVALID, **_NOT_FOUND, **_CONFLICT},
    summary="Update a price link",
    description="Only supplied fields are applied. Placed orders keep the price they were placed at.",
)
async def update_price_link(
    link_id: uuid.UUID,
    body: PriceLinkUpdate,
    matrix: PriceMatrix = Depends(get_price_matrix),
) -> PriceLinkResponse:
    return await matrix.update(
        link_id,
        beverage_type_id=body.beverage_type_id,
        beverage_size_id=body.beverage_size_id,
        price=body.price,
    )


@router.delete(
    "/price-links/{link_id}",
    status_code=204,
    responses=_NOT_FOUND,
    summary="Delete a price link",
)
async def delete_price_link(
    link_id: uuid.UUID,
    matrix: PriceMatrix = Depends(get_price_matrix),
) -> Response:
    await matrix.delete(link_id)
    return Response(status_code=204)
