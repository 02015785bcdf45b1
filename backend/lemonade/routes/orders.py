"""
Lemonade Backend: Order Route Handlers
=======================================

What:  POST /orders (place), GET /orders (list), GET /orders/{id} (detail).
How:   Delegates to OrderProcessor. The POST response is the fully reloaded
       order, so clients never need a second round trip.
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends

from lemonade.dependencies import get_order_processor
from lemonade.schemas.common import ErrorResponse
from lemonade.schemas.order import OrderCreate, OrderResponse
from lemonade.services import OrderProcessor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post(
    "",
    status_code=201,
    response_model=OrderResponse,
    responses={
        201: {"description": "Order created successfully", "model": OrderResponse},
        400: {"description": "Invalid input or empty order", "model": ErrorResponse},
        404: {"description": "No price for a requested type & size", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Place a new order",
)
async def place_order(
    body: OrderCreate,
    orders: OrderProcessor = Depends(get_order_processor),
) -> OrderResponse:
    logger.info("Received order request: %d item(s)", len(body.items))
    return await orders.place_order(
        customer_name=body.customer_name,
        customer_contact=body.customer_contact,
        items=body.items,
    )


@router.get(
    "",
    response_model=List[OrderResponse],
    summary="List all orders, newest first",
)
async def list_orders(
    orders: OrderProcessor = Depends(get_order_processor),
) -> List[OrderResponse]:
    return await orders.list_orders()


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    responses={404: {"description": "Order not found", "model": ErrorResponse}},
    summary="Get a single order by ID",
)
async def get_order(
    order_id: uuid.UUID,
    orders: OrderProcessor = Depends(get_order_processor),
) -> OrderResponse:
    return await orders.get_order(order_id)
