"""
FastAPI dependencies resolving the core components built in `create_app()`.
"""

from fastapi import Request

from lemonade.services import (
    BeverageSizeStore,
    BeverageTypeStore,
    OrderProcessor,
    PriceMatrix,
    Services,
)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_type_store(request: Request) -> BeverageTypeStore:
    return get_services(request).types


def get_size_store(request: Request) -> BeverageSizeStore:
    return get_services(request).sizes


def get_price_matrix(request: Request) -> PriceMatrix:
    return get_services(request).price_matrix


def get_order_processor(request: Request) -> OrderProcessor:
    return get_services(request).orders
