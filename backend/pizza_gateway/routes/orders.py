"""
Pizza Gateway — Order Routes
=============================

What:  POST /insertpizzaorder and POST /insertappetizerorder.
How:   Delegate to OrderService; the header-then-items loop and its partial
       failure semantics live there.

Error responses (handled by global exception handlers):
    HTTP 400: invalid body (ValidationError)
    HTTP 500: header insert failed (DatabaseError), or an item insert failed
              after the header committed (PartialOrderError, details carry
              order_id and items_written)
"""

import logging

from fastapi import APIRouter, Depends

from pizza_gateway.context import get_database
from pizza_gateway.database import Database
from pizza_gateway.schemas.common import ErrorResponse
from pizza_gateway.schemas.orders import (
    AppetizerOrderRequest,
    AppetizerOrderResponse,
    PizzaOrderRequest,
    PizzaOrderResponse,
)
from pizza_gateway.services.order_service import order_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Orders"])

_ERRORS = {
    400: {"description": "Invalid order body", "model": ErrorResponse},
    500: {"description": "Order (partially) failed", "model": ErrorResponse},
}


@router.post(
    "/insertpizzaorder",
    response_model=PizzaOrderResponse,
    responses=_ERRORS,
    summary="Create a pizza order with its toppings",
)
async def insert_pizza_order(
    body: PizzaOrderRequest,
    db: Database = Depends(get_database),
) -> PizzaOrderResponse:
    return await order_service.create_pizza_order(db, body)


@router.post(
    "/insertappetizerorder",
    response_model=AppetizerOrderResponse,
    responses=_ERRORS,
    summary="Create an appetizer order with its line items",
)
async def insert_appetizer_order(
    body: AppetizerOrderRequest,
    db: Database = Depends(get_database),
) -> AppetizerOrderResponse:
    return await order_service.create_appetizer_order(db, body)
