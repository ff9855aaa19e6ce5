"""
Pizza Gateway — Order Service
==============================

What:  The two multi-step write flows: pizza orders and appetizer orders.
How:   Validate the body, insert the order header through a function that
       returns the new OrderId, then insert each line item with one procedure
       call per item, in request order.

Orchestration Flow (POST /insertpizzaorder):
    ┌──────────┐    ┌────────────────────────┐    ┌──────────────────────────────┐
    │ Validate │───▶│ fn_InsertPizzaOrder    │───▶│ sp_InsertPizzaOrderItem × N  │
    └──────────┘    │ (size, N, date)        │    │ (OrderId, toppingId)         │
                    └────────────────────────┘    └──────────────────────────────┘

Partial failure:
    Header and items are separate autocommitted statements with no enclosing
    transaction. If item k fails, the header and items 0..k-1 remain in the
    database. The failure is raised as PartialOrderError(order_id,
    items_written) and nothing is rolled back or compensated.
"""

import logging
import math
import re
from typing import Any, Dict, List, Optional

from pizza_gateway.database import Database
from pizza_gateway.exceptions import DatabaseError, PartialOrderError, ValidationError
from pizza_gateway.schemas.orders import (
    AppetizerOrderRequest,
    AppetizerOrderResponse,
    PizzaOrderRequest,
    PizzaOrderResponse,
)
from pizza_gateway.services.catalog_service import as_money

logger = logging.getLogger(__name__)

INSERT_PIZZA_ORDER = "fn_InsertPizzaOrder"
INSERT_PIZZA_ORDER_ITEM = "sp_InsertPizzaOrderItem"
INSERT_APPETIZER_ORDER = "fn_InsertAppetizerOrder"
INSERT_APPETIZER_ORDER_ITEM = "sp_InsertAppetizerOrderItem"

ORDER_ID_LABEL = "OrderId"

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Any) -> Optional[int]:
    """
    Lenient integer parse used when cleaning order items.

        7      → 7         "7"    → 7        "7 pcs" → 7
        7.9    → 7         "abc"  → None     True    → None
        None   → None      [7]    → None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _INT_PREFIX.match(value)
        return int(match.group(1)) if match else None
    return None


def clean_appetizer_items(items: List[Any]) -> List[Dict[str, int]]:
    """
    Normalize line items to `{ingredientid, total}` integer pairs.

    `total` is the item quantity. Items whose ingredientid or quantity do not
    parse as integers are dropped.
    """
    cleaned = []
    for item in items:
        if not isinstance(item, dict):
            continue
        ingredient_id = parse_int(item.get("ingredientid"))
        total = parse_int(item.get("quantity"))
        if ingredient_id is None or total is None:
            continue
        cleaned.append({"ingredientid": ingredient_id, "total": total})
    return cleaned


class OrderService:
    """Header-then-items write flows for both order types."""

    async def _insert_header(self, db: Database, routine: str, *args: Any) -> Any:
        rows = await db.select_routine(routine, *args, label=ORDER_ID_LABEL)
        if not rows:
            raise DatabaseError(message="Failed to create order", context={"operation": routine})
        return rows[0][ORDER_ID_LABEL]

    async def _insert_items(
        self, db: Database, routine: str, order_id: Any, item_args: List[tuple]
    ) -> None:
        written = 0
        for args in item_args:
            try:
                await db.call_procedure(routine, *args)
            except DatabaseError as e:
                logger.error(
                    "Order %s left partially written: %d of %d item(s) stored before %s failed",
                    order_id,
                    written,
                    len(item_args),
                    routine,
                )
                raise PartialOrderError(
                    message=e.message,
                    order_id=order_id,
                    items_written=written,
                    context=dict(e.context),
                ) from e
            written += 1

    async def create_pizza_order(
        self, db: Database, request: PizzaOrderRequest
    ) -> PizzaOrderResponse:
        """
        Insert a pizza order and one item per topping.

        Raises:
            ValidationError:   sizeid missing/zero, toppingids not an array,
                               orderdate missing, or a non-integer topping id
            DatabaseError:     header insert failed or returned no row
            PartialOrderError: an item insert failed after the header committed
        """
        invalid = []
        if not request.sizeid:
            invalid.append("sizeid")
        if not isinstance(request.toppingids, list):
            invalid.append("toppingids")
        if request.orderdate is None:
            invalid.append("orderdate")
        if invalid:
            raise ValidationError(
                message="Invalid input: sizeid, toppingids (array), and orderdate are required",
                missing=invalid,
            )

        topping_ids = [parse_int(t) for t in request.toppingids]
        if any(t is None for t in topping_ids):
            raise ValidationError(
                message="Invalid input: toppingids must contain integer IDs",
                context={"field": "toppingids"},
            )

        order_id = await self._insert_header(
            db, INSERT_PIZZA_ORDER, request.sizeid, len(topping_ids), request.orderdate
        )
        logger.info("Pizza order %s created with %d topping(s)", order_id, len(topping_ids))

        await self._insert_items(
            db,
            INSERT_PIZZA_ORDER_ITEM,
            order_id,
            [(order_id, topping_id) for topping_id in topping_ids],
        )

        return PizzaOrderResponse(order_id=order_id, topping_count=len(topping_ids))

    async def create_appetizer_order(
        self, db: Database, request: AppetizerOrderRequest
    ) -> AppetizerOrderResponse:
        """
        Insert an appetizer order header and its cleaned line items.

        The header total is `ordertotal` when supplied, otherwise the sum of the
        cleaned item totals.
        """
        if (
            request.appetizerorderdate is None
            or not isinstance(request.items, list)
            or len(request.items) == 0
        ):
            raise ValidationError(
                message="Invalid input: appetizerorderdate and items[] are required",
                missing=[
                    name
                    for name, bad in (
                        ("appetizerorderdate", request.appetizerorderdate is None),
                        ("items", not isinstance(request.items, list) or not request.items),
                    )
                    if bad
                ],
            )

        cleaned = clean_appetizer_items(request.items)
        if not cleaned:
            raise ValidationError(
                message="Invalid items: each needs ingredientid and quantity",
                context={"field": "items"},
            )
        if len(cleaned) < len(request.items):
            logger.info("Dropped %d malformed appetizer item(s)", len(request.items) - len(cleaned))

        computed_total = sum(item["total"] for item in cleaned)
        if request.ordertotal is not None:
            final_total = float(request.ordertotal)
        else:
            final_total = computed_total

        order_id = await self._insert_header(
            db, INSERT_APPETIZER_ORDER, request.appetizerorderdate, as_money(final_total)
        )
        logger.info("Appetizer order %s created with %d item(s)", order_id, len(cleaned))

        item_order_id = parse_int(order_id)
        await self._insert_items(
            db,
            INSERT_APPETIZER_ORDER_ITEM,
            order_id,
            [(item_order_id, item["ingredientid"], item["total"]) for item in cleaned],
        )

        return AppetizerOrderResponse(
            order_id=order_id,
            item_count=len(cleaned),
            order_total=final_total,
        )


order_service = OrderService()
