"""
Pizza Gateway — Order Schemas
==============================

What:  Request bodies and acknowledgements for the two multi-step write flows.
How:   Array-shaped fields are typed loosely (`Any`) so OrderService can apply
       the exact "is it an array?" and item-cleaning rules and answer with its
       own 400 messages instead of a generic schema error.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


class PizzaOrderRequest(BaseModel):
    """
    Body of POST /insertpizzaorder.

    Example:
        {"sizeid": 2, "toppingids": [5, 7], "orderdate": "2024-01-01"}
    """
    sizeid: Optional[int] = Field(default=None, description="Pizza size ID")
    toppingids: Optional[Any] = Field(default=None, description="Array of topping IDs")
    orderdate: Optional[date] = Field(default=None, description="Date of order (ISO 8601)")


class PizzaOrderResponse(BaseModel):
    message: str = "Pizza order created successfully"
    order_id: Any = Field(alias="orderId")
    topping_count: int = Field(alias="toppingCount")

    model_config = {"populate_by_name": True}


class AppetizerOrderRequest(BaseModel):
    """
    Body of POST /insertappetizerorder.

    Example:
        {
            "appetizerorderdate": "2024-01-01",
            "items": [{"ingredientid": 3, "quantity": 2}],
            "ordertotal": 12.50
        }

    `ordertotal` is optional; when omitted the sum of item quantities is used.
    """
    appetizerorderdate: Optional[date] = Field(default=None)
    items: Optional[Any] = Field(default=None, description="Line items")
    ordertotal: Optional[Decimal] = Field(default=None, description="Overall total (money)")


class AppetizerOrderResponse(BaseModel):
    message: str = "Appetizer order created successfully"
    order_id: Any = Field(alias="orderId")
    item_count: int = Field(alias="itemCount")
    order_total: Union[int, float] = Field(alias="orderTotal")

    model_config = {"populate_by_name": True}
