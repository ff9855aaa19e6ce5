"""
Ingredient write payloads.

Field order matches the positional signatures of sal."sp_InsertIngredient" and
sal."sp_UpdateIngredient". Omitted fields are forwarded as SQL NULL.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class IngredientFields(BaseModel):
    description: Optional[str] = Field(default=None, alias="inDescription")
    pack_size: Optional[int] = Field(default=None, alias="inPackSize")
    pack_type: Optional[str] = Field(default=None, alias="inPackType")
    small_serving: Optional[Decimal] = Field(default=None, alias="inSmallServing")
    large_serving: Optional[Decimal] = Field(default=None, alias="inLargeServing")
    # money columns
    king_kold_price: Optional[Decimal] = Field(default=None, alias="inKingKoldPrice")
    piqua_pizza_supply: Optional[Decimal] = Field(default=None, alias="inPiquaPizzaSupply")
    topping: Optional[bool] = Field(default=None, alias="inTopping")
    appetizer: Optional[bool] = Field(default=None, alias="inAppetizer")

    model_config = {"populate_by_name": True}


class IngredientCreate(IngredientFields):
    """Body of POST /insertingredient."""


class IngredientUpdate(IngredientFields):
    """Body of POST /updateingredient."""

    ingredient_id: Optional[int] = Field(default=None, alias="IngredientId")
