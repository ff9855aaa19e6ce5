"""
Pizza Gateway — Catalog Service
================================

What:  Passthrough operations for ingredients and menu lookups.
How:   One routine call per operation. Lookup rows are returned exactly as the
       routine produced them; writes return nothing and the route answers with
       a fixed acknowledgement.

Routine contract (schema `sal`, positional):
    fn_GetIngredients()                     → rows
    fn_GetIngredientById(IngredientId)      → rows
    sp_UpdateIngredient(IngredientId, inDescription, inPackSize, inPackType,
                        inSmallServing, inLargeServing, inKingKoldPrice,
                        inPiquaPizzaSupply, inTopping, inAppetizer)
    sp_InsertIngredient(inDescription, ... , inAppetizer)
    fn_GetAppetizers() / fn_GetToppings() / fn_GetPizzaSizes() /
    fn_GetAppetizerPrices()                 → rows
"""

import logging
from decimal import Decimal
from typing import Any, List, Optional

from pizza_gateway.database import Database, Row
from pizza_gateway.exceptions import ValidationError
from pizza_gateway.schemas.catalog import IngredientCreate, IngredientFields, IngredientUpdate

logger = logging.getLogger(__name__)

GET_INGREDIENTS = "fn_GetIngredients"
GET_INGREDIENT_BY_ID = "fn_GetIngredientById"
UPDATE_INGREDIENT = "sp_UpdateIngredient"
INSERT_INGREDIENT = "sp_InsertIngredient"
GET_APPETIZERS = "fn_GetAppetizers"
GET_TOPPINGS = "fn_GetToppings"
GET_PIZZA_SIZES = "fn_GetPizzaSizes"
GET_APPETIZER_PRICES = "fn_GetAppetizerPrices"


def as_money(value: Optional[Any]) -> Optional[str]:
    """asyncpg encodes `money` parameters from text."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def _ingredient_args(payload: IngredientFields) -> List[Any]:
    return [
        payload.description,
        payload.pack_size,
        payload.pack_type,
        payload.small_serving,
        payload.large_serving,
        as_money(payload.king_kold_price),
        as_money(payload.piqua_pizza_supply),
        payload.topping,
        payload.appetizer,
    ]


class CatalogService:

    async def list_ingredients(self, db: Database) -> List[Row]:
        return await db.select_routine(GET_INGREDIENTS)

    async def get_ingredient(self, db: Database, ingredient_id: int) -> List[Row]:
        return await db.select_routine(GET_INGREDIENT_BY_ID, ingredient_id)

    async def update_ingredient(self, db: Database, payload: IngredientUpdate) -> None:
        if payload.ingredient_id is None:
            raise ValidationError(
                message="Missing required fields: IngredientId",
                missing=["IngredientId"],
            )
        await db.call_procedure(
            UPDATE_INGREDIENT, payload.ingredient_id, *_ingredient_args(payload)
        )
        logger.info("Ingredient %s updated", payload.ingredient_id)

    async def insert_ingredient(self, db: Database, payload: IngredientCreate) -> None:
        if not payload.description:
            raise ValidationError(
                message="Missing required fields: inDescription",
                missing=["inDescription"],
            )
        await db.call_procedure(INSERT_INGREDIENT, *_ingredient_args(payload))
        logger.info("Ingredient %r inserted", payload.description)

    async def list_appetizers(self, db: Database) -> List[Row]:
        return await db.select_routine(GET_APPETIZERS)

    async def list_toppings(self, db: Database) -> List[Row]:
        return await db.select_routine(GET_TOPPINGS)

    async def list_pizza_sizes(self, db: Database) -> List[Row]:
        return await db.select_routine(GET_PIZZA_SIZES)

    async def list_appetizer_prices(self, db: Database) -> List[Row]:
        return await db.select_routine(GET_APPETIZER_PRICES)


catalog_service = CatalogService()
