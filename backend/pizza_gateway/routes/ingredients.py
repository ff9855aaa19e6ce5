"""
Pizza Gateway — Ingredient Routes
==================================

What:  Ingredient lookups and writes.
How:   Thin handlers: pick the database from the service context, delegate to
       CatalogService, return rows or a fixed acknowledgement.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Path

from pizza_gateway.context import get_database
from pizza_gateway.database import Database
from pizza_gateway.schemas.catalog import IngredientCreate, IngredientUpdate
from pizza_gateway.schemas.common import ErrorResponse, MessageResponse
from pizza_gateway.services.catalog_service import catalog_service

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Ingredients"],
    responses={
        401: {"description": "Missing credential", "model": ErrorResponse},
        403: {"description": "Invalid or expired token", "model": ErrorResponse},
        500: {"description": "Database failure", "model": ErrorResponse},
    },
)


@router.get("/ingredients", summary="All ingredients (sal.fn_GetIngredients)")
async def list_ingredients(db: Database = Depends(get_database)) -> List[Dict[str, Any]]:
    return await catalog_service.list_ingredients(db)


@router.get(
    "/ingredient/{ingredientId}",
    summary="One ingredient (sal.fn_GetIngredientById)",
)
async def get_ingredient(
    ingredientId: int = Path(description="Ingredient ID"),  # noqa: N803
    db: Database = Depends(get_database),
) -> List[Dict[str, Any]]:
    return await catalog_service.get_ingredient(db, ingredientId)


@router.post(
    "/updateingredient",
    response_model=MessageResponse,
    summary="Update an ingredient (sal.sp_UpdateIngredient)",
)
async def update_ingredient(
    body: IngredientUpdate,
    db: Database = Depends(get_database),
) -> MessageResponse:
    await catalog_service.update_ingredient(db, body)
    return MessageResponse(message="Ingredient updated successfully")


@router.post(
    "/insertingredient",
    response_model=MessageResponse,
    summary="Insert an ingredient (sal.sp_InsertIngredient)",
)
async def insert_ingredient(
    body: IngredientCreate,
    db: Database = Depends(get_database),
) -> MessageResponse:
    await catalog_service.insert_ingredient(db, body)
    return MessageResponse(message="Ingredient inserted successfully")
