"""Menu lookups. Each route returns its routine's rows unmodified."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from pizza_gateway.context import get_database
from pizza_gateway.database import Database
from pizza_gateway.services.catalog_service import catalog_service

router = APIRouter(tags=["Menu"])


@router.get("/appetizers", summary="Appetizers (sal.fn_GetAppetizers)")
async def list_appetizers(db: Database = Depends(get_database)) -> List[Dict[str, Any]]:
    return await catalog_service.list_appetizers(db)


@router.get("/toppings", summary="Toppings (sal.fn_GetToppings)")
async def list_toppings(db: Database = Depends(get_database)) -> List[Dict[str, Any]]:
    return await catalog_service.list_toppings(db)


@router.get("/pizzasizes", summary="Pizza sizes (sal.fn_GetPizzaSizes)")
async def list_pizza_sizes(db: Database = Depends(get_database)) -> List[Dict[str, Any]]:
    return await catalog_service.list_pizza_sizes(db)


@router.get("/appetizerprices", summary="Appetizer prices (sal.fn_GetAppetizerPrices)")
async def list_appetizer_prices(db: Database = Depends(get_database)) -> List[Dict[str, Any]]:
    return await catalog_service.list_appetizer_prices(db)
