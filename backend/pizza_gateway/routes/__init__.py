"""
Pizza Gateway — API Routes Package
===================================

Route Inventory:
    - auth.py:         POST /auth/login                  (bearer strategy only)
    - ingredients.py:  GET  /ingredients, GET /ingredient/{ingredientId},
                       POST /updateingredient, POST /insertingredient
    - menu.py:         GET  /appetizers, /toppings, /pizzasizes, /appetizerprices
    - orders.py:       POST /insertpizzaorder, POST /insertappetizerorder
    - health.py:       GET  /health

Every router except auth and health is mounted behind `require_auth`.
"""

from fastapi import Depends, FastAPI

from pizza_gateway.context import ServiceContext, require_auth
from pizza_gateway.routes import auth, health, ingredients, menu, orders


def register_routes(app: FastAPI, context: ServiceContext) -> None:
    """Mount the routers that apply to the configured authentication strategy."""
    protected = [Depends(require_auth)]

    if context.settings.auth_strategy == "jwt":
        app.include_router(auth.router)

    app.include_router(ingredients.router, dependencies=protected)
    app.include_router(menu.router, dependencies=protected)
    app.include_router(orders.router, dependencies=protected)
    app.include_router(health.router)
