"""
Pizza Gateway — Request/Response Schemas
=========================================

Pydantic models for the JSON contract of each route. Field aliases carry the
exact wire names (`IngredientId`, `inDescription`, `toppingids`, `orderId`...);
attribute names are snake_case.
"""
