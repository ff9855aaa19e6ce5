"""
Pizza Gateway — Application Package Initializer
================================================

What: HTTP-to-database gateway for the pizzeria's PostgreSQL schema (`sal`).
How:  Every route authenticates the caller, then forwards the request to exactly
      one stored function or procedure and returns the rows as JSON.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependency
    ├─────────────────────────────────────┤
    │     Services (parameter marshalling)│  ← required fields, order loops
    ├─────────────────────────────────────┤
    │        Database (routine calls)     │  ← SELECT sal."fn_*" / CALL sal."sp_*"
    └─────────────────────────────────────┘

    The database schema owns all data and logic; nothing here models it.
"""

__version__ = "1.0.0"
