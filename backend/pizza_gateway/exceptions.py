"""
Pizza Gateway — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for the three failure classes the gateway
       knows about: bad client input, failed authentication, failed routine call.
How:   Each exception carries a message and an optional context dict. Global
       handlers (registered in main.py) turn them into JSON error responses.
Who:   Raised by services, the auth gate, and the Database seam.

Exception Hierarchy:
    GatewayError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    └── DatabaseError            → 500 Internal Server Error
        └── PartialOrderError    → 500, header row already committed
"""

from typing import Any, Dict, Iterable, Optional


class GatewayError(Exception):
    """
    Base exception for all gateway errors.

    Attributes:
        message:  User-facing error description
        context:  Additional debug info, logged server-side
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(GatewayError):
    """
    Raised when client input is missing or malformed.

    HTTP: 400 Bad Request. `missing` lists absent required fields and is
    returned to the client in `details`.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        missing: Optional[Iterable[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        self.missing = list(missing or [])
        if self.missing:
            ctx["missing"] = self.missing
        super().__init__(message=message, context=ctx)


class AuthenticationError(GatewayError):
    """No credential, a wrong API key, or bad login credentials. HTTP 401."""

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(GatewayError):
    """A bearer token was presented but failed verification. HTTP 403."""

    def __init__(
        self,
        message: str = "Unauthorized: Invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(GatewayError):
    """
    Raised when a routine call fails.

    What:    Connection failure, missing routine, constraint violation, bad
             parameter type: every data-access failure lands here.
    HTTP:    500 Internal Server Error

    `message` holds the raw driver message. Whether it reaches the client is
    decided by the EXPOSE_DB_ERRORS setting in the global handler.
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PartialOrderError(DatabaseError):
    """
    Raised when an order header was written but a line-item write failed.

    Header and item writes are independent statements, so the header and
    the first `items_written` items stay committed. The response carries
    both values so the caller can reconcile the order.
    """

    def __init__(
        self,
        message: str,
        order_id: Any,
        items_written: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({"order_id": order_id, "items_written": items_written})
        super().__init__(message=message, context=ctx)
        self.order_id = order_id
        self.items_written = items_written
