"""
Pizza Gateway — Service Context
================================

What:  The explicitly constructed bundle of process-wide resources (settings,
       database pool, active authenticator) plus the FastAPI dependencies that
       hand it to routes.
How:   create_app() builds one ServiceContext and stores it on `app.state`.
       The lifespan calls startup()/shutdown(); routes reach it through
       `get_context` and `require_auth`.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, Request

from pizza_gateway.config import Settings
from pizza_gateway.database import Database
from pizza_gateway.exceptions import AuthenticationError, ForbiddenError
from pizza_gateway.services.auth_service import (
    AuthFailure,
    Authenticator,
    build_authenticator,
)

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    settings: Settings
    database: Database
    authenticator: Authenticator
    unhandled_errors: int = 0
    database_ready: bool = False

    @classmethod
    def create(cls, settings: Settings, database: Optional[Database] = None) -> "ServiceContext":
        return cls(
            settings=settings,
            database=database if database is not None else Database(settings),
            authenticator=build_authenticator(settings),
        )

    async def startup(self) -> None:
        """
        Probe the pool with SELECT NOW().

        A failed probe is logged and startup continues; requests then fail
        one by one with DatabaseError.
        """
        self.database_ready = await self.database.probe("SELECT NOW()")
        if self.database_ready:
            logger.info("Connected to PostgreSQL")
        else:
            logger.error("Failed to connect to PostgreSQL; continuing without a live pool")

    async def shutdown(self) -> None:
        await self.database.dispose()
        logger.info("Database pool disposed")

    def record_unhandled_error(self, context: Dict[str, Any]) -> None:
        """Event-loop exception handler: count and log, never re-raise."""
        self.unhandled_errors += 1
        exc = context.get("exception")
        logger.error(
            "Unhandled asynchronous error: %s",
            context.get("message", "unknown"),
            exc_info=exc if isinstance(exc, BaseException) else None,
            extra={"unhandled_errors": self.unhandled_errors},
        )


def get_context(request: Request) -> ServiceContext:
    return request.app.state.context


def get_database(context: ServiceContext = Depends(get_context)) -> Database:
    return context.database


async def require_auth(
    request: Request, context: ServiceContext = Depends(get_context)
) -> Dict[str, Any]:
    """
    Route dependency guarding every data route.

    Runs before the handler body, so a rejected request never reaches a
    service or the database.
        missing credential          → 401
        bad API key                 → 401
        invalid or expired token    → 403
    """
    authenticator = context.authenticator
    result = await authenticator.verify(request.headers)
    if result.ok:
        request.state.user = result.identity
        return result.identity

    logger.warning(
        "Rejected %s %s: %s (%s)",
        request.method,
        request.url.path,
        result.failure.value,
        result.detail,
    )
    if result.failure is AuthFailure.MISSING:
        if authenticator.name == "jwt":
            raise AuthenticationError(message="Unauthorized: No token provided")
        raise AuthenticationError(message="Unauthorized: Missing API key")
    if authenticator.name == "api_key":
        raise AuthenticationError(message="Unauthorized: Invalid API key")
    raise ForbiddenError(
        message="Unauthorized: Invalid token",
        context={"reason": result.failure.value},
    )
