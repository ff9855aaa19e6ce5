"""
Pizza Gateway — Database Access
================================

What:  Async SQLAlchemy engine plus the single seam through which every routine
       in the `sal` schema is invoked.
How:   One engine per process (connection pool). Each call checks out a
       connection, runs exactly one statement, and returns it to the pool.
       The engine runs in AUTOCOMMIT, so every statement commits on its own,
       as the deployed servers' `pool.query` did.
Who:   Owned by the ServiceContext; services receive it as `db`.
When:  Created by the app factory, probed at startup, disposed at shutdown.

Statement shapes (positional parameters, bound as :p1..:pN):
    SELECT sal."fn_GetIngredients"()
    SELECT sal."fn_InsertPizzaOrder"(:p1, :p2, :p3) AS "OrderId"
    CALL sal."sp_InsertPizzaOrderItem"(:p1, :p2)

Failure handling:
    Every SQLAlchemy or socket error is logged with the routine name and
    re-raised as DatabaseError carrying the driver's own message.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from asyncpg import Record
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from pizza_gateway.config import Settings
from pizza_gateway.exceptions import DatabaseError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Build the pooled async engine.

    The pool does not connect until the first statement runs, so building the
    engine never fails on an unreachable database.
    """
    connect_args: Dict[str, Any] = {}
    if settings.db_ssl:
        connect_args["ssl"] = True

    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        isolation_level="AUTOCOMMIT",
        connect_args=connect_args,
        echo=settings.log_level == "DEBUG",
    )


def _failure_message(exc: BaseException) -> str:
    """
    Extract the driver's message from a wrapped exception.

    SQLAlchemy wraps asyncpg errors twice (DBAPIError → adapted error → asyncpg
    error); the innermost one has the text PostgreSQL sent.
    """
    orig = getattr(exc, "orig", None) or exc
    cause = getattr(orig, "__cause__", None)
    return str(cause or orig)


def _plain(value: Any) -> Any:
    """
    Render one result column for JSON.

    Composite results (SELECT schema."fn"() on a set-returning function)
    arrive as asyncpg Records and become JSON arrays of their fields,
    recursively:

        "(1,Mozzarella,12)"   (PostgreSQL text form sent by the Express servers)
        [1, "Mozzarella", 12] (sent here)

    Scalars pass through unchanged.
    """
    if isinstance(value, Record):
        return [_plain(v) for v in value.values()]
    return value


class Database:
    """
    Routine-call gateway over a pooled async engine.

    Operations:
        select_routine(): SELECT schema."fn_X"(...) → list of row dicts
        call_procedure(): CALL schema."sp_X"(...)   → None
        fetch_all():      arbitrary parameterized SELECT (login lookup)
        probe():          liveness query, never raises
        dispose():        close every pooled connection
    """

    def __init__(self, settings: Settings, engine: Optional[AsyncEngine] = None):
        self.schema = settings.db_schema
        self.engine = engine if engine is not None else create_engine_from_settings(settings)

    # ── Statement builders ────────────────────────────────────────────────

    def _qualified(self, routine: str) -> str:
        return f'{self.schema}."{routine}"'

    @staticmethod
    def _bind(args: Sequence[Any]) -> Tuple[str, Dict[str, Any]]:
        names = [f"p{i}" for i in range(1, len(args) + 1)]
        placeholders = ", ".join(f":{name}" for name in names)
        return placeholders, dict(zip(names, args))

    def build_select(self, routine: str, args: Sequence[Any], label: Optional[str] = None):
        placeholders, params = self._bind(args)
        sql = f"SELECT {self._qualified(routine)}({placeholders})"
        if label:
            sql += f' AS "{label}"'
        return sql, params

    def build_call(self, routine: str, args: Sequence[Any]):
        placeholders, params = self._bind(args)
        return f"CALL {self._qualified(routine)}({placeholders})", params

    # ── Execution ─────────────────────────────────────────────────────────

    async def _execute(
        self, sql: str, params: Dict[str, Any], operation: str, fetch: bool
    ) -> List[Row]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text(sql), params)
                if not fetch:
                    return []
                return [
                    {key: _plain(value) for key, value in row.items()}
                    for row in result.mappings().all()
                ]
        except (SQLAlchemyError, OSError) as e:
            message = _failure_message(e)
            logger.error("Routine %s failed: %s", operation, message)
            raise DatabaseError(
                message=message,
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e

    async def select_routine(
        self, routine: str, *args: Any, label: Optional[str] = None
    ) -> List[Row]:
        """Run `SELECT schema."routine"(args...)` and return the rows unmodified."""
        sql, params = self.build_select(routine, args, label=label)
        logger.debug("Executing %s with %d parameter(s)", routine, len(args))
        return await self._execute(sql, params, routine, fetch=True)

    async def call_procedure(self, routine: str, *args: Any) -> None:
        """Run `CALL schema."routine"(args...)`."""
        sql, params = self.build_call(routine, args)
        logger.debug("Calling %s with %d parameter(s)", routine, len(args))
        await self._execute(sql, params, routine, fetch=False)

    async def fetch_all(self, sql: str, params: Optional[Dict[str, Any]] = None,
                        operation: str = "query") -> List[Row]:
        return await self._execute(sql, params or {}, operation, fetch=True)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def probe(self, sql: str = "SELECT NOW()") -> bool:
        """
        Liveness check used at startup and by /health.

        Returns False instead of raising; callers decide what a dead
        database means for them.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text(sql))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Database probe failed: %s", _failure_message(e))
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()
