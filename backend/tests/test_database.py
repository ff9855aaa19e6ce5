"""
Pizza Gateway — Database Seam Tests
====================================

What we test:
    ✅ Statement shapes for SELECT fn(...) and CALL sp(...)
    ✅ Rows come back as plain dicts in routine order
    ✅ Composite (record) columns become JSON arrays
    ✅ Driver and socket errors become DatabaseError with the driver message
    ✅ probe() reports instead of raising
❌ Real PostgreSQL round trips (no database in unit tests)
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import DBAPIError

from pizza_gateway import database as database_module
from pizza_gateway.database import Database
from pizza_gateway.exceptions import DatabaseError

from conftest import make_settings


@pytest.fixture
def engine_and_conn():
    engine = MagicMock()
    conn = AsyncMock()
    engine.connect.return_value.__aenter__.return_value = conn
    engine.connect.return_value.__aexit__.return_value = False
    engine.dispose = AsyncMock()
    return engine, conn


@pytest.fixture
def database(engine_and_conn):
    engine, _ = engine_and_conn
    return Database(make_settings(), engine=engine)


class TestStatementShapes:
    """Tests for the SQL text and bound parameters."""

    def test_select_without_args(self, database):
        """A routine without arguments should get empty parentheses."""
        sql, params = database.build_select("fn_GetIngredients", ())

        assert sql == 'SELECT sal."fn_GetIngredients"()'
        assert params == {}

    def test_select_with_label(self, database):
        """Header functions should be labelled with the OrderId alias."""
        sql, params = database.build_select("fn_InsertPizzaOrder", (2, 3, "2024-01-01"), label="OrderId")

        assert sql == 'SELECT sal."fn_InsertPizzaOrder"(:p1, :p2, :p3) AS "OrderId"'
        assert params == {"p1": 2, "p2": 3, "p3": "2024-01-01"}

    def test_call(self, database):
        """Procedures should be invoked with CALL and positional parameters."""
        sql, params = database.build_call("sp_InsertPizzaOrderItem", (42, 5))

        assert sql == 'CALL sal."sp_InsertPizzaOrderItem"(:p1, :p2)'
        assert params == {"p1": 42, "p2": 5}

    def test_schema_is_configurable(self, engine_and_conn):
        """DB_SCHEMA should qualify every routine."""
        engine, _ = engine_and_conn
        db = Database(make_settings(db_schema="staging"), engine=engine)

        sql, _ = db.build_call("sp_InsertIngredient", ())

        assert sql == 'CALL staging."sp_InsertIngredient"()'


class TestExecution:
    """Tests for running statements through the engine."""

    @pytest.mark.asyncio
    async def test_select_routine_returns_rows(self, database, engine_and_conn):
        """Rows should come back unmodified, in routine order."""
        _, conn = engine_and_conn
        result = MagicMock()
        result.mappings.return_value.all.return_value = [
            {"fn_GetToppings": "(1,Pepperoni)"},
            {"fn_GetToppings": "(2,Olives)"},
        ]
        conn.execute.return_value = result

        rows = await database.select_routine("fn_GetToppings")

        assert rows == [{"fn_GetToppings": "(1,Pepperoni)"}, {"fn_GetToppings": "(2,Olives)"}]
        statement, params = conn.execute.await_args.args
        assert str(statement) == 'SELECT sal."fn_GetToppings"()'
        assert params == {}

    @pytest.mark.asyncio
    async def test_call_procedure_binds_positionally(self, database, engine_and_conn):
        """Arguments should bind as :p1..:pN in call order."""
        _, conn = engine_and_conn

        await database.call_procedure("sp_InsertAppetizerOrderItem", 17, 3, 2)

        statement, params = conn.execute.await_args.args
        assert str(statement) == 'CALL sal."sp_InsertAppetizerOrderItem"(:p1, :p2, :p3)'
        assert params == {"p1": 17, "p2": 3, "p3": 2}

    @pytest.mark.asyncio
    async def test_composite_columns_become_arrays(self, database, engine_and_conn, monkeypatch):
        """Record-valued columns should render as JSON arrays, nested ones too."""

        class FakeRecord:
            def __init__(self, *fields):
                self._fields = fields

            def values(self):
                return iter(self._fields)

        monkeypatch.setattr(database_module, "Record", FakeRecord)
        _, conn = engine_and_conn
        result = MagicMock()
        result.mappings.return_value.all.return_value = [
            {"fn_GetIngredients": FakeRecord(1, "Mozzarella", FakeRecord("case", 12))},
            {"fn_GetIngredients": None},
        ]
        conn.execute.return_value = result

        rows = await database.select_routine("fn_GetIngredients")

        assert rows == [
            {"fn_GetIngredients": [1, "Mozzarella", ["case", 12]]},
            {"fn_GetIngredients": None},
        ]

    @pytest.mark.asyncio
    async def test_driver_error_is_wrapped(self, database, engine_and_conn):
        """Driver errors should become DatabaseError with the PostgreSQL message."""
        _, conn = engine_and_conn
        conn.execute.side_effect = DBAPIError(
            "SELECT ...", {}, Exception("function sal.fn_Nope() does not exist")
        )

        with pytest.raises(DatabaseError) as exc_info:
            await database.select_routine("fn_Nope")

        assert exc_info.value.message == "function sal.fn_Nope() does not exist"
        assert exc_info.value.context["operation"] == "fn_Nope"

    @pytest.mark.asyncio
    async def test_connection_error_is_wrapped(self, database, engine_and_conn):
        """Socket errors should become DatabaseError too."""
        engine, _ = engine_and_conn
        engine.connect.return_value.__aenter__.side_effect = OSError("Connection refused")

        with pytest.raises(DatabaseError, match="Connection refused"):
            await database.call_procedure("sp_InsertIngredient", "Basil")


class TestLifecycle:
    """Tests for probe and dispose."""

    @pytest.mark.asyncio
    async def test_probe_success(self, database, engine_and_conn):
        """A working connection should probe True."""
        assert await database.probe() is True

    @pytest.mark.asyncio
    async def test_probe_failure_does_not_raise(self, database, engine_and_conn):
        """A failing probe should return False instead of raising."""
        _, conn = engine_and_conn
        conn.execute.side_effect = OSError("Name or service not known")

        assert await database.probe() is False

    @pytest.mark.asyncio
    async def test_dispose(self, database, engine_and_conn):
        """dispose() should close the engine pool."""
        engine, _ = engine_and_conn

        await database.dispose()

        engine.dispose.assert_awaited_once()
