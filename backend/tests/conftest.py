"""
Pizza Gateway — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The app is built with create_app() around a ServiceContext whose
       Database is an AsyncMock, and exercised through an HTTPX AsyncClient
       over ASGITransport. No PostgreSQL is needed.

Fixture Hierarchy:
    ├── mock_db:         AsyncMock(spec=Database), schema "sal"
    ├── jwt_settings / api_key_settings
    ├── build_client:    async context manager factory (settings → client, context)
    ├── client:          client for the jwt strategy
    ├── api_key_client:  client for the api_key strategy
    └── auth_headers:    Authorization header with a valid token
"""

import os
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Settings must not pick up a developer's environment or reach a real database.
os.environ["AUTH_STRATEGY"] = "jwt"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["API_KEY"] = "test-api-key-not-real"
os.environ["DB_SSL"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from pizza_gateway.config import Settings  # noqa: E402
from pizza_gateway.context import ServiceContext  # noqa: E402
from pizza_gateway.database import Database  # noqa: E402
from pizza_gateway.main import create_app  # noqa: E402

TEST_JWT_SECRET = "test-secret-not-real"
TEST_API_KEY = "test-api-key-not-real"


def make_settings(**overrides) -> Settings:
    values = {
        "auth_strategy": "jwt",
        "jwt_secret": TEST_JWT_SECRET,
        "api_key": TEST_API_KEY,
        "db_ssl": False,
        "log_level": "WARNING",
        "rate_limit_requests": 1000,
        "_env_file": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def mock_db():
    """
    A Database stand-in.

    Usage:
        mock_db.select_routine.return_value = [{"fn_GetToppings": ...}]
        mock_db.call_procedure.side_effect = DatabaseError("boom")
    """
    db = AsyncMock(spec=Database)
    db.schema = "sal"
    db.select_routine.return_value = []
    db.call_procedure.return_value = None
    db.fetch_all.return_value = []
    db.probe.return_value = True
    return db


@pytest.fixture
def jwt_settings():
    return make_settings()


@pytest.fixture
def api_key_settings():
    return make_settings(auth_strategy="api_key")


@pytest.fixture
def build_client(mock_db):
    """
    Factory for clients with custom settings.

    Usage:
        async with build_client(make_settings(expose_db_errors=False)) as (client, ctx):
            ...
    """

    @asynccontextmanager
    async def _build(settings: Settings):
        context = ServiceContext.create(settings, database=mock_db)
        app = create_app(context=context)
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac, context

    return _build


@pytest_asyncio.fixture
async def client(build_client, jwt_settings):
    async with build_client(jwt_settings) as (ac, _):
        yield ac


@pytest_asyncio.fixture
async def api_key_client(build_client, api_key_settings):
    async with build_client(api_key_settings) as (ac, _):
        yield ac


@pytest.fixture
def auth_headers(jwt_settings):
    """Authorization header carrying a fresh token for user 1 (alice)."""
    authenticator = ServiceContext.create(jwt_settings, database=AsyncMock(spec=Database)).authenticator
    token = authenticator.issue_token(1, "alice")
    return {"Authorization": f"Bearer {token}"}
