"""Shared test fixtures for sqlgate tests."""
import pytest
from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import MagicMock

from sqlgate.config import GatewayConfig
from sqlgate.db import GatewayPool, PoolState


def column(name, type_code=23, internal_size=4):
    """A cursor.description entry shaped like psycopg's Column."""
    return SimpleNamespace(name=name, type_code=type_code, internal_size=internal_size)


class FakeCursor:
    """Async cursor double: records executed statements, replays a result."""

    def __init__(self, rows=None, description=None, rowcount=-1, error=None):
        self.rows = rows or []
        self.description = None
        self._description = description
        self.rowcount = rowcount
        self.error = error
        self.executed = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def execute(self, query, params=None, prepare=None):
        self.executed.append((query, params))
        if self.error is not None:
            raise self.error
        self.description = self._description

    async def fetchall(self):
        return list(self.rows)


class FakeConnection:
    def __init__(self, cursors):
        self._cursors = list(cursors)
        self.cursors_used = []
        self.adapters = SimpleNamespace(
            types={
                23: SimpleNamespace(name="int4"),
                25: SimpleNamespace(name="text"),
            }
        )

    def cursor(self):
        cur = self._cursors.pop(0)
        self.cursors_used.append(cur)
        return cur


def make_ready_pool(conn, acquire_error=None):
    """A GatewayPool in READY state whose inner psycopg pool is mocked.

    psycopg_pool's .connection() returns an async context manager (not a
    coroutine), so the mock replicates that.
    """
    inner = MagicMock()

    @asynccontextmanager
    async def fake_connection(timeout=None):
        if acquire_error is not None:
            raise acquire_error
        yield conn

    inner.connection = fake_connection
    pool = GatewayPool(GatewayConfig())
    pool._pool = inner
    pool._state = PoolState.READY
    return pool


@pytest.fixture
def gateway_config():
    return GatewayConfig()


@pytest.fixture
def sample_rows():
    return [
        {"id": 1, "name": "Alice", "email": "alice@example.com"},
        {"id": 2, "name": "Bob", "email": "bob@example.com"},
    ]


@pytest.fixture
def sample_columns():
    return [
        {
            "column_name": "id",
            "data_type": "integer",
            "is_nullable": "NO",
            "column_default": "nextval('users_id_seq'::regclass)",
        },
        {
            "column_name": "name",
            "data_type": "character varying",
            "is_nullable": "YES",
            "column_default": None,
        },
    ]


@pytest.fixture
def fake_cursor():
    return FakeCursor


@pytest.fixture
def fake_connection():
    return FakeConnection


@pytest.fixture
def ready_pool():
    return make_ready_pool


@pytest.fixture
def col():
    return column
