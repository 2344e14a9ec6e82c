"""
pytest configuration and fixtures shared by the usuarios test suites
"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import asyncpg
import pytest
from fastapi.testclient import TestClient

from app import create_app
from config.settings import Settings
from database.connection import get_db_pool
from services.usuarios_service import (
    DELETE_USUARIO_SQL,
    GET_USUARIO_SQL,
    INSERT_USUARIO_SQL,
    LIST_USUARIOS_SQL,
    UPDATE_USUARIO_SQL,
)


class FakeConnection:
    """Answers the statements issued by UsuariosService against an in-memory table"""

    def __init__(self, pool: "FakePool"):
        self.pool = pool

    def _record(self, query: str, args: Tuple[Any, ...]):
        self.pool.calls.append((query, args))
        if self.pool.fail_with is not None:
            raise self.pool.fail_with

    async def fetchval(self, query: str, *args):
        self._record(query, args)
        return 1

    async def fetch(self, query: str, *args) -> List[Dict[str, Any]]:
        self._record(query, args)
        if query != LIST_USUARIOS_SQL:
            raise AssertionError(f"Unexpected fetch: {query}")
        rows = sorted(self.pool.rows.values(), key=lambda row: row["created_at"], reverse=True)
        return [dict(row) for row in rows]

    async def fetchrow(self, query: str, *args) -> Optional[Dict[str, Any]]:
        self._record(query, args)
        if query != GET_USUARIO_SQL:
            raise AssertionError(f"Unexpected fetchrow: {query}")
        row = self.pool.rows.get(args[0])
        return dict(row) if row else None

    async def execute(self, query: str, *args) -> str:
        self._record(query, args)

        if query == INSERT_USUARIO_SQL:
            id_expediente, nombre, area = args
            if id_expediente in self.pool.rows:
                raise asyncpg.UniqueViolationError(
                    'duplicate key value violates unique constraint "usuarios_pkey"'
                )
            if self.pool.insert_status is not None:
                return self.pool.insert_status
            self.pool.rows[id_expediente] = {
                "id_expediente": id_expediente,
                "nombre": nombre,
                "area": area,
                "created_at": self.pool.next_timestamp(),
            }
            return "INSERT 0 1"

        if query == UPDATE_USUARIO_SQL:
            nombre, area, id_expediente = args
            row = self.pool.rows.get(id_expediente)
            if row is None:
                return "UPDATE 0"
            # COALESCE($n, column)
            if nombre is not None:
                row["nombre"] = nombre
            if area is not None:
                row["area"] = area
            return "UPDATE 1"

        if query == DELETE_USUARIO_SQL:
            removed = self.pool.rows.pop(args[0], None)
            return f"DELETE {1 if removed else 0}"

        raise AssertionError(f"Unexpected execute: {query}")


class FakePool:
    """Stands in for asyncpg.Pool; records every statement and its parameters"""

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.fail_with: Optional[BaseException] = None
        self.insert_status: Optional[str] = None
        self.acquired = 0
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def next_timestamp(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    @asynccontextmanager
    async def acquire(self):
        self.acquired += 1
        yield FakeConnection(self)

    async def close(self):
        pass


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def make_client(fake_pool):
    """Build a TestClient whose routes use fake_pool instead of PostgreSQL"""

    def _make(settings: Optional[Settings] = None, pool: Any = fake_pool) -> TestClient:
        app = create_app(settings or Settings())
        app.dependency_overrides[get_db_pool] = lambda: pool
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
