from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from stintlab import app_context
from stintlab.app.garage import PostgresGarageRepository, SessionGarageLink
from stintlab.app.roles import PostgresRoleStore


class _FakeCursor:
    def __init__(self, db: "_FakeConnection") -> None:
        self._db = db
        self._results: List[Dict[str, Any]] = []

    def execute(self, sql: str, params: Any = None) -> None:
        self._db.statements.append((" ".join(sql.split()), params))
        self._results = list(self._db.responses.pop(0)) if self._db.responses else []

    def fetchone(self) -> Optional[Dict[str, Any]]:
        return self._results[0] if self._results else None

    def fetchall(self) -> List[Dict[str, Any]]:
        return list(self._results)

    def close(self) -> None:
        pass


class _FakeConnection:
    def __init__(self, responses: Optional[List[List[Dict[str, Any]]]] = None) -> None:
        self.responses = list(responses or [])
        self.statements: List[Tuple[str, Any]] = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self, cursor_factory=None) -> _FakeCursor:
        return _FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _reset_context():
    yield
    app_context.reset()


def test_get_conn_requires_configuration() -> None:
    app_context.reset()

    with pytest.raises(RuntimeError):
        app_context.get_conn()


def test_delete_car_runs_cascade_in_single_transaction() -> None:
    connection = _FakeConnection(
        responses=[
            [{"session_id": "session-1"}],
            [{"id": "setup-1"}, {"id": "setup-2"}],
            [{"id": "car-1"}],
        ]
    )
    app_context.configure(get_conn=lambda: connection)
    repository = PostgresGarageRepository()

    summary = repository.delete_car("car-1")

    assert summary.unlinked_session_ids == ("session-1",)
    assert summary.deleted_setup_ids == ("setup-1", "setup-2")
    assert summary.deleted_car_ids == ("car-1",)
    assert [sql.split()[0] for sql, _ in connection.statements] == ["UPDATE", "DELETE", "DELETE"]
    assert connection.rollbacks == 0
    assert connection.commits >= 1
    assert connection.closed is True


def test_failed_write_rolls_back() -> None:
    connection = _FakeConnection(responses=[[]])
    app_context.configure(get_conn=lambda: connection)
    repository = PostgresGarageRepository()

    with pytest.raises(RuntimeError):
        repository.save_link(SessionGarageLink(session_id="session-1"))

    assert connection.rollbacks >= 1
    assert connection.commits == 0


def test_explicit_connection_is_not_committed() -> None:
    connection = _FakeConnection(
        responses=[
            [
                {
                    "id": "car-1",
                    "brand": "Scalextric",
                    "model": "Mini",
                    "scale": "1:32",
                    "motor": None,
                    "weight": None,
                    "notes": None,
                    "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
                }
            ]
        ]
    )
    repository = PostgresGarageRepository(conn=connection)

    car = repository.get_car("car-1")

    assert car is not None and car.scale == "1:32"
    assert connection.commits == 0
    assert connection.closed is False


def test_find_links_without_ids_skips_query() -> None:
    connection = _FakeConnection()
    repository = PostgresGarageRepository(conn=connection)

    assert repository.find_links() == []
    assert connection.statements == []


class _FakeAcquire:
    def __init__(self, connection: "_FakeAsyncConnection") -> None:
        self._connection = connection

    async def __aenter__(self) -> "_FakeAsyncConnection":
        return self._connection

    async def __aexit__(self, *exc_info) -> None:
        return None


class _FakeAsyncConnection:
    def __init__(self, rows: List[Dict[str, str]]) -> None:
        self.rows = rows
        self.queries: List[Tuple[str, Tuple[Any, ...]]] = []

    async def fetch(self, sql: str, *args: Any) -> List[Dict[str, str]]:
        self.queries.append((sql, args))
        return self.rows


class _FakePool:
    def __init__(self, connection: _FakeAsyncConnection) -> None:
        self._connection = connection

    def acquire(self) -> _FakeAcquire:
        return _FakeAcquire(self._connection)


def test_postgres_role_store_reads_role_column() -> None:
    connection = _FakeAsyncConnection([{"role": "club_admin"}, {"role": "user"}])
    store = PostgresRoleStore(_FakePool(connection))  # type: ignore[arg-type]

    roles = asyncio.run(store.fetch_roles("u-1"))

    assert roles == ["club_admin", "user"]
    assert connection.queries[0][1] == ("u-1",)
    assert "user_roles" in connection.queries[0][0]
