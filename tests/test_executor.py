"""Tests for the managed and client-scoped query paths."""

from __future__ import annotations

import asyncio
import logging

import pytest

from conftest import FakeClient, FakePool
from dbutil.config import ConfigOptions
from dbutil.errors import QueryError
from dbutil.executor import QueryExecutor
from dbutil.models import QueryResult


@pytest.mark.anyio
async def test_managed_query_releases_client_once_on_success() -> None:
    pool = FakePool(lambda: FakeClient(QueryResult(rows=({"id": 1},), status="SELECT 1")))
    executor = QueryExecutor(pool)

    result = await executor.query("SELECT id FROM accounts WHERE id = $1", [1])

    assert result.rows == ({"id": 1},)
    assert len(pool.acquired) == 1
    client = pool.acquired[0]
    assert client.statements == [("SELECT id FROM accounts WHERE id = $1", (1,))]
    assert client.release_calls == [False]


@pytest.mark.anyio
async def test_managed_query_releases_client_once_on_failure() -> None:
    cause = RuntimeError("relation does not exist")
    pool = FakePool(lambda: FakeClient(errors={"SELECT * FROM missing": cause}))
    executor = QueryExecutor(pool)

    with pytest.raises(QueryError) as excinfo:
        await executor.query("SELECT * FROM missing", ("x",))

    assert excinfo.value.__cause__ is cause
    assert excinfo.value.statement == "SELECT * FROM missing"
    assert excinfo.value.values == ("x",)
    assert len(pool.acquired) == 1
    assert pool.acquired[0].release_calls == [False]


@pytest.mark.anyio
async def test_managed_query_releases_client_when_cancelled() -> None:
    pool = FakePool(lambda: FakeClient(errors={"SELECT pg_sleep(10)": asyncio.CancelledError()}))
    executor = QueryExecutor(pool)

    with pytest.raises(asyncio.CancelledError):
        await executor.query("SELECT pg_sleep(10)")

    assert pool.acquired[0].release_calls == [False]


@pytest.mark.anyio
async def test_managed_query_wraps_acquire_failures() -> None:
    pool = FakePool()
    pool.acquire_error = OSError("connection refused")
    executor = QueryExecutor(pool)

    with pytest.raises(QueryError) as excinfo:
        await executor.query("SELECT 1")

    assert isinstance(excinfo.value.__cause__, OSError)
    assert pool.acquired == []


@pytest.mark.anyio
async def test_client_query_never_touches_the_pool() -> None:
    pool = FakePool()
    executor = QueryExecutor(pool)
    client = FakeClient(QueryResult(rows=({"n": 1},)))

    await executor.query("SELECT 1 AS n", None, client)
    await executor.query("SELECT 2 AS n", [], client)

    assert pool.acquired == []
    assert client.release_calls == []
    assert client.statements == [("SELECT 1 AS n", ()), ("SELECT 2 AS n", ())]


@pytest.mark.anyio
async def test_client_query_errors_leave_client_with_caller() -> None:
    client = FakeClient(errors={"UPDATE accounts SET x = 1": ValueError("boom")})
    executor = QueryExecutor(FakePool())

    with pytest.raises(QueryError):
        await executor.query("UPDATE accounts SET x = 1", (), client)

    assert client.release_calls == []


@pytest.mark.anyio
async def test_query_returning_many_projects_rows() -> None:
    pool = FakePool(lambda: FakeClient(QueryResult(rows=({"id": 1}, {"id": 2}))))
    executor = QueryExecutor(pool)

    assert await executor.query_returning_many("SELECT id FROM accounts") == [{"id": 1}, {"id": 2}]


@pytest.mark.anyio
async def test_query_returning_many_handles_empty_results() -> None:
    executor = QueryExecutor(FakePool())

    assert await executor.query_returning_many("DELETE FROM accounts") == []


@pytest.mark.anyio
async def test_query_returning_one_reduces_to_first_row() -> None:
    pool = FakePool(lambda: FakeClient(QueryResult(rows=({"id": 1}, {"id": 2}))))
    executor = QueryExecutor(pool)

    assert await executor.query_returning_one("SELECT id FROM accounts") == {"id": 1}
    assert await QueryExecutor(FakePool()).query_returning_one("SELECT 1 WHERE false") == {}


@pytest.mark.anyio
async def test_get_client_leaves_release_to_caller() -> None:
    pool = FakePool()
    executor = QueryExecutor(pool)

    client = await executor.get_client()
    await executor.query("SELECT 1", (), client)

    assert pool.acquired == [client]
    assert client.release_calls == []


@pytest.mark.anyio
async def test_verbose_logging_is_a_side_channel(caplog: pytest.LogCaptureFixture) -> None:
    pool = FakePool(lambda: FakeClient(QueryResult(rows=({"id": 7},), status="SELECT 1")))
    executor = QueryExecutor(pool, ConfigOptions(verbose=True))

    with caplog.at_level(logging.INFO, logger="dbutil.executor"):
        result = await executor.query("SELECT id FROM accounts WHERE id = $1", [7])

    assert result.rows == ({"id": 7},)
    messages = [record.getMessage() for record in caplog.records]
    assert "Executing query" in messages
    assert "Query returned" in messages
    executing = next(record for record in caplog.records if record.getMessage() == "Executing query")
    assert executing.statement == "SELECT id FROM accounts WHERE id = $1"
    assert executing.values == (7,)


@pytest.mark.anyio
async def test_quiet_executor_does_not_log_statements(caplog: pytest.LogCaptureFixture) -> None:
    executor = QueryExecutor(FakePool())

    with caplog.at_level(logging.DEBUG, logger="dbutil.executor"):
        await executor.query("SELECT 1")

    assert [record for record in caplog.records if record.name == "dbutil.executor"] == []
