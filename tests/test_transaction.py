"""Tests for transaction control statements."""

from __future__ import annotations

import logging

import pytest

from conftest import FakeClient, FakePool
from dbutil.errors import QueryError, RollbackError
from dbutil.executor import QueryExecutor
from dbutil.transaction import TransactionController


def _controller(**kwargs: bool) -> tuple[TransactionController, FakePool]:
    pool = FakePool()
    return TransactionController(QueryExecutor(pool), **kwargs), pool


@pytest.mark.anyio
async def test_begin_and_commit_run_on_the_given_client() -> None:
    controller, pool = _controller()
    client = FakeClient()

    await controller.begin(client)
    await controller.commit(client)

    assert client.statements == [("BEGIN", ()), ("COMMIT", ())]
    assert client.release_calls == []
    assert pool.acquired == []


@pytest.mark.anyio
async def test_commit_failure_propagates_without_release() -> None:
    controller, _ = _controller()
    client = FakeClient(errors={"COMMIT": RuntimeError("serialization failure")})

    with pytest.raises(QueryError):
        await controller.commit(client)

    assert client.release_calls == []


@pytest.mark.anyio
async def test_rollback_success_keeps_client_with_caller() -> None:
    controller, _ = _controller()
    client = FakeClient()

    await controller.rollback(client)

    assert client.statements == [("ROLLBACK", ())]
    assert client.release_calls == []


@pytest.mark.anyio
async def test_failed_rollback_discards_client_and_raises() -> None:
    controller, _ = _controller()
    client = FakeClient(errors={"ROLLBACK": RuntimeError("connection lost")})

    with pytest.raises(RollbackError) as excinfo:
        await controller.rollback(client)

    assert client.release_calls == [True]
    assert excinfo.value.client_released is True
    assert isinstance(excinfo.value.__cause__, QueryError)


@pytest.mark.anyio
async def test_failed_rollback_can_be_silenced(caplog: pytest.LogCaptureFixture) -> None:
    controller, _ = _controller(silent_rollback_failures=True)
    client = FakeClient(errors={"ROLLBACK": RuntimeError("connection lost")})

    with caplog.at_level(logging.ERROR, logger="dbutil.transaction"):
        await controller.rollback(client)

    assert client.release_calls == [True]
    assert any("Rollback failed" in record.getMessage() for record in caplog.records)


@pytest.mark.anyio
async def test_transaction_block_commits_on_success() -> None:
    controller, _ = _controller()
    client = FakeClient()

    async with controller.transaction(client) as scoped:
        await scoped.query("INSERT INTO accounts (email) VALUES ($1)", ("a@example.com",))

    assert [text for text, _ in client.statements] == [
        "BEGIN",
        "INSERT INTO accounts (email) VALUES ($1)",
        "COMMIT",
    ]


@pytest.mark.anyio
async def test_transaction_block_rolls_back_and_reraises() -> None:
    controller, _ = _controller()
    client = FakeClient()

    with pytest.raises(KeyError):
        async with controller.transaction(client):
            raise KeyError("missing")

    assert [text for text, _ in client.statements] == ["BEGIN", "ROLLBACK"]
    assert client.release_calls == []
