"""Shared fakes for exercising dbutil without a live database."""

from __future__ import annotations

from typing import Any, Callable, Sequence

import pytest

from dbutil.errors import ClientReleasedError
from dbutil.models import QueryResult


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class FakeClient:
    """PooledClient double that records statements and release calls."""

    def __init__(
        self,
        result: QueryResult | None = None,
        *,
        errors: dict[str, BaseException] | None = None,
    ) -> None:
        self.result = result if result is not None else QueryResult()
        self.errors = errors or {}
        self.statements: list[tuple[str, tuple[Any, ...]]] = []
        self.release_calls: list[bool] = []

    @property
    def released(self) -> bool:
        return bool(self.release_calls)

    async def query(self, text: str, values: Sequence[Any]) -> QueryResult:
        if self.released:
            raise ClientReleasedError("used after release")
        self.statements.append((text, tuple(values)))
        error = self.errors.get(text)
        if error is not None:
            raise error
        return self.result

    async def release(self, *, discard: bool = False) -> None:
        if self.released:
            raise ClientReleasedError("released twice")
        self.release_calls.append(discard)


class FakePool:
    """ConnectionPool double handing out FakeClient instances."""

    def __init__(self, client_factory: Callable[[], FakeClient] | None = None) -> None:
        self._client_factory = client_factory or FakeClient
        self.acquired: list[FakeClient] = []
        self.closed = False
        self.acquire_error: BaseException | None = None

    async def acquire(self) -> FakeClient:
        if self.acquire_error is not None:
            raise self.acquire_error
        client = self._client_factory()
        self.acquired.append(client)
        return client

    async def close(self) -> None:
        self.closed = True

    def subscribe(self, listener: Callable[..., None]) -> Callable[[], None]:
        return lambda: None
