"""Named database connection handle exposing the public query operations."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Any, Sequence

from .builder import (
    CompiledQueryAdapter,
    QueryBuilder,
    SelectOptions,
    StatementCompiler,
    default_select_options,
    insert_builder,
    new_query_builder,
    select_builder,
)
from .config import ConnectionConfig
from .executor import QueryExecutor
from .models import CompiledQuery, QueryResult, Row
from .pool import ConnectionPool, PooledClient
from .service import BasicServiceRunner, ServiceRequestConfig
from .transaction import TransactionController


class DatabaseConnection:
    """A configured pool plus the operations that run against it.

    Obtain instances through ``ConnectionRegistry.get_connection`` rather than
    constructing them directly, so each name maps to exactly one pool.
    """

    def __init__(
        self,
        name: str,
        config: ConnectionConfig,
        pool: ConnectionPool,
        *,
        silent_rollback_failures: bool = False,
    ) -> None:
        self._name = name
        self._config = config
        self._pool = pool
        self._executor = QueryExecutor(pool, config.options)
        self._compiled = CompiledQueryAdapter(self._executor)
        self._transactions = TransactionController(
            self._executor,
            silent_rollback_failures=silent_rollback_failures,
        )
        self._services = BasicServiceRunner(self._compiled)

    def __repr__(self) -> str:
        details = self._config.connection_details
        return f"DatabaseConnection(name={self._name!r}, database={details.database!r}, host={details.host!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    async def close(self) -> None:
        await self._pool.close()

    # Querying

    async def get_client(self) -> PooledClient:
        return await self._executor.get_client()

    async def query(
        self,
        text: str,
        values: Sequence[Any] | None = None,
        client: PooledClient | None = None,
    ) -> QueryResult:
        return await self._executor.query(text, values, client)

    async def query_returning_many(
        self,
        text: str,
        values: Sequence[Any] | None = None,
        client: PooledClient | None = None,
    ) -> list[Row]:
        return await self._executor.query_returning_many(text, values, client)

    async def query_returning_one(
        self,
        text: str,
        values: Sequence[Any] | None = None,
        client: PooledClient | None = None,
    ) -> Row:
        return await self._executor.query_returning_one(text, values, client)

    # Compiled queries

    async def compiled_query(self, compiled: CompiledQuery | Any, client: PooledClient | None = None) -> QueryResult:
        return await self._compiled.compiled_query(compiled, client)

    async def compiled_query_returning_many(
        self,
        compiled: CompiledQuery | Any,
        client: PooledClient | None = None,
    ) -> list[Row]:
        return await self._compiled.compiled_query_returning_many(compiled, client)

    async def compiled_query_returning_one(
        self,
        compiled: CompiledQuery | Any,
        client: PooledClient | None = None,
    ) -> Row:
        return await self._compiled.compiled_query_returning_one(compiled, client)

    def default_select_options(self) -> SelectOptions:
        return default_select_options()

    def new_query_builder(self) -> QueryBuilder:
        return new_query_builder()

    def select_builder(self, existing: QueryBuilder | None = None) -> StatementCompiler:
        return select_builder(existing)

    def insert_builder(self, existing: QueryBuilder | None = None) -> StatementCompiler:
        return insert_builder(existing)

    # Transactions

    async def begin_transaction(self, client: PooledClient) -> None:
        await self._transactions.begin(client)

    async def commit_transaction(self, client: PooledClient) -> None:
        await self._transactions.commit(client)

    async def rollback_transaction(self, client: PooledClient) -> None:
        await self._transactions.rollback(client)

    def transaction(self, client: PooledClient) -> AbstractAsyncContextManager[PooledClient]:
        return self._transactions.transaction(client)

    # Services

    async def run_basic_service(self, config: ServiceRequestConfig) -> Row | list[Row]:
        return await self._services.run(config)


__all__ = ["DatabaseConnection"]
