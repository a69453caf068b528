"""Query execution on managed (pool-leased) or caller-supplied clients."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from .config import ConfigOptions
from .errors import ClientReleasedError, QueryError
from .models import QueryResult, Row
from .pool import ConnectionPool, PooledClient
from .projector import project_rows, project_single

LOG = logging.getLogger(__name__)


class QueryExecutor:
    """Runs statements on a connection pool.

    Without a client, ``query`` leases one from the pool and always hands it
    back before returning or raising. With a client, the statement runs on
    that client and its lifecycle stays with the caller; use this for
    sequences of dependent statements and for transactions.
    """

    def __init__(self, pool: ConnectionPool, options: ConfigOptions | None = None) -> None:
        self._pool = pool
        self._options = options or ConfigOptions()

    @property
    def verbose(self) -> bool:
        return self._options.verbose

    async def get_client(self) -> PooledClient:
        """Lease a client for a series of statements; the caller must release it."""

        try:
            return await self._pool.acquire()
        except Exception as exc:
            raise QueryError("", (), f"Failed to acquire a pooled client: {exc}") from exc

    async def query(
        self,
        text: str,
        values: Sequence[Any] | None = None,
        client: PooledClient | None = None,
    ) -> QueryResult:
        """Run ``text`` with positional ``values`` (``$1`` is ``values[0]``)."""

        args = tuple(values or ())
        if client is not None:
            return await self._query_with_client(text, args, client)
        return await self._query_managed(text, args)

    async def query_returning_many(
        self,
        text: str,
        values: Sequence[Any] | None = None,
        client: PooledClient | None = None,
    ) -> list[Row]:
        """Like ``query`` but returns only the rows."""

        return project_rows(await self.query(text, values, client))

    async def query_returning_one(
        self,
        text: str,
        values: Sequence[Any] | None = None,
        client: PooledClient | None = None,
    ) -> Row:
        """Like ``query`` but returns only the first row (``{}`` when none)."""

        return project_single(await self.query_returning_many(text, values, client))

    async def _query_managed(self, text: str, args: tuple[Any, ...]) -> QueryResult:
        try:
            client = await self._pool.acquire()
        except Exception as exc:
            self._log_failure(text, exc)
            raise QueryError(text, args, f"Failed to acquire a pooled client: {exc}") from exc
        try:
            return await self._query_with_client(text, args, client)
        finally:
            await client.release()

    async def _query_with_client(
        self,
        text: str,
        args: tuple[Any, ...],
        client: PooledClient,
    ) -> QueryResult:
        if self.verbose:
            LOG.info("Executing query", extra={"statement": text, "values": args})
        try:
            result = await client.query(text, args)
        except (ClientReleasedError, QueryError):
            raise
        except Exception as exc:
            self._log_failure(text, exc)
            raise QueryError(text, args, str(exc)) from exc
        if self.verbose:
            LOG.info(
                "Query returned",
                extra={"statement": text, "status": result.status, "row_count": result.row_count},
            )
        return result

    def _log_failure(self, text: str, exc: BaseException) -> None:
        if self.verbose:
            LOG.error("Error with query", extra={"statement": text}, exc_info=exc)


__all__ = ["QueryExecutor"]
