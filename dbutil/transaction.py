"""BEGIN / COMMIT / ROLLBACK on caller-owned clients.

No transaction state is tracked here. Callers are expected to issue
``begin`` before ``commit`` or ``rollback`` on the same client and to
release the client themselves afterwards.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from .errors import ClientReleasedError, RollbackError
from .executor import QueryExecutor
from .pool import PooledClient

LOG = logging.getLogger(__name__)


class TransactionController:
    """Issues transaction control statements through a QueryExecutor."""

    def __init__(self, executor: QueryExecutor, *, silent_rollback_failures: bool = False) -> None:
        self._executor = executor
        self._silent_rollback_failures = silent_rollback_failures

    async def begin(self, client: PooledClient) -> None:
        await self._executor.query("BEGIN", (), client)

    async def commit(self, client: PooledClient) -> None:
        await self._executor.query("COMMIT", (), client)

    async def rollback(self, client: PooledClient) -> None:
        """Roll back; if ROLLBACK fails the client is discarded from the pool.

        A client whose transaction state is unknown must not go back into the
        pool usable, so it is force-released before ``RollbackError`` is
        raised (or only logged when ``silent_rollback_failures`` is set).
        """

        try:
            await self._executor.query("ROLLBACK", (), client)
        except ClientReleasedError:
            raise
        except Exception as exc:
            await client.release(discard=True)
            if self._silent_rollback_failures:
                LOG.error("Rollback failed; client released", exc_info=exc)
                return
            raise RollbackError(f"Rollback failed; client released: {exc}") from exc

    @asynccontextmanager
    async def transaction(self, client: PooledClient) -> AsyncIterator[PooledClient]:
        """BEGIN, then COMMIT on success or ROLLBACK and re-raise on error."""

        await self.begin(client)
        try:
            yield client
        except BaseException:
            await self.rollback(client)
            raise
        await self.commit(client)


__all__ = ["TransactionController"]
