"""Bounded asyncpg connection pool and the leased clients it hands out."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence, runtime_checkable

import asyncpg

from .config import ConnectionDetails
from .errors import ClientReleasedError
from .models import QueryResult

LOG = logging.getLogger(__name__)

_ROW_STATEMENTS = {"select", "with", "show", "values", "table", "fetch"}
_RETURNING = re.compile(r"\breturning\b", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class FaultEvent:
    """Out-of-band notification about a pooled connection."""

    kind: str
    message: str
    error: BaseException | None = None


FaultListener = Callable[[FaultEvent], None]


@runtime_checkable
class PooledClient(Protocol):
    """A leased connection; owned by whoever acquired it until released once."""

    @property
    def released(self) -> bool:
        """Whether the client has been handed back to its pool."""

    async def query(self, text: str, values: Sequence[Any]) -> QueryResult:
        """Run one statement on this client."""

    async def release(self, *, discard: bool = False) -> None:
        """Return the client to the pool; ``discard`` closes it first."""


@runtime_checkable
class ConnectionPool(Protocol):
    """Protocol implemented by connection pools."""

    async def acquire(self) -> PooledClient:
        """Lease a client, waiting while the pool is exhausted."""

    async def close(self) -> None:
        """Close every connection owned by the pool."""

    def subscribe(self, listener: FaultListener) -> Callable[[], None]:
        """Subscribe to fault events; returns an unsubscribe handle."""


class AsyncpgClient:
    """PooledClient backed by an asyncpg pool connection."""

    def __init__(self, pool: asyncpg.Pool, connection: Any) -> None:
        self._pool = pool
        self._connection = connection
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def connection(self) -> Any:
        """Underlying asyncpg connection (for driver-specific features)."""

        self._ensure_leased()
        return self._connection

    async def query(self, text: str, values: Sequence[Any]) -> QueryResult:
        """Run ``text``; without values it may hold several statements.

        Parameterized statements go through asyncpg's statement cache. A
        statement without values that cannot return rows runs over the simple
        query protocol and only reports the command status.
        """

        self._ensure_leased()
        if values:
            records = await self._connection.fetch(text, *values)
            return QueryResult.from_records(records)
        if _returns_rows(text):
            records = await self._connection.fetch(text)
            return QueryResult.from_records(records)
        status = await self._connection.execute(text)
        return QueryResult(status=status)

    async def release(self, *, discard: bool = False) -> None:
        self._ensure_leased()
        self._released = True
        if discard:
            self._connection.terminate()
        await self._pool.release(self._connection)

    def _ensure_leased(self) -> None:
        if self._released:
            raise ClientReleasedError("Pooled client was already released.")


class AsyncpgPool:
    """ConnectionPool wrapping ``asyncpg.create_pool``; started on first use."""

    def __init__(self, details: ConnectionDetails) -> None:
        self._details = details
        self._pool: asyncpg.Pool | None = None
        self._start_lock = asyncio.Lock()
        self._listeners: set[FaultListener] = {log_fault}

    @property
    def details(self) -> ConnectionDetails:
        return self._details

    @property
    def started(self) -> bool:
        return self._pool is not None

    async def start(self) -> asyncpg.Pool:
        """Open the pool if it is not running yet and return it."""

        pool = self._pool
        if pool is not None:
            return pool
        async with self._start_lock:
            pool = self._pool
            if pool is None:
                pool = self._pool = await asyncpg.create_pool(**self._pool_kwargs())
                LOG.info(
                    "Connection pool started",
                    extra={
                        "host": self._details.host,
                        "database": self._details.database,
                        "max_size": self._details.max_pool_size,
                    },
                )
            return pool

    async def acquire(self) -> AsyncpgClient:
        pool = await self.start()
        connection = await pool.acquire()
        return AsyncpgClient(pool, connection)

    async def close(self) -> None:
        pool, self._pool = self._pool, None
        if pool is None:
            return
        await pool.close()
        LOG.info("Connection pool closed", extra={"database": self._details.database})

    def subscribe(self, listener: FaultListener) -> Callable[[], None]:
        self._listeners.add(listener)

        def _unsubscribe() -> None:
            self._listeners.discard(listener)

        return _unsubscribe

    def stats(self) -> dict[str, int]:
        """Return pool statistics for monitoring."""

        if self._pool is None:
            return {"size": 0, "idle": 0, "max_size": self._details.max_pool_size}
        return {
            "size": self._pool.get_size(),
            "idle": self._pool.get_idle_size(),
            "max_size": self._pool.get_max_size(),
        }

    def _pool_kwargs(self) -> dict[str, object]:
        details = self._details
        kwargs: dict[str, object] = {
            "host": details.host,
            "port": details.port,
            "database": details.database,
            "user": details.user,
            "password": details.password or None,
            "min_size": 0,
            "max_size": details.max_pool_size,
            "max_inactive_connection_lifetime": details.idle_timeout_ms / 1000,
            "init": self._init_connection,
            "setup": self._setup_connection,
        }
        if details.connect_timeout is not None:
            kwargs["timeout"] = details.connect_timeout
        return kwargs

    async def _init_connection(self, connection: Any) -> None:
        connection.add_termination_listener(self._on_terminated)

    async def _setup_connection(self, connection: Any) -> None:
        # asyncpg drops log listeners whenever a connection goes back to the pool.
        connection.add_log_listener(self._on_server_message)

    def _on_terminated(self, connection: Any) -> None:
        pid = connection.get_server_pid()
        self._emit(FaultEvent(kind="terminated", message=f"Connection {pid} terminated"))

    def _on_server_message(self, connection: Any, message: Any) -> None:
        pid = connection.get_server_pid()
        severity = getattr(message, "severity", "NOTICE")
        self._emit(
            FaultEvent(
                kind="server_message",
                message=f"Connection {pid} {severity}: {message}",
                error=message if isinstance(message, BaseException) else None,
            )
        )

    def _emit(self, event: FaultEvent) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(event)
            except Exception:  # pragma: no cover - listeners must not break the driver
                LOG.exception("Fault listener failed", extra={"kind": event.kind})


def _returns_rows(text: str) -> bool:
    token = text.lstrip().split(None, 1)
    if not token:
        return False
    return token[0].lower() in _ROW_STATEMENTS or _RETURNING.search(text) is not None


def log_fault(event: FaultEvent) -> None:
    """Default fault listener: write the event to the module logger."""

    if event.kind == "terminated":
        LOG.info(event.message, extra={"kind": event.kind})
    elif event.error is not None:
        LOG.error(event.message, extra={"kind": event.kind}, exc_info=event.error)
    else:
        LOG.warning(event.message, extra={"kind": event.kind})


__all__ = [
    "AsyncpgClient",
    "AsyncpgPool",
    "ConnectionPool",
    "FaultEvent",
    "FaultListener",
    "PooledClient",
    "log_fault",
]
