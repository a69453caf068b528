"""Cache of named, configured connections owned by the application."""

from __future__ import annotations

import logging
from typing import Callable

from .config import ConfigMode, ConnectionConfig, ConnectionDetails, load_connection_config, resolve_config_mode
from .connection import DatabaseConnection
from .pool import AsyncpgPool, ConnectionPool

LOG = logging.getLogger(__name__)

PoolFactory = Callable[[ConnectionDetails], ConnectionPool]
ConfigLoader = Callable[[str, ConfigMode], ConnectionConfig]


class ConnectionRegistry:
    """Maps each connection name to exactly one DatabaseConnection.

    Create one registry at startup, hand it to whatever needs database
    access, and ``await registry.close()`` at shutdown.
    """

    def __init__(
        self,
        *,
        pool_factory: PoolFactory = AsyncpgPool,
        config_loader: ConfigLoader = load_connection_config,
        silent_rollback_failures: bool = False,
    ) -> None:
        self._pool_factory = pool_factory
        self._config_loader = config_loader
        self._silent_rollback_failures = silent_rollback_failures
        self._connections: dict[str, DatabaseConnection] = {}

    def get_connection(
        self,
        name: str,
        mode: ConfigMode | str | None = ConfigMode.AS_DEPENDENCY,
        config_override: ConnectionConfig | None = None,
    ) -> DatabaseConnection:
        """Return the connection for ``name``, creating its pool on first use.

        The first call resolves the configuration (``config_override`` or the
        file for ``(name, mode)``); later calls return the cached connection
        and ignore any override.
        """

        existing = self._connections.get(name)
        if existing is not None:
            if config_override is not None:
                LOG.debug("Ignoring config override for cached connection", extra={"connection": name})
            return existing

        if config_override is not None:
            config = config_override
        else:
            config = self._config_loader(name, resolve_config_mode(mode))
        pool = self._pool_factory(config.connection_details)
        connection = DatabaseConnection(
            name,
            config,
            pool,
            silent_rollback_failures=self._silent_rollback_failures,
        )
        self._connections[name] = connection
        LOG.info(
            "Registered connection",
            extra={"connection": name, "database": config.connection_details.database},
        )
        return connection

    def names(self) -> tuple[str, ...]:
        return tuple(self._connections)

    def __contains__(self, name: object) -> bool:
        return name in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    async def close(self) -> None:
        """Close every pool and forget all connections."""

        connections = list(self._connections.values())
        self._connections.clear()
        for connection in connections:
            await connection.close()

    async def __aenter__(self) -> ConnectionRegistry:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


__all__ = ["ConnectionRegistry"]
