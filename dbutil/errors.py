"""Exception taxonomy shared by the connection, executor, and service layers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Sequence

from .utils import error_codes_to_messages


class DatabaseUtilError(RuntimeError):
    """Base error for everything raised by dbutil."""


class ConfigNotFound(DatabaseUtilError):
    """Raised when no configuration source resolves for a connection name."""

    def __init__(self, name: str, mode: str, path: Path) -> None:
        super().__init__(f"Configuration file not found for '{name}' ({mode}): {path}")
        self.name = name
        self.mode = mode
        self.path = path


class ConfigInvalid(DatabaseUtilError):
    """Raised when a configuration file exists but cannot be used."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Invalid configuration file {path}: {reason}")
        self.path = path


class QueryError(DatabaseUtilError):
    """Wraps a driver failure together with the statement that triggered it."""

    def __init__(self, statement: str, values: Sequence[Any], reason: str) -> None:
        super().__init__(reason)
        self.statement = statement
        self.values = tuple(values)


class ClientReleasedError(DatabaseUtilError):
    """Raised when a pooled client is used or released after its release."""


class ServerRequestError(DatabaseUtilError):
    """Raised when a service pipeline is misconfigured."""

    def __init__(self, mode: object) -> None:
        super().__init__(f"SERVER_REQUEST_ERROR: unsupported result mode {mode!r}")
        self.mode = mode


class ValidationError(DatabaseUtilError):
    """Raised when request validation fails; carries the collected error codes."""

    def __init__(
        self,
        codes: Sequence[str],
        error_code_map: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__("VALIDATION_ERROR")
        self.codes = tuple(codes)
        self.error_code_map = dict(error_code_map or {})

    def messages(self) -> dict[str, str]:
        """Human-readable messages for the codes that have one."""

        return error_codes_to_messages(self.error_code_map, self.codes)


class RollbackError(DatabaseUtilError):
    """Raised when ROLLBACK fails; the client has already been force-released."""

    client_released = True


__all__ = [
    "ClientReleasedError",
    "ConfigInvalid",
    "ConfigNotFound",
    "DatabaseUtilError",
    "QueryError",
    "RollbackError",
    "ServerRequestError",
    "ValidationError",
]
