"""Generic validate -> build query -> execute pipeline for request handlers."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, MutableSequence, Protocol

from .errors import ServerRequestError, ValidationError
from .models import CompiledQuery, Row
from .pool import PooledClient

LOG = logging.getLogger(__name__)

ValidateFn = Callable[[Any, MutableSequence[str]], bool]
SanitizeFn = Callable[[Any], Any]
DbValidateFn = Callable[[Any, Any, PooledClient | None], Awaitable[Any] | Any]
MakeQueryFn = Callable[[Any, Any], CompiledQuery | Mapping[str, Any] | Any]


class OneOrMany(str, Enum):
    """Whether a service returns a single row or a list of rows."""

    ONE = "one"
    MANY = "many"


class CompiledQueryRunner(Protocol):
    """Execution functions the pipeline dispatches to."""

    async def compiled_query_returning_one(self, compiled: Any, client: PooledClient | None = None) -> Row: ...

    async def compiled_query_returning_many(
        self, compiled: Any, client: PooledClient | None = None
    ) -> list[Row]: ...


@dataclass(frozen=True, slots=True)
class ServiceRequestConfig:
    """Per-invocation inputs for ``BasicServiceRunner.run``.

    ``fn_validate(request, error_codes)`` appends codes to ``error_codes`` and
    returns ``False`` on failure. ``fn_sanitize_request(request)`` returns the
    request used downstream. ``fn_db_validate(user_data, request, client)``
    may be sync or async. ``fn_make_query(user_data, request)`` returns a
    compiled query (``text`` + ``values``).
    """

    user_data: Any
    request: Any
    error_code_map: Mapping[str, str]
    fn_validate: ValidateFn
    fn_make_query: MakeQueryFn
    one_or_many: OneOrMany | str
    fn_sanitize_request: SanitizeFn | None = None
    fn_db_validate: DbValidateFn | None = None
    client: PooledClient | None = None


async def _no_db_validation(user_data: Any, request: Any, client: PooledClient | None) -> None:
    return None


class BasicServiceRunner:
    """Runs the basic service pipeline against a CompiledQueryRunner."""

    def __init__(self, runner: CompiledQueryRunner) -> None:
        self._runner = runner

    async def run(self, config: ServiceRequestConfig) -> Row | list[Row]:
        mode = _resolve_mode(config.one_or_many)
        if mode is None:
            raise ServerRequestError(config.one_or_many)

        error_codes: list[str] = []
        request = config.request
        if not config.fn_validate(request, error_codes):
            LOG.debug("Request failed validation", extra={"error_codes": tuple(error_codes)})
            raise ValidationError(error_codes, config.error_code_map)

        if config.fn_sanitize_request is not None:
            request = config.fn_sanitize_request(request)

        db_validate = config.fn_db_validate or _no_db_validation
        outcome = db_validate(config.user_data, request, config.client)
        if inspect.isawaitable(outcome):
            await outcome

        compiled = config.fn_make_query(config.user_data, request)
        if mode is OneOrMany.ONE:
            return await self._runner.compiled_query_returning_one(compiled, config.client)
        return await self._runner.compiled_query_returning_many(compiled, config.client)


def _resolve_mode(value: object) -> OneOrMany | None:
    if isinstance(value, OneOrMany):
        return value
    if isinstance(value, str):
        try:
            return OneOrMany(value)
        except ValueError:
            return None
    return None


__all__ = [
    "BasicServiceRunner",
    "CompiledQueryRunner",
    "OneOrMany",
    "ServiceRequestConfig",
]
