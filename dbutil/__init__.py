"""Async PostgreSQL data-access helpers: pooled queries, transactions, and service pipelines."""

from __future__ import annotations

__version__ = "3.1.0"

from .builder import (
    CompiledQueryAdapter,
    InsertOptions,
    QueryBuilder,
    SelectOptions,
    StatementCompiler,
    default_select_options,
    insert_builder,
    new_query_builder,
    select_builder,
)
from .config import ConfigMode, ConfigOptions, ConnectionConfig, ConnectionDetails, load_connection_config
from .connection import DatabaseConnection
from .errors import (
    ClientReleasedError,
    ConfigInvalid,
    ConfigNotFound,
    DatabaseUtilError,
    QueryError,
    RollbackError,
    ServerRequestError,
    ValidationError,
)
from .executor import QueryExecutor
from .models import CompiledQuery, QueryResult, Row
from .pool import AsyncpgPool, ConnectionPool, FaultEvent, PooledClient
from .projector import project_rows, project_single
from .registry import ConnectionRegistry
from .service import BasicServiceRunner, OneOrMany, ServiceRequestConfig
from .transaction import TransactionController

__all__ = [
    "AsyncpgPool",
    "BasicServiceRunner",
    "ClientReleasedError",
    "CompiledQuery",
    "CompiledQueryAdapter",
    "ConfigInvalid",
    "ConfigMode",
    "ConfigNotFound",
    "ConfigOptions",
    "ConnectionConfig",
    "ConnectionDetails",
    "ConnectionPool",
    "ConnectionRegistry",
    "DatabaseConnection",
    "DatabaseUtilError",
    "FaultEvent",
    "InsertOptions",
    "OneOrMany",
    "PooledClient",
    "QueryBuilder",
    "QueryError",
    "QueryExecutor",
    "QueryResult",
    "RollbackError",
    "Row",
    "SelectOptions",
    "ServerRequestError",
    "ServiceRequestConfig",
    "StatementCompiler",
    "TransactionController",
    "ValidationError",
    "__version__",
    "default_select_options",
    "insert_builder",
    "load_connection_config",
    "new_query_builder",
    "project_rows",
    "project_single",
    "select_builder",
]
