"""Query-builder defaults and the adapter that runs compiled statements.

Statements are built with SQLAlchemy Core (``select``, ``insert``, ``table``,
``column`` ...) and rendered for PostgreSQL into a ``CompiledQuery`` whose
text uses ``$n`` placeholders, ready for ``QueryExecutor.query``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.dialects.postgresql.base import PGDialect, PGIdentifierPreparer
from sqlalchemy.engine import BindTyping
from sqlalchemy.engine.interfaces import Dialect
from sqlalchemy.sql.elements import ClauseElement

from .executor import QueryExecutor
from .models import CompiledQuery, QueryResult, Row
from .pool import PooledClient
from .projector import project_rows, project_single

DialectFactory = Callable[..., Dialect]


@dataclass(frozen=True, slots=True)
class SelectOptions:
    """Identifier quoting used when rendering select statements."""

    auto_quote_alias_names: bool = True
    name_quote_character: str = '"'
    table_alias_quote_character: str = '"'


@dataclass(frozen=True, slots=True)
class InsertOptions:
    """Placeholder style used when rendering insert statements."""

    numbered_parameters: bool = True


def default_select_options() -> SelectOptions:
    return SelectOptions()


def default_insert_options() -> InsertOptions:
    return InsertOptions()


class _OptionPreparer(PGIdentifierPreparer):
    """Identifier preparer honouring SelectOptions quoting rules."""

    def __init__(self, dialect: Dialect, options: SelectOptions) -> None:
        super().__init__(
            dialect,
            initial_quote=options.name_quote_character,
            escape_quote=options.name_quote_character,
        )
        self._options = options

    def format_label(self, label: Any, name: str | None = None) -> str:
        name = name or label.name
        if self._options.auto_quote_alias_names:
            return self.quote_identifier(name)
        return self.quote(name)

    def format_alias(self, alias: Any, name: str | None = None) -> str:
        if name is None:
            name = alias.name
        if not self._options.auto_quote_alias_names:
            return self.quote(name)
        quote = self._options.table_alias_quote_character
        return quote + name.replace(quote, quote * 2) + quote


class StatementCompiler:
    """Renders SQLAlchemy statements into CompiledQuery pairs."""

    def __init__(
        self,
        dialect_factory: DialectFactory,
        *,
        select_options: SelectOptions | None = None,
        numbered_parameters: bool = True,
    ) -> None:
        paramstyle = "numeric_dollar" if numbered_parameters else "qmark"
        self._dialect = dialect_factory(paramstyle=paramstyle)
        # Placeholders stay bare (``$1``, never ``$1::VARCHAR``); the server infers types.
        self._dialect.bind_typing = BindTyping.NONE
        if select_options is not None:
            self._dialect.identifier_preparer = _OptionPreparer(self._dialect, select_options)
        self._select_options = select_options
        self._numbered_parameters = numbered_parameters

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def numbered_parameters(self) -> bool:
        return self._numbered_parameters

    @property
    def select_options(self) -> SelectOptions | None:
        return self._select_options

    def to_param(self, statement: ClauseElement) -> CompiledQuery:
        """Compile ``statement``; expanding ``IN`` parameters are flattened."""

        compiled = statement.compile(dialect=self._dialect)
        expanded = compiled.construct_expanded_state()
        return CompiledQuery(text=expanded.statement, values=tuple(expanded.positional_parameters))


class QueryBuilder:
    """Dialect-bound factory for statement compilers."""

    def __init__(self, dialect_factory: DialectFactory = PGDialect) -> None:
        self._dialect_factory = dialect_factory

    def select(self, options: SelectOptions | None = None) -> StatementCompiler:
        return StatementCompiler(
            self._dialect_factory,
            select_options=options or default_select_options(),
        )

    def insert(self, options: InsertOptions | None = None) -> StatementCompiler:
        options = options or default_insert_options()
        return StatementCompiler(
            self._dialect_factory,
            numbered_parameters=options.numbered_parameters,
        )


def new_query_builder() -> QueryBuilder:
    """Return a builder bound to the PostgreSQL dialect."""

    return QueryBuilder()


def select_builder(existing: QueryBuilder | None = None) -> StatementCompiler:
    """Select compiler with the default quoting options applied."""

    builder = existing or new_query_builder()
    return builder.select(default_select_options())


def insert_builder(existing: QueryBuilder | None = None) -> StatementCompiler:
    """Insert compiler using numbered (``$n``) parameters."""

    builder = existing or new_query_builder()
    return builder.insert(InsertOptions(numbered_parameters=True))


class CompiledQueryAdapter:
    """Runs CompiledQuery pairs through a QueryExecutor."""

    def __init__(self, executor: QueryExecutor) -> None:
        self._executor = executor

    async def compiled_query(
        self,
        compiled: CompiledQuery | Any,
        client: PooledClient | None = None,
    ) -> QueryResult:
        """Run a compiled query; an empty ``text`` succeeds without touching the database."""

        query = CompiledQuery.of(compiled)
        if not query.text:
            return QueryResult.empty()
        return await self._executor.query(query.text, query.values, client)

    async def compiled_query_returning_many(
        self,
        compiled: CompiledQuery | Any,
        client: PooledClient | None = None,
    ) -> list[Row]:
        return project_rows(await self.compiled_query(compiled, client))

    async def compiled_query_returning_one(
        self,
        compiled: CompiledQuery | Any,
        client: PooledClient | None = None,
    ) -> Row:
        return project_single(await self.compiled_query_returning_many(compiled, client))


__all__ = [
    "CompiledQueryAdapter",
    "InsertOptions",
    "QueryBuilder",
    "SelectOptions",
    "StatementCompiler",
    "default_insert_options",
    "default_select_options",
    "insert_builder",
    "new_query_builder",
    "select_builder",
]
