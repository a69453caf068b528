"""Shared dataclasses used across the executor, builder, and service modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

Row = Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    """Parameterized statement text plus its positional values."""

    text: str | None
    values: tuple[Any, ...] = ()

    @classmethod
    def of(cls, query: object) -> CompiledQuery:
        """Coerce a builder's compiled output (object or mapping) into a CompiledQuery."""

        if isinstance(query, CompiledQuery):
            return query
        if isinstance(query, Mapping):
            text = query.get("text")
            values = query.get("values")
        else:
            text = getattr(query, "text", None)
            values = getattr(query, "values", None)
        return cls(text=text, values=tuple(values or ()))


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Rows returned by a statement plus the server's command status."""

    rows: tuple[Row, ...] = ()
    status: str | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @classmethod
    def empty(cls) -> QueryResult:
        return cls()

    @classmethod
    def from_records(cls, records: Sequence[Mapping[str, Any]], status: str | None = None) -> QueryResult:
        return cls(rows=tuple(dict(record) for record in records), status=status)


__all__ = ["CompiledQuery", "QueryResult", "Row"]
