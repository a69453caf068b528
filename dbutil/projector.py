"""Turn raw query results into row lists or single rows."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from .models import Row


def project_rows(result: Any) -> list[Row]:
    """Return the rows of ``result``; anything without usable rows yields ``[]``."""

    if isinstance(result, Mapping):
        rows = result.get("rows")
    else:
        rows = getattr(result, "rows", None)
    if rows is None or isinstance(rows, (str, bytes, Mapping)):
        return []
    try:
        return list(rows)
    except TypeError:
        return []


def project_single(rows: Sequence[Row] | None) -> Row:
    """Return the first row, or an empty mapping when there is none."""

    if rows:
        return rows[0]
    return {}


__all__ = ["project_rows", "project_single"]
