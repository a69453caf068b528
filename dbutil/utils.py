"""Naming, LIKE-condition, and validation helpers used by request handlers."""

from __future__ import annotations

import copy
import re
from typing import Annotated, Any, Iterable, Mapping, MutableSequence, NamedTuple, Sequence

from pydantic import BaseModel, Field, StrictInt
from pydantic import ValidationError as PydanticValidationError

_UNDERSCORE_WORD = re.compile(r"_(.?)")
_INNER_UPPER = re.compile(r"(?<=.)([A-Z])")
_INNER_DIGITS = re.compile(r"(?<=.)([0-9]+)")


def sql_name_to_py_name(name: str) -> str:
    """``really_long_column_name`` -> ``reallyLongColumnName``; ``zip_code_5`` -> ``zipCode5``."""

    return _UNDERSCORE_WORD.sub(lambda match: match.group(1).upper(), name)


def py_name_to_sql_name(name: str) -> str:
    """Reverse of ``sql_name_to_py_name``: ``numbersIn123TheMiddle`` -> ``numbers_in_123_the_middle``."""

    name = _INNER_UPPER.sub(lambda match: "_" + match.group(1).lower(), name)
    return _INNER_DIGITS.sub(r"_\1", name)


def clean_string_for_like(value: object) -> str:
    """Strip the LIKE wildcards ``%`` and ``_``; non-strings become ``""``."""

    if not isinstance(value, str):
        return ""
    return value.replace("%", "").replace("_", "")


class LikePrefixConditions(NamedTuple):
    conditions: list[str]
    args: list[Any]


def gen_where_like_prefix_conditions(
    criteria: Mapping[str, Any],
    args: Sequence[Any] | None = None,
) -> LikePrefixConditions:
    """Build ``"column" LIKE $n || '%'`` conditions for each string-valued criterion.

    Keys are Python-style names and are converted to SQL-style column names.
    Placeholder numbering continues after the existing ``args``, which are
    copied rather than mutated.
    """

    new_args = copy.deepcopy(list(args)) if args else []
    conditions: list[str] = []
    for field, value in criteria.items():
        if not isinstance(value, str):
            continue
        new_args.append(value)
        conditions.append(f"\"{py_name_to_sql_name(field)}\" LIKE ${len(new_args)} || '%'")
    return LikePrefixConditions(conditions=conditions, args=new_args)


def column_list_to_column_map(columns: Iterable[str]) -> dict[str, str]:
    """Map SQL column names to their Python-style equivalents."""

    return {column: sql_name_to_py_name(column) for column in columns}


def has_non_empty_string_prop(obj: Mapping[str, Any], prop: str) -> bool:
    value = obj.get(prop)
    return isinstance(value, str) and value != ""


def error_codes_to_messages(code_map: Mapping[str, Any], error_codes: Iterable[str]) -> dict[str, str]:
    """Map each error code that has a string message in ``code_map`` to that message."""

    messages: dict[str, str] = {}
    for code in error_codes:
        message = code_map.get(code)
        if isinstance(message, str):
            messages[code] = message
    return messages


class _ByIdsRequest(BaseModel):
    ids: list[Annotated[StrictInt, Field(ge=1)]]


def new_validate_by_ids(invalid_request_code: str):
    """Return an ``fn_validate`` requiring ``{"ids": [positive integers]}``."""

    def validate_by_ids(request: Any, error_codes: MutableSequence[str]) -> bool:
        if not isinstance(request, Mapping):
            error_codes.append(invalid_request_code)
            return False
        try:
            _ByIdsRequest.model_validate(dict(request))
        except PydanticValidationError:
            error_codes.append(invalid_request_code)
            return False
        return True

    return validate_by_ids


__all__ = [
    "LikePrefixConditions",
    "clean_string_for_like",
    "column_list_to_column_map",
    "error_codes_to_messages",
    "gen_where_like_prefix_conditions",
    "has_non_empty_string_prop",
    "new_validate_by_ids",
    "py_name_to_sql_name",
    "sql_name_to_py_name",
]
