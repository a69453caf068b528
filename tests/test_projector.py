"""Tests for result projection helpers."""

from __future__ import annotations

from dbutil.models import QueryResult
from dbutil.projector import project_rows, project_single


def test_project_rows_reads_query_results() -> None:
    result = QueryResult(rows=({"id": 1}, {"id": 2}), status="SELECT 2")

    assert project_rows(result) == [{"id": 1}, {"id": 2}]


def test_project_rows_reads_mappings() -> None:
    assert project_rows({"rows": [{"id": 1}, {"id": 2}]}) == [{"id": 1}, {"id": 2}]


def test_project_rows_degrades_to_empty() -> None:
    assert project_rows({}) == []
    assert project_rows(None) == []
    assert project_rows([]) == []
    assert project_rows({"rows": None}) == []
    assert project_rows({"rows": 3}) == []
    assert project_rows({"rows": "abc"}) == []
    assert project_rows(QueryResult.empty()) == []


def test_project_single_returns_first_row() -> None:
    assert project_single([{"id": 1}, {"id": 2}]) == {"id": 1}


def test_project_single_returns_empty_mapping() -> None:
    assert project_single([]) == {}
    assert project_single(None) == {}
