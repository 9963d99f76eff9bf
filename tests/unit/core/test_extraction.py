"""Tests for extraction expressions."""

from __future__ import annotations

import pytest

from secretref.core.errors import MalformedReferenceError, NotFoundError
from secretref.core.extraction import (
    compile_expression,
    format_scalar,
    select_scalar,
    select_value,
)

DOCUMENT = {
    "database": {"host": "db.internal", "port": 5432, "ssl": True},
    "hosts": ["a", "b", "c"],
    "nested": [{"x": 1}],
    "ratio": 1.5,
}


class TestCompileExpression:
    def test_valid(self) -> None:
        assert compile_expression("database.host").search(DOCUMENT) == "db.internal"

    def test_invalid_names_reference(self) -> None:
        with pytest.raises(MalformedReferenceError) as exc_info:
            compile_expression("[[", "env://X#/[[")
        assert exc_info.value.reference == "env://X#/[["


class TestFormatScalar:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(True, "true"), (False, "false"), (5432, "5432"), (1.5, "1.5"), ("x", "x")],
    )
    def test_formats(self, value: object, expected: str) -> None:
        assert format_scalar(value) == expected


class TestSelectValue:
    def test_returns_subtree(self) -> None:
        assert select_value(DOCUMENT, "database") == DOCUMENT["database"]

    def test_no_match(self) -> None:
        with pytest.raises(NotFoundError, match="matched no value"):
            select_value(DOCUMENT, "missing.key")


class TestSelectScalar:
    def test_string_leaf(self) -> None:
        assert select_scalar(DOCUMENT, "database.host") == "db.internal"

    def test_number_leaf(self) -> None:
        assert select_scalar(DOCUMENT, "database.port") == "5432"

    def test_bool_leaf(self) -> None:
        assert select_scalar(DOCUMENT, "database.ssl") == "true"

    def test_list_of_scalars_joined(self) -> None:
        assert select_scalar(DOCUMENT, "hosts") == "a,b,c"

    def test_mapping_rejected(self) -> None:
        with pytest.raises(MalformedReferenceError, match="more granular query"):
            select_scalar(DOCUMENT, "database")

    def test_nested_list_rejected(self) -> None:
        with pytest.raises(MalformedReferenceError, match="more granular query"):
            select_scalar(DOCUMENT, "nested")

    def test_missing(self) -> None:
        with pytest.raises(NotFoundError):
            select_scalar(DOCUMENT, "database.user")
