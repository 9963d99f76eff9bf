"""Extraction expressions applied to structured documents.

References may end in ``#/<expression>``; the expression is a JMESPath
query that picks a value out of the document the backend returned::

    httpjson://api.example.com/config.json#/database.password
    vault://app/db#/credentials.username
"""

from __future__ import annotations

from typing import Any

import jmespath
from jmespath.exceptions import JMESPathError
from jmespath.parser import ParsedResult

from secretref.core.errors import MalformedReferenceError, NotFoundError


def compile_expression(expression: str, reference: str = "") -> ParsedResult:
    """Compile *expression*, raising :class:`MalformedReferenceError` on syntax errors."""
    try:
        return jmespath.compile(expression)
    except JMESPathError as exc:
        raise MalformedReferenceError(
            reference or expression,
            f"unable to compile expression '{expression}': {exc}",
        ) from exc


def format_scalar(value: Any) -> str:
    """Render a decoded scalar the way it appears in JSON/YAML text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def select_value(document: Any, expression: str) -> Any:
    """Search *document* with *expression*.

    Raises:
        NotFoundError: If the expression selects nothing.
    """
    value = compile_expression(expression).search(document)
    if value is None:
        raise NotFoundError(f"expression '{expression}' matched no value")
    return value


def select_scalar(document: Any, expression: str) -> str:
    """Search *document* and render the result as a single string.

    A list of scalars is joined with commas.  Selecting an object is an
    error: the expression has to name a leaf.
    """
    return render_value(select_value(document, expression), expression)


def render_value(value: Any, selector: str) -> str:
    """Render a selected value as a single string.

    Raises:
        MalformedReferenceError: If *value* is a mapping or a list with
            nested values.
    """
    if isinstance(value, dict):
        raise MalformedReferenceError(
            selector,
            "selects a mapping with child keys, use a more granular query",
        )
    if isinstance(value, list):
        if any(isinstance(item, (dict, list)) for item in value):
            raise MalformedReferenceError(
                selector,
                "selects nested values, use a more granular query",
            )
        return ",".join(format_scalar(item) for item in value)
    return format_scalar(value)
