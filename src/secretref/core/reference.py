"""Parse reference strings into backend selectors.

Grammar::

    [ref+]<backend>://<location>[?<key>=<value>&...][#/<expression>]

Examples::

    ref+awssecrets://prod/db?region=eu-west-1#/password
    ssm:///app/prod?recursive=true
    httpjson://api.example.com/v1/config.json?env=prod&insecure=true#/database.host

The ``ref+`` prefix marks references embedded in configuration values and
is optional when a string is known to be a reference.  Parsing never
performs I/O; expressions are compiled here so a typo fails before any
backend is contacted.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from urllib.parse import parse_qsl, urlencode

from secretref.core.errors import MalformedReferenceError
from secretref.core.extraction import compile_expression

REFERENCE_PREFIX = "ref+"
"""Marker for references embedded in configuration values."""

EXPRESSION_SEPARATOR = "#/"

_REFERENCE_PATTERN = re.compile(r"^(?P<tag>[A-Za-z][A-Za-z0-9_.-]*)://(?P<rest>.*)$", re.DOTALL)


def is_reference(value: str) -> bool:
    """Return True if *value* is marked as an embedded reference."""
    return value.startswith(REFERENCE_PREFIX) and "://" in value


@dataclass(frozen=True)
class Reference:
    """Parsed representation of a reference string.

    Args:
        backend_tag: Registered backend name (lower-cased).
        location: Path, key or identifier meaningful to the backend.
        parameters: Backend options as ordered ``(key, value)`` pairs.
        expression: Extraction expression following ``#/``, if any.
    """

    backend_tag: str
    location: str
    parameters: tuple[tuple[str, str], ...] = ()
    expression: str | None = None

    @property
    def params(self) -> Mapping[str, str]:
        """Read-only mapping view of :attr:`parameters` (last value wins)."""
        return MappingProxyType(dict(self.parameters))

    def to_uri(self) -> str:
        """Serialise back to a canonical reference string."""
        uri = f"{self.backend_tag}://{self.location}"
        if self.parameters:
            joiner = "&" if "?" in self.location else "?"
            uri += joiner + urlencode(self.parameters)
        if self.expression is not None:
            uri += EXPRESSION_SEPARATOR + self.expression
        return uri

    def __str__(self) -> str:
        return self.to_uri()


@dataclass(frozen=True)
class ReferenceSyntax:
    """Backend-specific reference syntax.

    Args:
        options: Query keys that are backend options.  ``None`` treats every
            query item as an option; otherwise the remaining items stay in
            the location.
        requires_expression: Whether the backend needs ``#/<expression>``.
    """

    options: frozenset[str] | None = None
    requires_expression: bool = False


_DEFAULT_SYNTAX = ReferenceSyntax()


class ReferenceParser:
    """Reference parser aware of per-backend syntax.

    Args:
        syntaxes: Mapping of backend tag to :class:`ReferenceSyntax`.
            Tags without an entry use the generic syntax.
    """

    def __init__(self, syntaxes: Mapping[str, ReferenceSyntax] | None = None) -> None:
        self._syntaxes = dict(syntaxes or {})

    def parse(self, uri: str) -> Reference:
        """Parse *uri* into a :class:`Reference`.

        Raises:
            MalformedReferenceError: If the string does not follow the grammar
                or its expression does not compile.
        """
        text = uri[len(REFERENCE_PREFIX):] if uri.startswith(REFERENCE_PREFIX) else uri
        if "://" not in text:
            raise MalformedReferenceError(uri, "missing '://' separator")

        match = _REFERENCE_PATTERN.match(text)
        if match is None:
            raise MalformedReferenceError(uri, "missing or invalid backend name")

        tag = match.group("tag").lower()
        syntax = self._syntaxes.get(tag, _DEFAULT_SYNTAX)
        body, expression = _split_expression(uri, match.group("rest"))
        location, query = _split_query(body)

        if not location:
            raise MalformedReferenceError(uri, "empty location")

        if expression is None and syntax.requires_expression:
            raise MalformedReferenceError(uri, f"backend '{tag}' requires a '#/' expression")
        if expression is not None:
            compile_expression(expression, uri)

        parameters, passthrough = _split_parameters(query, syntax.options)
        if passthrough:
            location = f"{location}?{urlencode(passthrough)}"

        return Reference(
            backend_tag=tag,
            location=location,
            parameters=tuple(parameters),
            expression=expression,
        )


def parse_reference(uri: str) -> Reference:
    """Parse *uri* with the generic syntax (every query item is an option)."""
    return ReferenceParser().parse(uri)


def _split_expression(uri: str, rest: str) -> tuple[str, str | None]:
    body, sep, expression = rest.partition(EXPRESSION_SEPARATOR)
    if not sep:
        return rest, None
    if not expression:
        raise MalformedReferenceError(uri, "empty expression after '#/'")
    return body, expression


def _split_query(body: str) -> tuple[str, str]:
    location, _, query = body.partition("?")
    return location, query


def _split_parameters(
    query: str, options: Collection[str] | None
) -> tuple[list[tuple[str, str]], list[tuple[str, str]]]:
    parameters: list[tuple[str, str]] = []
    passthrough: list[tuple[str, str]] = []
    for key, value in _iter_query(query):
        if options is None or key in options:
            parameters.append((key, value))
        else:
            passthrough.append((key, value))
    return parameters, passthrough


def _iter_query(query: str) -> Iterator[tuple[str, str]]:
    if query:
        yield from parse_qsl(query, keep_blank_values=True)
