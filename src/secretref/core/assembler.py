"""Assemble flat path listings into nested mappings.

Hierarchical backends such as SSM Parameter Store return every value under
a path as a flat list of ``(absolute path, value)`` pairs.  :func:`assemble`
turns such a listing into a nested ``dict``::

    >>> assemble("/foo", [
    ...     FlatEntry("/foo/bar", "BAR"),
    ...     FlatEntry("/foo/bar/a", "A"),
    ...     FlatEntry("/foo/baz", "BAZ"),
    ... ])
    {'bar': {'a': 'A'}, 'baz': 'BAZ'}

A path that holds a value *and* has children becomes a mapping of its
children; the value is dropped.

Backends without hierarchical listing use :func:`expand_meta_keys`, which
follows a ``<root>/meta`` document naming the child keys to fetch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, NamedTuple

from secretref.core.decoding import decode_mapping
from secretref.core.errors import (
    AssemblyConflictError,
    DecodeError,
    InvalidMetadataError,
    MissingMetadataError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_META_KEYS_FIELD = "github.com/nateschererforks/vals"
"""Field of the meta document that lists child-key suffixes.

Treated as an opaque string; override it through
``ResolverConfig.meta_keys_field``.
"""

META_SUFFIX = "meta"


class FlatEntry(NamedTuple):
    """One ``(path, value)`` pair from a hierarchical listing."""

    path: str
    value: str


def assemble(root: str, entries: Iterable[FlatEntry]) -> dict[str, Any]:
    """Build a nested mapping from flat entries sharing *root* as prefix.

    Entries are applied in lexicographic path order.  When the same leaf is
    assigned twice the later entry wins.

    Args:
        root: Common path prefix of all entries.
        entries: Flat ``(path, value)`` pairs.

    Returns:
        The assembled mapping, keyed by path segments relative to *root*.

    Raises:
        NotFoundError: If *entries* is empty.
        AssemblyConflictError: If an entry lies outside *root*, or the only
            data is a scalar stored at *root* itself.
    """
    ordered = sorted(entries, key=lambda entry: entry.path)
    if not ordered:
        raise NotFoundError(f"no values found under '{root}'")

    prefix = root.rstrip("/")
    tree: dict[str, Any] = {}
    root_has_value = False

    for entry in ordered:
        segments = _relative_segments(prefix, entry.path)
        if not segments:
            root_has_value = True
            continue
        _insert(tree, segments, entry)

    if not tree and root_has_value:
        raise AssemblyConflictError(
            f"'{root}' holds a single value and no children; fetch it as a scalar instead"
        )
    if root_has_value:
        logger.debug("Discarding value at '%s' in favour of its children", root)
    return tree


def _relative_segments(prefix: str, path: str) -> list[str]:
    trimmed = path.rstrip("/")
    if trimmed == prefix:
        return []
    if not trimmed.startswith(prefix + "/"):
        raise AssemblyConflictError(f"entry '{path}' is not under root '{prefix or '/'}'")
    return [segment for segment in trimmed[len(prefix) + 1:].split("/") if segment]


def _insert(tree: dict[str, Any], segments: list[str], entry: FlatEntry) -> None:
    node = tree
    for segment in segments[:-1]:
        child = node.get(segment)
        if not isinstance(child, dict):
            if child is not None:
                logger.debug("Discarding value at '%s' in favour of its children", entry.path)
            child = {}
            node[segment] = child
        node = child

    leaf = segments[-1]
    existing = node.get(leaf)
    if isinstance(existing, dict):
        logger.debug("Discarding value at '%s' in favour of its children", entry.path)
        return
    if existing is not None:
        logger.debug("Duplicate value for '%s', keeping the last one", entry.path)
    node[leaf] = entry.value


def expand_meta_keys(
    fetch: Callable[[str], str],
    root: str,
    *,
    meta_field: str = DEFAULT_META_KEYS_FIELD,
) -> dict[str, Any]:
    """Resolve a mapping for backends without hierarchical listing.

    1. Fetch *root* and decode it; a mapping is returned as-is.
    2. Otherwise fetch ``<root>/meta``, decode it and read *meta_field*, a
       list of child-key suffixes.
    3. Fetch ``<root>/<suffix>`` for each suffix.

    Args:
        fetch: Scalar fetch function of the backend adapter.
        root: Location of the mapping.
        meta_field: Field of the meta document listing child suffixes.

    Raises:
        MissingMetadataError: If the meta document lacks *meta_field*.
        InvalidMetadataError: If *meta_field* is not a list of strings.
    """
    try:
        return decode_mapping(fetch(root), f"value of '{root}'")
    except (NotFoundError, DecodeError) as exc:
        logger.debug("'%s' is not a document (%s), trying meta keys", root, type(exc).__name__)

    base = root.rstrip("/")
    meta_key = f"{base}/{META_SUFFIX}"
    meta = decode_mapping(fetch(meta_key), f"meta document '{meta_key}'")

    if meta_field not in meta:
        raise MissingMetadataError(f"'{meta_field}' not found in meta document '{meta_key}'")

    suffixes = meta[meta_field]
    if not isinstance(suffixes, list) or not all(isinstance(s, str) for s in suffixes):
        raise InvalidMetadataError(
            f"'{meta_field}' in meta document '{meta_key}' is not a list of strings "
            f"(got {type(suffixes).__name__})"
        )

    result: dict[str, Any] = {}
    for suffix in suffixes:
        key = suffix.lstrip("/")
        result[key] = fetch(f"{base}/{key}")
    return result
