"""Backend adapter contract and supporting models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from secretref.core.assembler import FlatEntry
from secretref.core.errors import InvalidConfigError
from secretref.core.extraction import select_scalar
from secretref.core.resilience.retry import NoRetry, RetryExecutor

T = TypeVar("T")

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off", ""})


class ProviderConfig(Mapping[str, str]):
    """Read-only view of the effective configuration of one adapter.

    Lookups never fail for missing keys when a default is given; whether a
    key is required is decided by the adapter.

    Args:
        items: Effective ``(key, value)`` pairs after defaulting.
    """

    def __init__(self, items: Mapping[str, str] | Iterable[tuple[str, str]] = ()) -> None:
        self._items: dict[str, str] = dict(items)

    def __getitem__(self, key: str) -> str:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, key: str, default: str = "") -> str:  # type: ignore[override]
        """Return the value for *key*, or *default* when absent."""
        return self._items.get(key, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Interpret the value for *key* as a boolean flag.

        Raises:
            InvalidConfigError: If the value is not a recognised flag.
        """
        if key not in self._items:
            return default
        value = self._items[key].strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        raise InvalidConfigError(f"'{key}' must be true or false, got '{self._items[key]}'")

    @property
    def fingerprint(self) -> tuple[tuple[str, str], ...]:
        """Order-independent identity of this configuration."""
        return tuple(sorted(self._items.items()))

    def __repr__(self) -> str:
        return f"ProviderConfig({dict(self.fingerprint)!r})"


class MappingShape(str, Enum):
    """Shape of a mapping fetch result."""

    DOCUMENT = "document"
    FLAT = "flat"


@dataclass(frozen=True)
class MappingResult:
    """Result of :meth:`SecretsAdapter.fetch_mapping`.

    ``DOCUMENT`` results carry an already structured mapping; ``FLAT``
    results carry path-prefixed entries that still need assembling.

    Args:
        shape: Which of the two payloads is set.
        document: The structured mapping (``DOCUMENT`` only).
        entries: Flat path/value entries (``FLAT`` only).
        root: Common path prefix of ``entries`` (``FLAT`` only).
    """

    shape: MappingShape
    document: dict[str, Any] = field(default_factory=dict)
    entries: tuple[FlatEntry, ...] = ()
    root: str = ""

    @classmethod
    def of_document(cls, document: dict[str, Any]) -> MappingResult:
        """Build a ``DOCUMENT`` result."""
        return cls(shape=MappingShape.DOCUMENT, document=document)

    @classmethod
    def of_entries(cls, root: str, entries: Iterable[FlatEntry]) -> MappingResult:
        """Build a ``FLAT`` result rooted at *root*."""
        return cls(shape=MappingShape.FLAT, entries=tuple(entries), root=root)

    def __repr__(self) -> str:
        # Values stay out of reprs.
        if self.shape is MappingShape.DOCUMENT:
            return f"MappingResult(shape=document, keys={sorted(self.document)!r})"
        return f"MappingResult(shape=flat, root={self.root!r}, entries={len(self.entries)})"


class SecretsAdapter(ABC):
    """Base class for backend adapters.

    Subclasses wrap one vendor client, created lazily on the first fetch,
    and translate vendor exceptions into the errors of
    :mod:`secretref.core.errors`.  Constructors must not perform I/O.

    Args:
        config: Effective provider configuration.
        executor: Retry executor wrapping client calls.
    """

    backend_name: str = ""

    def __init__(self, config: ProviderConfig, executor: RetryExecutor | NoRetry | None = None) -> None:
        self._config = config
        self._executor = executor or NoRetry()

    @property
    def config(self) -> ProviderConfig:
        """Return the effective configuration."""
        return self._config

    @abstractmethod
    def fetch_scalar(self, location: str) -> str:
        """Return the raw value stored at *location*."""
        ...

    @abstractmethod
    def fetch_mapping(self, location: str) -> MappingResult:
        """Return the mapping stored at *location*."""
        ...

    def select(self, document: dict[str, Any], expression: str) -> str:
        """Extract a single value from *document* with *expression*."""
        return select_scalar(document, expression)

    def _call(self, func: Callable[[], T], description: str) -> T:
        return self._executor.execute(func, description)
