"""Resolution façade: reference string in, value out."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from secretref.core.assembler import assemble
from secretref.core.config.resolver import ResolverConfig
from secretref.core.errors import MalformedReferenceError, SecretRefError
from secretref.core.extraction import select_value
from secretref.core.providers.base import MappingShape, SecretsAdapter
from secretref.core.providers.registry import ProviderRegistry, create_default_registry
from secretref.core.reference import Reference, ReferenceParser

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReferenceResolver:
    """Resolve reference strings to scalar values or nested mappings.

    Parsing and registry errors propagate untouched.  Errors raised while
    the adapter fetches get the backend tag and location attached; their
    class is preserved.

    Args:
        registry: Provider registry to resolve adapters from.  Defaults to
            :func:`create_default_registry` built from *config*.
        config: Resolver configuration used for the default registry.

    Example:
        >>> resolver = ReferenceResolver()
        >>> resolver.resolve_scalar("env://HOME")  # doctest: +SKIP
        '/home/app'
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        config: ResolverConfig | None = None,
    ) -> None:
        self._config = config or ResolverConfig()
        self._registry = registry if registry is not None else create_default_registry(self._config)

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def parse(self, uri: str) -> Reference:
        """Parse *uri* using the syntax of the registered backends."""
        return ReferenceParser(self._registry.syntaxes()).parse(uri)

    def resolve_scalar(self, uri: str) -> str:
        """Resolve *uri* to a single string value.

        With a ``#/`` expression the backend's mapping is fetched and the
        expression picks the value out of it.

        Raises:
            SecretRefError: Any parse, configuration or backend failure.
        """
        reference = self.parse(uri)
        adapter = self._registry.resolve(reference.backend_tag, reference.parameters)

        if reference.expression is None:
            value = self._fetch(reference, lambda: adapter.fetch_scalar(reference.location))
        else:
            expression = reference.expression
            value = self._fetch(
                reference,
                lambda: adapter.select(self._mapping(adapter, reference), expression),
            )
        logger.debug("Resolved %s reference at %s", reference.backend_tag, reference.location)
        return value

    def resolve_mapping(self, uri: str) -> dict[str, Any]:
        """Resolve *uri* to a nested mapping.

        With a ``#/`` expression the selected sub-tree must itself be a
        mapping.

        Raises:
            SecretRefError: Any parse, configuration or backend failure.
        """
        reference = self.parse(uri)
        adapter = self._registry.resolve(reference.backend_tag, reference.parameters)
        mapping = self._fetch(reference, lambda: self._mapping(adapter, reference))

        if reference.expression is not None:
            expression = reference.expression
            selected = self._fetch(reference, lambda: select_value(mapping, expression))
            if not isinstance(selected, dict):
                raise MalformedReferenceError(uri, f"expression '{expression}' does not select a mapping")
            mapping = selected

        logger.debug("Resolved %s mapping at %s", reference.backend_tag, reference.location)
        return mapping

    def resolve_many(self, uris: Iterable[str]) -> dict[str, str | SecretRefError]:
        """Resolve several scalar references independently.

        A failing reference maps to its error; the others are unaffected.
        """
        results: dict[str, str | SecretRefError] = {}
        for uri in uris:
            try:
                results[uri] = self.resolve_scalar(uri)
            except SecretRefError as exc:
                logger.warning("Failed to resolve reference: %s", exc)
                results[uri] = exc
        return results

    @staticmethod
    def _mapping(adapter: SecretsAdapter, reference: Reference) -> dict[str, Any]:
        result = adapter.fetch_mapping(reference.location)
        if result.shape is MappingShape.FLAT:
            return assemble(result.root or reference.location, result.entries)
        return result.document

    @staticmethod
    def _fetch(reference: Reference, call: Callable[[], T]) -> T:
        try:
            return call()
        except SecretRefError as exc:
            exc.add_context(reference.backend_tag, reference.location)
            raise
