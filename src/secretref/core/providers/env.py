"""Process environment adapter."""

from __future__ import annotations

import os
from collections.abc import Mapping

from secretref.core.decoding import decode_mapping
from secretref.core.errors import NotFoundError
from secretref.core.providers.base import MappingResult, ProviderConfig, SecretsAdapter


class EnvAdapter(SecretsAdapter):
    """Resolve values from environment variables: ``env://DB_PASSWORD``.

    No external dependencies required.  As a mapping, the variable must
    hold a YAML or JSON object.

    Args:
        config: Effective provider configuration (no options).
        environ: Environment to read. Defaults to ``os.environ``.
    """

    backend_name = "env"

    def __init__(self, config: ProviderConfig, environ: Mapping[str, str] | None = None) -> None:
        super().__init__(config)
        self._environ = os.environ if environ is None else environ

    def fetch_scalar(self, location: str) -> str:
        value = self._environ.get(location)
        if value is None:
            raise NotFoundError(f"environment variable '{location}' not set")
        return value

    def fetch_mapping(self, location: str) -> MappingResult:
        return MappingResult.of_document(
            decode_mapping(self.fetch_scalar(location), f"environment variable '{location}'")
        )
