"""HashiCorp Vault (KV v2) adapter."""

from __future__ import annotations

import logging
import os
import threading
from typing import Any

from secretref.core.errors import (
    AccessDeniedError,
    BackendUnavailableError,
    InvalidConfigError,
    NotFoundError,
)
from secretref.core.extraction import render_value
from secretref.core.providers.base import MappingResult, ProviderConfig, SecretsAdapter
from secretref.core.resilience.retry import NoRetry, RetryExecutor

logger = logging.getLogger(__name__)

VAULT_OPTIONS = frozenset({"address", "mount_point", "namespace", "field"})
VAULT_DEFAULTS = {"mount_point": "secret", "field": "value"}


class VaultAdapter(SecretsAdapter):
    """Resolve secrets from HashiCorp Vault's KV v2 engine.

    ``vault://app/database`` returns the ``field`` (default ``"value"``) of
    the secret at ``app/database``; as a mapping it returns the whole
    secret.  Pick other fields with an expression:
    ``vault://app/database#/password``.

    The token is read from ``VAULT_TOKEN``.  The client is created lazily
    on the first fetch.

    Options: ``address`` (defaults to ``VAULT_ADDR``), ``mount_point``,
    ``namespace``, ``field``.
    """

    backend_name = "vault"

    def __init__(self, config: ProviderConfig, executor: RetryExecutor | NoRetry | None = None) -> None:
        super().__init__(config, executor)
        self._url = config.get("address") or os.environ.get("VAULT_ADDR", "")
        if not self._url:
            raise InvalidConfigError("'address' option or VAULT_ADDR is required")
        self._token = os.environ.get("VAULT_TOKEN")
        self._mount_point = config.get("mount_point", "secret")
        self._client: Any = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> Any:
        with self._client_lock:
            if self._client is None:
                import hvac  # type: ignore[import-untyped]

                self._client = hvac.Client(
                    url=self._url,
                    token=self._token,
                    namespace=self._config.get("namespace") or None,
                )
            return self._client

    def fetch_scalar(self, location: str) -> str:
        field = self._config.get("field", "value")
        data = self._read(location)
        if field not in data:
            raise NotFoundError(f"field '{field}' not found in secret '{location}'")
        return render_value(data[field], f"{location} field '{field}'")

    def fetch_mapping(self, location: str) -> MappingResult:
        return MappingResult.of_document(self._read(location))

    def _read(self, path: str) -> dict[str, Any]:
        return self._call(lambda: self._read_once(path), f"vault: secret '{path}'")

    def _read_once(self, path: str) -> dict[str, Any]:
        import hvac.exceptions  # type: ignore[import-untyped]
        import requests

        try:
            response = self._get_client().secrets.kv.v2.read_secret_version(
                path=path, mount_point=self._mount_point
            )
        except hvac.exceptions.InvalidPath as exc:
            raise NotFoundError(f"secret '{path}' not found under mount '{self._mount_point}'") from exc
        except (hvac.exceptions.Forbidden, hvac.exceptions.Unauthorized) as exc:
            raise AccessDeniedError(f"permission denied reading '{path}'") from exc
        except (hvac.exceptions.VaultError, requests.exceptions.RequestException) as exc:
            raise BackendUnavailableError(f"error reading '{path}': {exc}") from exc

        data = (response or {}).get("data", {}).get("data")
        if data is None:
            raise NotFoundError(f"secret '{path}' has no data")
        logger.debug("vault: successfully retrieved path=%s", path)
        return dict(data)
