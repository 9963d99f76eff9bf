"""HTTP JSON document adapter."""

from __future__ import annotations

import logging
import threading
from typing import Any
from urllib.parse import urlsplit

from secretref.core.errors import (
    AccessDeniedError,
    BackendUnavailableError,
    DecodeError,
    InvalidConfigError,
    MalformedReferenceError,
    NotFoundError,
)
from secretref.core.extraction import format_scalar, select_scalar
from secretref.core.providers.base import MappingResult, ProviderConfig, SecretsAdapter
from secretref.core.resilience.retry import NoRetry, RetryExecutor
from secretref.core.singleflight import SingleFlight

logger = logging.getLogger(__name__)

HTTPJSON_OPTIONS = frozenset({"insecure", "floatAsInt"})


class HttpJsonAdapter(SecretsAdapter):
    """Query values out of JSON documents served over HTTP(S).

    The location is the document URL without scheme; the expression picks
    the value::

        httpjson://api.example.com/v1/config.json?env=prod#/database.port

    Query items other than the adapter options are part of the URL.  Each
    document is downloaded once per adapter and reused for every lookup.

    Options: ``insecure`` (use ``http`` instead of ``https``) and
    ``floatAsInt`` (render numbers without a fractional part).

    Args:
        config: Effective provider configuration.
        executor: Retry executor wrapping downloads.
        timeout_seconds: HTTP timeout per request.
    """

    backend_name = "httpjson"

    def __init__(
        self,
        config: ProviderConfig,
        executor: RetryExecutor | NoRetry | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        super().__init__(config, executor)
        self._protocol = "http" if config.get_bool("insecure") else "https"
        self._float_as_int = config.get_bool("floatAsInt")
        self._timeout = timeout_seconds
        self._documents: SingleFlight[str, Any] = SingleFlight()
        self._client: Any = None
        self._client_lock = threading.Lock()

    def url_for(self, location: str) -> str:
        """Build the document URL for *location*."""
        url = f"{self._protocol}://{location}"
        if not urlsplit(url).hostname:
            raise MalformedReferenceError(location, "no domain found in location")
        return url

    def fetch_scalar(self, location: str) -> str:
        document = self._document(self.url_for(location))
        if isinstance(document, (dict, list)):
            raise MalformedReferenceError(location, "document has child nodes, add a '#/' expression")
        return format_scalar(document)

    def fetch_mapping(self, location: str) -> MappingResult:
        url = self.url_for(location)
        document = self._document(url)
        if not isinstance(document, dict):
            raise DecodeError(f"document at {url} is not a JSON object")
        return MappingResult.of_document(document)

    def select(self, document: dict[str, Any], expression: str) -> str:
        value = select_scalar(document, expression)
        if not self._float_as_int:
            return value
        try:
            number = float(value)
        except ValueError as exc:
            raise InvalidConfigError(
                f"unable to convert possible float to int for the value selected by '{expression}'"
            ) from exc
        return f"{number:.0f}"

    def _get_client(self) -> Any:
        with self._client_lock:
            if self._client is None:
                import httpx

                self._client = httpx.Client(timeout=self._timeout, follow_redirects=True)
            return self._client

    def _document(self, url: str) -> Any:
        if url in self._documents:
            logger.debug("httpjson: using cached document for %s", url)
        return self._documents.get_or_create(
            url, lambda: self._call(lambda: self._download(url), f"httpjson: {url}")
        )

    def _download(self, url: str) -> Any:
        import httpx

        try:
            response = self._get_client().get(url)
        except httpx.HTTPError as exc:
            raise BackendUnavailableError(f"error fetching json document at {url}: {exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(f"no json document at {url}")
        if response.status_code in (401, 403):
            raise AccessDeniedError(f"access to {url} denied (HTTP {response.status_code})")
        if response.status_code >= 400:
            raise BackendUnavailableError(f"error fetching json document at {url}: HTTP {response.status_code}")

        try:
            document = response.json()
        except ValueError as exc:
            raise DecodeError(f"document at {url} is not valid JSON") from exc

        logger.debug("httpjson: successfully retrieved JSON data from: %s", url)
        return document
