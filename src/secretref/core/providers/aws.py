"""Shared AWS plumbing: lazy boto3 clients and error translation."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, TypeVar

from secretref.core.errors import (
    AccessDeniedError,
    BackendUnavailableError,
    NotFoundError,
    SecretRefError,
)
from secretref.core.providers.base import ProviderConfig, SecretsAdapter
from secretref.core.resilience.retry import NoRetry, RetryExecutor

T = TypeVar("T")

AWS_OPTIONS = frozenset({"region", "profile"})
"""Options understood by every AWS-backed adapter."""

_NOT_FOUND_CODES = frozenset({
    "ParameterNotFound",
    "ParameterVersionNotFound",
    "ResourceNotFoundException",
    "NotFoundException",
    "NoSuchKey",
    "NoSuchBucket",
    "NoSuchVersion",
    "404",
})

_ACCESS_DENIED_CODES = frozenset({
    "AccessDenied",
    "AccessDeniedException",
    "UnrecognizedClientException",
    "InvalidSignatureException",
    "ExpiredTokenException",
    "IncorrectKeyException",
    "InvalidCiphertextException",
    "KMSInvalidStateException",
    "403",
})


def translate_error(exc: Exception, what: str) -> SecretRefError:
    """Map a botocore exception onto the resolution error taxonomy.

    Args:
        exc: ``ClientError`` or ``BotoCoreError`` raised by a client call.
        what: Description of the requested item for the message.
    """
    from botocore.exceptions import ClientError, NoCredentialsError  # type: ignore[import-untyped]

    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = str(error.get("Code", ""))
        message = error.get("Message") or code
        if code in _NOT_FOUND_CODES:
            return NotFoundError(f"{what} not found: {code}: {message}")
        if code in _ACCESS_DENIED_CODES:
            return AccessDeniedError(f"access to {what} denied: {code}: {message}")
        return BackendUnavailableError(f"error fetching {what}: {code}: {message}")
    if isinstance(exc, NoCredentialsError):
        return AccessDeniedError(f"no AWS credentials available for {what}")
    return BackendUnavailableError(f"error fetching {what}: {exc}")


class AwsAdapter(SecretsAdapter):
    """Base for adapters backed by one boto3 client.

    The client is created lazily on the first request from the ``region``
    and ``profile`` options, and reused for the adapter's lifetime.
    """

    service: str = ""

    def __init__(self, config: ProviderConfig, executor: RetryExecutor | NoRetry | None = None) -> None:
        super().__init__(config, executor)
        self._client: Any = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> Any:
        with self._client_lock:
            if self._client is None:
                import boto3  # type: ignore[import-untyped]

                session = boto3.Session(
                    profile_name=self._config.get("profile") or None,
                    region_name=self._config.get("region") or None,
                )
                self._client = session.client(self.service)
            return self._client

    def _request(self, operation: Callable[[Any], T], what: str) -> T:
        """Run *operation* against the client, translating botocore errors."""
        from botocore.exceptions import BotoCoreError, ClientError  # type: ignore[import-untyped]

        def attempt() -> T:
            try:
                return operation(self._get_client())
            except (ClientError, BotoCoreError) as exc:
                raise translate_error(exc, what) from exc

        return self._call(attempt, f"{self.backend_name}: {what}")
