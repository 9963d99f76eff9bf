"""AWS Secrets Manager adapter."""

from __future__ import annotations

import logging

from secretref.core.assembler import DEFAULT_META_KEYS_FIELD, expand_meta_keys
from secretref.core.decoding import decode_text
from secretref.core.errors import NotFoundError
from secretref.core.providers.aws import AWS_OPTIONS, AwsAdapter
from secretref.core.providers.base import MappingResult, ProviderConfig
from secretref.core.resilience.retry import NoRetry, RetryExecutor

logger = logging.getLogger(__name__)

AWSSECRETS_OPTIONS = AWS_OPTIONS | {"version_stage", "version_id"}


class AwsSecretsAdapter(AwsAdapter):
    """Resolve secrets from AWS Secrets Manager.

    A mapping is either a secret whose value is a YAML/JSON object, or a
    set of sibling secrets listed by a ``<name>/meta`` secret (see
    :func:`~secretref.core.assembler.expand_meta_keys`).

    Options: ``region``, ``profile``, ``version_stage``, ``version_id``.

    Args:
        config: Effective provider configuration.
        executor: Retry executor wrapping client calls.
        meta_keys_field: Meta document field listing child suffixes.
    """

    backend_name = "awssecrets"
    service = "secretsmanager"

    def __init__(
        self,
        config: ProviderConfig,
        executor: RetryExecutor | NoRetry | None = None,
        meta_keys_field: str = DEFAULT_META_KEYS_FIELD,
    ) -> None:
        super().__init__(config, executor)
        self._meta_keys_field = meta_keys_field

    def fetch_scalar(self, location: str) -> str:
        kwargs = {"SecretId": location}
        if self._config.get("version_stage"):
            kwargs["VersionStage"] = self._config.get("version_stage")
        if self._config.get("version_id"):
            kwargs["VersionId"] = self._config.get("version_id")

        response = self._request(
            lambda client: client.get_secret_value(**kwargs),
            f"secret '{location}'",
        )

        if response.get("SecretString") is not None:
            value = str(response["SecretString"])
        elif response.get("SecretBinary") is not None:
            value = decode_text(bytes(response["SecretBinary"]), f"binary secret '{location}'")
        else:
            raise NotFoundError(f"secret '{location}' has neither SecretString nor SecretBinary set")

        logger.debug("awssecrets: successfully retrieved key=%s", location)
        return value

    def fetch_mapping(self, location: str) -> MappingResult:
        document = expand_meta_keys(self.fetch_scalar, location, meta_field=self._meta_keys_field)
        return MappingResult.of_document(document)
