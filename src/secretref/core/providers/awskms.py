"""AWS KMS decryption adapter."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

from secretref.core.decoding import decode_mapping, decode_text
from secretref.core.errors import DecodeError, InvalidConfigError, MalformedReferenceError
from secretref.core.providers.aws import AWS_OPTIONS, AwsAdapter
from secretref.core.providers.base import MappingResult

logger = logging.getLogger(__name__)

AWSKMS_OPTIONS = AWS_OPTIONS | {"key", "alg", "context"}


class AwsKmsAdapter(AwsAdapter):
    """Decrypt ciphertext embedded in the reference with AWS KMS.

    The location is the URL-safe base64 encoding of the ciphertext blob::

        awskms://AQICAHh...?region=us-east-1&context=%7Bapp%3A+web%7D

    Options: ``region``, ``profile``, ``key`` (key id), ``alg`` (encryption
    algorithm) and ``context`` (YAML mapping of the encryption context).
    """

    backend_name = "awskms"
    service = "kms"

    def fetch_scalar(self, location: str) -> str:
        kwargs = self._decrypt_arguments(location)
        response = self._request(
            lambda client: client.decrypt(**kwargs),
            "ciphertext",
        )
        logger.debug("awskms: successfully decrypted ciphertext")
        plaintext = response["Plaintext"]
        if isinstance(plaintext, bytes):
            return decode_text(plaintext, "decrypted plaintext")
        return str(plaintext)

    def fetch_mapping(self, location: str) -> MappingResult:
        return MappingResult.of_document(
            decode_mapping(self.fetch_scalar(location), "decrypted plaintext")
        )

    def _decrypt_arguments(self, location: str) -> dict[str, Any]:
        try:
            blob = base64.urlsafe_b64decode(location)
        except (binascii.Error, ValueError) as exc:
            raise MalformedReferenceError(location, "ciphertext is not url-safe base64") from exc

        kwargs: dict[str, Any] = {"CiphertextBlob": blob}
        if self._config.get("key"):
            kwargs["KeyId"] = self._config.get("key")
        if self._config.get("alg"):
            kwargs["EncryptionAlgorithm"] = self._config.get("alg")
        if self._config.get("context"):
            try:
                context = decode_mapping(self._config.get("context"), "encryption context")
            except DecodeError as exc:
                raise InvalidConfigError(f"invalid 'context' option: {exc.message}") from exc
            kwargs["EncryptionContext"] = {key: str(value) for key, value in context.items()}
        return kwargs
