"""AWS S3 object adapter."""

from __future__ import annotations

import logging
from typing import Any

from secretref.core.decoding import decode_mapping, decode_text
from secretref.core.errors import MalformedReferenceError
from secretref.core.providers.aws import AWS_OPTIONS, AwsAdapter
from secretref.core.providers.base import MappingResult

logger = logging.getLogger(__name__)

S3_OPTIONS = AWS_OPTIONS | {"version_id"}


def split_object_location(location: str) -> tuple[str, str]:
    """Split ``bucket/key/...`` into ``(bucket, key)``."""
    bucket, _, key = location.lstrip("/").partition("/")
    if not bucket or not key:
        raise MalformedReferenceError(location, "expected '<bucket>/<key>'")
    return bucket, key


class S3Adapter(AwsAdapter):
    """Read objects from S3: ``s3://my-bucket/path/to/object.yaml``.

    Options: ``region``, ``profile``, ``version_id``.
    """

    backend_name = "s3"
    service = "s3"

    def fetch_scalar(self, location: str) -> str:
        bucket, key = split_object_location(location)
        kwargs: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if self._config.get("version_id"):
            kwargs["VersionId"] = self._config.get("version_id")

        body = self._request(
            lambda client: client.get_object(**kwargs)["Body"].read(),
            f"object 's3://{bucket}/{key}'",
        )
        logger.debug("s3: successfully retrieved bucket=%s key=%s", bucket, key)
        if isinstance(body, bytes):
            return decode_text(body, f"object 's3://{bucket}/{key}'")
        return str(body)

    def fetch_mapping(self, location: str) -> MappingResult:
        return MappingResult.of_document(
            decode_mapping(self.fetch_scalar(location), f"object '{location}'")
        )
