"""AWS SSM Parameter Store adapter."""

from __future__ import annotations

import logging
from typing import Any

from secretref.core.assembler import FlatEntry
from secretref.core.providers.aws import AWS_OPTIONS, AwsAdapter
from secretref.core.providers.base import MappingResult, ProviderConfig
from secretref.core.resilience.retry import NoRetry, RetryExecutor

logger = logging.getLogger(__name__)

SSM_OPTIONS = AWS_OPTIONS | {"recursive"}


def parameter_path(location: str) -> str:
    """Normalise *location* to an absolute parameter path."""
    return "/" + location.strip("/")


class SsmAdapter(AwsAdapter):
    """Resolve parameters from AWS Systems Manager Parameter Store.

    ``ssm://app/prod/db-password`` reads the ``/app/prod/db-password``
    parameter (decrypting SecureStrings).  As a mapping, the location is a
    path: every parameter below it is listed and assembled into a nested
    mapping.  Only direct children are listed unless ``recursive=true``.

    Options: ``region``, ``profile``, ``recursive``.
    """

    backend_name = "ssm"
    service = "ssm"

    def __init__(self, config: ProviderConfig, executor: RetryExecutor | NoRetry | None = None) -> None:
        super().__init__(config, executor)
        self._recursive = config.get_bool("recursive")

    def fetch_scalar(self, location: str) -> str:
        name = parameter_path(location)
        response = self._request(
            lambda client: client.get_parameter(Name=name, WithDecryption=True),
            f"parameter '{name}'",
        )
        logger.debug("ssm: successfully retrieved key=%s", name)
        return str(response["Parameter"]["Value"])

    def fetch_mapping(self, location: str) -> MappingResult:
        root = parameter_path(location)
        entries = self._request(
            lambda client: self._list_parameters(client, root, self._recursive),
            f"parameters by path '{root}'",
        )
        logger.debug("ssm: retrieved %d parameters under path=%s", len(entries), root)
        return MappingResult.of_entries(root, entries)

    @staticmethod
    def _list_parameters(client: Any, root: str, recursive: bool) -> list[FlatEntry]:
        paginator = client.get_paginator("get_parameters_by_path")
        entries: list[FlatEntry] = []
        for page in paginator.paginate(Path=root, Recursive=recursive, WithDecryption=True):
            for parameter in page.get("Parameters", []):
                entries.append(FlatEntry(parameter["Name"], str(parameter["Value"])))
        return entries
