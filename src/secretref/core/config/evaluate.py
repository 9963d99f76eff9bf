"""Resolve references embedded in configuration trees.

String values starting with ``ref+`` are replaced with the value they
reference; everything else is copied as-is::

    database:
      host: db.internal
      password: ref+awssecrets://prod/db#/password
      token: ref+vault://app/api?mount_point=kv

After loading the YAML/JSON/HOCON document, call :func:`evaluate_config`
to obtain a copy with every reference resolved.
"""

from __future__ import annotations

import logging
from typing import Any

from secretref.core.reference import is_reference
from secretref.core.resolver import ReferenceResolver

logger = logging.getLogger(__name__)


def evaluate_config(config: Any, resolver: ReferenceResolver) -> Any:
    """Recursively resolve ``ref+`` references in a configuration tree.

    Args:
        config: A mapping, list or scalar, typically a decoded document.
        resolver: Resolver used for every reference found.

    Returns:
        A new tree with references replaced by their resolved values.

    Raises:
        SecretRefError: If any reference cannot be resolved.
    """
    if isinstance(config, str):
        if not is_reference(config):
            return config
        value = resolver.resolve_scalar(config)
        logger.debug("Resolved embedded reference")
        return value
    if isinstance(config, dict):
        return {key: evaluate_config(value, resolver) for key, value in config.items()}
    if isinstance(config, list):
        return [evaluate_config(item, resolver) for item in config]
    return config
