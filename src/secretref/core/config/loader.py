"""HOCON configuration loader using dataconf.

Loads :class:`~secretref.core.config.resolver.ResolverConfig` (or any other
configuration dataclass) from HOCON files, strings and environment
variables.
"""

from typing import TypeVar, cast

import dataconf

from secretref.core.config.resolver import ResolverConfig

T = TypeVar("T")


def load_from_file(path: str, config_class: type[T] = ResolverConfig) -> T:  # type: ignore[assignment]
    """Load configuration from a HOCON file.

    Example:
        >>> config = load_from_file("secretref.conf")
    """
    return cast(T, dataconf.file(path, config_class))


def load_from_string(hocon_str: str, config_class: type[T] = ResolverConfig) -> T:  # type: ignore[assignment]
    """Load configuration from a HOCON string.

    Example:
        >>> config = load_from_string('defaults { ssm { region: "us-east-1" } }')
    """
    return cast(T, dataconf.string(hocon_str, config_class))


def load_from_env(prefix: str, config_class: type[T] = ResolverConfig) -> T:  # type: ignore[assignment]
    """Load configuration from environment variables.

    Example:
        >>> # With SECRETREF_HTTP_TIMEOUT_SECONDS=3
        >>> config = load_from_env("SECRETREF_")

    Note:
        Environment variables use the format ``PREFIX_FIELD_NAME=value``.
    """
    return cast(T, dataconf.env(prefix, config_class))
