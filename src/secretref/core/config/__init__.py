"""Configuration models for secretref.

This package provides dataconf-based configuration models for reference
resolution, loaded from HOCON files, strings or environment variables.
Use :mod:`secretref.core.config.evaluate` to resolve references embedded
in configuration trees.
"""

from secretref.core.config.base import LogLevel, OutputFormat
from secretref.core.config.loader import load_from_env, load_from_file, load_from_string
from secretref.core.config.resolver import LoggingConfig, ResolverConfig
from secretref.core.config.retry import RetryConfig

__all__ = [
    "LogLevel",
    "LoggingConfig",
    "OutputFormat",
    "ResolverConfig",
    "RetryConfig",
    "load_from_env",
    "load_from_file",
    "load_from_string",
]
