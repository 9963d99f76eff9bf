"""Resolver configuration models."""

from dataclasses import dataclass, field

from secretref.core.assembler import DEFAULT_META_KEYS_FIELD
from secretref.core.config.base import LogLevel
from secretref.core.config.retry import RetryConfig


@dataclass
class LoggingConfig:
    """Configuration for logging behavior."""

    level: LogLevel = LogLevel.INFO
    """Logging level (default: INFO)"""

    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    """Log record format string (default: timestamp, level, logger, message)"""


@dataclass
class ResolverConfig:
    """Top-level configuration for reference resolution.

    Example HOCON::

        {
          defaults {
            ssm { region: "eu-west-1" }
            vault { address: "https://vault.internal:8200" }
          }
          http_timeout_seconds: 5
          retry { max_attempts: 4 }
        }
    """

    defaults: dict[str, dict[str, str]] = field(default_factory=dict)
    """Ambient parameters per backend tag, overridden by reference parameters (default: {})"""

    meta_keys_field: str = DEFAULT_META_KEYS_FIELD
    """Meta document field listing child keys for meta-key expansion"""

    http_timeout_seconds: float = 10.0
    """Timeout for HTTP document fetches in seconds (default: 10.0)"""

    retry: RetryConfig | None = None
    """Adapter-level retry of transient backend failures (optional)"""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    """Logging configuration (default: LoggingConfig with defaults)"""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.http_timeout_seconds <= 0:
            raise ValueError("http_timeout_seconds must be positive")

        if not self.meta_keys_field:
            raise ValueError("meta_keys_field must not be empty")

        for tag, params in self.defaults.items():
            if tag != tag.lower():
                raise ValueError(f"backend tag '{tag}' in defaults must be lower-case")
            for key, value in params.items():
                if not isinstance(value, str):
                    raise ValueError(f"default '{tag}.{key}' must be a string")
