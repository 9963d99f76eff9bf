"""Base types and enums for configuration models."""

from enum import Enum


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class OutputFormat(str, Enum):
    """Serialisation formats for resolved mappings."""

    YAML = "yaml"
    JSON = "json"
