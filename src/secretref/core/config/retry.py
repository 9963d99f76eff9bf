"""Adapter retry configuration model."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retrying transient backend failures.

    Adapters retry only the exception classes named in
    ``retry_on_exceptions``; the resolution core never retries.
    """

    max_attempts: int = 3
    """Maximum number of attempts including the first call (default: 3)"""

    initial_delay_seconds: float = 0.5
    """Initial delay between attempts in seconds (default: 0.5)"""

    max_delay_seconds: float = 10.0
    """Maximum delay between attempts in seconds (default: 10.0)"""

    backoff_multiplier: float = 2.0
    """Multiplier for exponential backoff (default: 2.0)"""

    retry_on_exceptions: list[str] = field(default_factory=lambda: ["BackendUnavailableError"])
    """Exception class names to retry on (default: ['BackendUnavailableError'])"""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay_seconds <= 0:
            raise ValueError("initial_delay_seconds must be positive")
        if self.max_delay_seconds < self.initial_delay_seconds:
            raise ValueError("max_delay_seconds must be >= initial_delay_seconds")
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")
