"""Retry of transient backend failures with exponential backoff and jitter."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from typing import TypeVar

from secretref.core.config.retry import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExecutor:
    """Executes backend calls with configurable retry logic.

    Used by adapters around their client calls.  Only exceptions whose class
    (or a base class) is named in ``RetryConfig.retry_on_exceptions`` are
    retried; everything else propagates on the first failure.

    Args:
        config: Retry configuration specifying attempts and delays.
        jitter_factor: Random jitter multiplier applied to each delay (0 disables jitter).
        sleep_func: Injectable sleep function for testing. Defaults to ``time.sleep``.
    """

    def __init__(
        self,
        config: RetryConfig,
        jitter_factor: float = 0.25,
        sleep_func: Callable[[float], None] | None = None,
    ) -> None:
        self._config = config
        self._jitter_factor = jitter_factor
        self._sleep = sleep_func or time.sleep

    @property
    def config(self) -> RetryConfig:
        """Return the retry configuration."""
        return self._config

    def calculate_delay(self, attempt: int) -> float:
        """Delay in seconds before retry number *attempt* (zero-based)."""
        base = self._config.initial_delay_seconds * (
            self._config.backoff_multiplier ** attempt
        )
        base = min(base, self._config.max_delay_seconds)

        if self._jitter_factor > 0:
            base += base * self._jitter_factor * random.random()

        return base

    def is_retryable(self, error: Exception) -> bool:
        """Check whether *error* matches one of the configured class names."""
        names = set(self._config.retry_on_exceptions)
        return any(cls.__name__ in names for cls in type(error).__mro__)

    def execute(self, func: Callable[[], T], description: str = "call") -> T:
        """Call *func*, retrying retryable failures.

        Args:
            func: Zero-argument callable to execute.
            description: Short label for log messages (never a secret value).

        Raises:
            Exception: The last exception once attempts are exhausted, or the
                first non-retryable exception.
        """
        attempt = 0
        while True:
            try:
                return func()
            except Exception as exc:
                is_last = attempt == self._config.max_attempts - 1
                if is_last or not self.is_retryable(exc):
                    raise

                delay = self.calculate_delay(attempt)
                logger.debug(
                    "%s: attempt %d/%d failed (%s), retrying in %.3fs",
                    description,
                    attempt + 1,
                    self._config.max_attempts,
                    type(exc).__name__,
                    delay,
                )
                self._sleep(delay)
                attempt += 1


class NoRetry:
    """Executor stand-in that calls through once."""

    def execute(self, func: Callable[[], T], description: str = "call") -> T:
        return func()


def build_executor(config: RetryConfig | None) -> RetryExecutor | NoRetry:
    """Return a :class:`RetryExecutor` for *config*, or :class:`NoRetry` when unset."""
    if config is None:
        return NoRetry()
    return RetryExecutor(config)
