"""Resilience patterns for backend adapters."""

from secretref.core.resilience.retry import NoRetry, RetryExecutor, build_executor

__all__ = [
    "NoRetry",
    "RetryExecutor",
    "build_executor",
]
