"""Keyed memoisation with single-flight construction."""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class SingleFlight(Generic[K, V]):
    """Thread-safe memo table that builds each value at most once.

    Concurrent callers asking for the same missing key block until the
    first caller's factory returns, then all receive that value.  A factory
    that raises leaves nothing behind, so the next caller builds again.
    """

    def __init__(self) -> None:
        self._values: dict[K, V] = {}
        self._key_locks: dict[K, threading.Lock] = {}
        self._waiters: dict[K, int] = {}
        self._lock = threading.Lock()

    def get_or_create(self, key: K, factory: Callable[[], V]) -> V:
        """Return the value for *key*, calling *factory* on a miss."""
        with self._lock:
            if key in self._values:
                return self._values[key]
            key_lock = self._key_locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1

        try:
            with key_lock:
                with self._lock:
                    if key in self._values:
                        return self._values[key]

                value = factory()

                with self._lock:
                    self._values[key] = value
                return value
        finally:
            # A key lock lives while any caller holds or waits on it.
            with self._lock:
                self._waiters[key] -= 1
                if not self._waiters[key]:
                    del self._waiters[key]
                    del self._key_locks[key]

    def get(self, key: K) -> V | None:
        """Return the cached value for *key* without building it."""
        with self._lock:
            return self._values.get(key)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def clear(self) -> None:
        """Forget every cached value."""
        with self._lock:
            self._values.clear()
