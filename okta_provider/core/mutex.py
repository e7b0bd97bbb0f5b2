"""Named mutual exclusion keyed by string.

Serializes fetch-mutate-write sequences against the same remote object
within one process. Locks are created lazily per key and kept for the
life of the owning MutexKV.
"""
from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from .okta.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


class MutexKV:
    """Map of key to non-reentrant lock.

    Usage:
        mutex = MutexKV()
        with mutex.hold("application/0oa1"):
            ...  # fetch, mutate, write
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._store: Dict[str, threading.Lock] = {}

    def _get(self, key: str) -> threading.Lock:
        with self._lock:
            lock = self._store.get(key)
            if lock is None:
                lock = threading.Lock()
                self._store[key] = lock
            return lock

    def lock(self, key: str, timeout: Optional[float] = None) -> None:
        """Block until `key` is free and take it.

        Args:
            key: Lock name
            timeout: Seconds to wait; None waits forever

        Raises:
            LockTimeoutError: If timeout elapses first
        """
        logger.debug("Locking %r", key)
        lock = self._get(key)
        if timeout is None:
            lock.acquire()
        elif not lock.acquire(timeout=timeout):
            raise LockTimeoutError(key, timeout)
        logger.debug("Locked %r", key)

    def unlock(self, key: str) -> None:
        """Release `key`. Raises RuntimeError if it is not held."""
        with self._lock:
            lock = self._store.get(key)
        if lock is None or not lock.locked():
            raise RuntimeError(f"unlock of unlocked key {key!r}")
        lock.release()
        logger.debug("Unlocked %r", key)

    @contextmanager
    def hold(self, key: str, timeout: Optional[float] = None) -> Iterator[None]:
        self.lock(key, timeout)
        try:
            yield
        finally:
            self.unlock(key)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
