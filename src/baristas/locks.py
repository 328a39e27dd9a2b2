from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Protocol

from .exceptions import LockAcquireTimeout


class LockBackend(Protocol):
    """
    Protocol describing the minimal backend interface.

    Any object that can acquire and release a lock by key satisfies it, so
    tests can substitute a recording backend without touching callers.
    """
    def acquire(self, key: str, timeout: float | None) -> bool: ...
    def release(self, key: str) -> None: ...


class ThreadingLockBackend:
    """
    In-process lock backend built on `threading.Lock`.

    One lock is created lazily per key and kept for the lifetime of the
    backend. Every thread in the process that uses the same backend and the
    same key competes for the same lock.

    Timeout behavior
    ----------------
    - timeout=None:
        Blocks indefinitely until the lock is acquired.

    - timeout=float:
        Waits at most that many seconds. ``0`` is a single non-blocking try.

    Limitations
    -----------
    Locks are not reentrant: acquiring a key twice from the same thread
    without releasing it in between deadlocks (or times out).
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._registry_guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._registry_guard:
            found = self._locks.get(key)
            if found is None:
                found = self._locks[key] = threading.Lock()
            return found

    def acquire(self, key: str, timeout: float | None) -> bool:
        """
        Attempt to acquire the lock for the given key.

        Returns
        -------
        bool
            True if the lock was acquired, False if the timeout expired first.
        """
        mutex = self._lock_for(key)

        if timeout is None:
            return mutex.acquire()

        return mutex.acquire(timeout=max(timeout, 0.0))

    def release(self, key: str) -> None:
        """
        Release the lock for the given key.

        Raises RuntimeError if the key is not currently held.
        """
        self._lock_for(key).release()


# Default backend used when none is explicitly provided.
_default_backend: LockBackend = ThreadingLockBackend()


def get_default_backend() -> LockBackend:
    return _default_backend


@contextmanager
def lock(
    key: str,
    timeout: float | None = 3.0,
    backend: LockBackend | None = None,
) -> Iterator[None]:
    """
    Acquire a lock for the given key.

    This context manager ensures that only one thread holding the same key
    may enter the protected block at a time.

    Parameters
    ----------
    key : str
        Unique lock identifier, typically derived from business context,
        e.g. "shop:main".

    timeout : float | None, default=3.0
        Maximum time (in seconds) to wait for lock acquisition.

        - None: block indefinitely.
        - float: raise LockAcquireTimeout if exceeded.

    backend : LockBackend | None
        Optional backend override. Defaults to the process-wide backend.

    Raises
    ------
    LockAcquireTimeout
        If the lock cannot be acquired within the timeout.

    Example
    -------
    >>> with lock("shop:main"):
    ...     settle_order()
    """
    be = backend or _default_backend

    acquired = be.acquire(key, timeout)

    if not acquired:
        raise LockAcquireTimeout(
            f"Failed to acquire lock for key='{key}' within timeout={timeout}s"
        )

    try:
        yield
    finally:
        be.release(key)
