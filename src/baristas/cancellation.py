"""
Cooperative cancellation for order workers.

A `CancellationToken` is created per batch and handed explicitly to every
worker. Workers poll it before starting and wait on it during their simulated
delay, so raising the signal wakes sleeping workers immediately but never
interrupts one that is already at the register.

`DeadlineTimer` raises a token once after a fixed duration on its own thread.
"""

from __future__ import annotations

import logging
import math
import threading
from datetime import timedelta
from typing import Any

from .exceptions import InvalidDeadline

logger = logging.getLogger(__name__)


def coerce_deadline(deadline: Any) -> float | None:
    """
    Normalise a batch deadline to seconds.

    Accepts None, a non-negative finite int/float, or a non-negative
    `timedelta`. Anything else raises `InvalidDeadline`.
    """
    if deadline is None:
        return None

    if isinstance(deadline, timedelta):
        seconds = deadline.total_seconds()
    elif isinstance(deadline, (int, float)) and not isinstance(deadline, bool):
        seconds = float(deadline)
    else:
        raise InvalidDeadline(
            f"deadline must be seconds or a timedelta, got {type(deadline).__name__}"
        )

    if not math.isfinite(seconds) or seconds < 0:
        raise InvalidDeadline(f"deadline must be a finite, non-negative duration, got {deadline!r}")

    return seconds


class CancellationToken:
    """
    Thread-safe, idempotent cancellation signal.

    Example
    -------
    >>> token = CancellationToken()
    >>> token.sleep(0.01)   # slept the full delay
    False
    >>> token.cancel()
    >>> token.sleep(10)     # returns immediately
    True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def sleep(self, seconds: float) -> bool:
        """
        Wait up to ``seconds`` or until cancelled, whichever comes first.

        Returns True if the token was cancelled (before or during the wait).
        """
        return self._event.wait(max(seconds, 0.0))


class DeadlineTimer:
    """
    One-shot timer that cancels a token after ``seconds``.

    `stop` is safe to call at any time, including after the timer fired or
    when it was never started; in both cases it does nothing.
    """

    def __init__(self, token: CancellationToken, seconds: float) -> None:
        self.token = token
        self.seconds = seconds
        self._timer = threading.Timer(seconds, self._fire)
        self._timer.daemon = True
        self._fired = threading.Event()

    @property
    def fired(self) -> bool:
        return self._fired.is_set()

    def _fire(self) -> None:
        logger.info("deadline of %.3fs reached, cancelling pending orders", self.seconds)
        self._fired.set()
        self.token.cancel()

    def start(self) -> DeadlineTimer:
        self._timer.start()
        return self

    def stop(self) -> None:
        self._timer.cancel()
