from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Handler = Callable[[T], Any]


class EventHook(Generic[T]):
    """
    A named event with any number of subscribers.

    `emit` calls every handler in subscription order. Each call runs inside
    its own error boundary: a handler that raises is logged and skipped, and
    the remaining handlers still run.

    Handlers may be called from worker threads and must be thread-safe.

    Example
    -------
    >>> hook = EventHook("item_added")
    >>> _ = hook.subscribe(print)
    >>> hook.emit("Latte")
    Latte
    0
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[Handler[T]] = []
        self._guard = threading.Lock()

    def subscribe(self, handler: Handler[T]) -> Handler[T]:
        """Add a handler. Returns it, so this also works as a decorator."""
        with self._guard:
            self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: Handler[T]) -> bool:
        with self._guard:
            try:
                self._handlers.remove(handler)
            except ValueError:
                return False
        return True

    def __len__(self) -> int:
        with self._guard:
            return len(self._handlers)

    def emit(self, payload: T) -> int:
        """
        Deliver ``payload`` to every subscriber.

        Returns
        -------
        int
            Number of handlers that raised.
        """
        with self._guard:
            handlers = list(self._handlers)

        failures = 0
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                failures += 1
                logger.exception(
                    "%s: handler %s failed",
                    self.name, getattr(handler, "__qualname__", repr(handler)),
                )
        return failures
