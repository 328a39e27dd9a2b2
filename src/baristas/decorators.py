from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from inspect import signature
from typing import Any, Callable, Literal, Mapping, Protocol

from .exceptions import LockAcquireTimeout
from .locks import LockBackend, lock

Mode = Literal["raise", "return_none", "callable"]


class ConflictHandler(Protocol):
    """Called with the original arguments when the lock stays busy too long."""
    def __call__(self, *args: Any, **kwargs: Any) -> Any: ...


@dataclass(frozen=True)
class ConflictPolicy:
    """
    What a `synchronized` function does when it cannot get its lock in time.

    - "raise": propagate LockAcquireTimeout (default)
    - "return_none": skip the call and return None
    - "callable": return whatever the handler returns
    """
    mode: Mode = "raise"
    handler: ConflictHandler | None = None


def _resolve_key(
    key: str | Callable[..., str],
    fn: Callable[..., Any],
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> str:
    """
    Build the lock key for one call.

    ``key`` is either called with the call's arguments, or formatted with
    them bound by name, so a template can read attributes of ``self``:
    ``"till:{self.till_id}"``.
    """
    if callable(key):
        return key(*args, **kwargs)

    bound = signature(fn).bind_partial(*args, **kwargs)
    bound.apply_defaults()
    values: Mapping[str, Any] = bound.arguments

    try:
        return key.format(**values)
    except KeyError as e:
        raise KeyError(
            f"baristas: lock key {key!r} needs '{e.args[0]}', "
            f"which is not an argument of {fn.__qualname__}. "
            f"Available: {sorted(values)}"
        ) from e


def synchronized(
    *,
    key: str | Callable[..., str],
    timeout: float | None = None,
    on_conflict: Mode | ConflictHandler = "raise",
    backend: LockBackend | None = None,
):
    """
    Run the decorated function under `lock()`, one call per key at a time.

    Examples
    --------
    class Till:
        @synchronized(key="till:{self.till_id}")
        def ring_up(self, price):
            ...

    @synchronized(key=lambda product: f"restock:{product}", timeout=0.5,
                  on_conflict="return_none")
    def restock(product):
        ...

    The default ``timeout=None`` waits for the lock indefinitely, so
    ``on_conflict`` only matters when a timeout is given.
    """
    policy = (
        ConflictPolicy(mode=on_conflict) if isinstance(on_conflict, str)
        else ConflictPolicy(mode="callable", handler=on_conflict)
    )

    def decorator(fn: Callable[..., Any]):
        @wraps(fn)
        def wrapper(*args: Any, **kwargs: Any):
            lock_key = _resolve_key(key, fn, args, kwargs)

            try:
                with lock(lock_key, timeout=timeout, backend=backend):
                    return fn(*args, **kwargs)
            except LockAcquireTimeout:
                if policy.mode == "return_none":
                    return None
                if policy.handler is not None:
                    return policy.handler(*args, **kwargs)
                raise

        return wrapper

    return decorator
