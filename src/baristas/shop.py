from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from .exceptions import ConfigurationError
from .locks import LockBackend, ThreadingLockBackend, lock
from .models import to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShopSnapshot:
    total_revenue: Decimal
    stock_remaining: int


class ShopState:
    """
    Revenue and stock of one shop, shared by every worker of a run.

    The two fields are only touched inside `register` and `snapshot`, both of
    which hold the shop's lock. The lock is held for the stock check and the
    update only, never across a worker's simulated delay.

    Parameters
    ----------
    initial_stock : int
        Cups available at opening. Must be a non-negative integer.

    backend : LockBackend | None
        Lock backend used for the critical section. Defaults to a private
        in-memory backend owned by this shop, so no lock outlives it.

    lock_timeout : float | None
        How long `register` waits for the lock. None (default) waits forever.
    """

    def __init__(
        self,
        initial_stock: int,
        *,
        backend: LockBackend | None = None,
        lock_timeout: float | None = None,
    ) -> None:
        if isinstance(initial_stock, bool) or not isinstance(initial_stock, int):
            raise ConfigurationError(f"initial_stock must be an int, got {initial_stock!r}")
        if initial_stock < 0:
            raise ConfigurationError(f"initial_stock must be >= 0, got {initial_stock}")

        self.shop_id = uuid.uuid4().hex
        self.initial_stock = initial_stock
        self._total_revenue = Decimal("0")
        self._stock_remaining = initial_stock
        self._backend: LockBackend = backend or ThreadingLockBackend()
        self._lock_timeout = lock_timeout

    @property
    def lock_key(self) -> str:
        return f"shop:{self.shop_id}"

    def register(self, price: Decimal | int | str) -> bool:
        """
        Sell one cup at ``price`` if any are left.

        The stock check and both updates happen atomically with respect to
        every other caller.

        Returns
        -------
        bool
            True if the sale went through, False if stock was already zero.

        Raises
        ------
        LockAcquireTimeout
            If ``lock_timeout`` is set and the lock stayed busy that long.
        """
        amount = to_decimal(price)

        with lock(self.lock_key, timeout=self._lock_timeout, backend=self._backend):
            if self._stock_remaining <= 0:
                logger.debug("register %s: out of stock", self.shop_id[:8])
                return False

            self._stock_remaining -= 1
            self._total_revenue += amount
            logger.debug(
                "register %s: +%s (stock: %d, total: %s)",
                self.shop_id[:8], amount, self._stock_remaining, self._total_revenue,
            )
            return True

    def snapshot(self) -> ShopSnapshot:
        with lock(self.lock_key, timeout=self._lock_timeout, backend=self._backend):
            return ShopSnapshot(
                total_revenue=self._total_revenue,
                stock_remaining=self._stock_remaining,
            )

    def __repr__(self) -> str:
        return f"<ShopState {self.shop_id[:8]} initial_stock={self.initial_stock}>"
