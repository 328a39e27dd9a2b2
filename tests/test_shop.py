"""
ShopState under contention.

These tests use real threads against the in-memory lock backend: many
workers hit the register at once and the totals must still add up.
"""

import threading
from decimal import Decimal

import pytest

from baristas.exceptions import ConfigurationError, LockAcquireTimeout
from baristas.locks import ThreadingLockBackend, get_default_backend
from baristas.shop import ShopState


def test_new_shop_starts_with_zero_revenue():
    shop = ShopState(initial_stock=3)

    snap = shop.snapshot()
    assert snap.total_revenue == Decimal("0")
    assert snap.stock_remaining == 3


@pytest.mark.parametrize("bad", [-1, 1.5, "10", True, None])
def test_invalid_initial_stock_is_a_configuration_error(bad):
    with pytest.raises(ConfigurationError):
        ShopState(initial_stock=bad)


def test_register_sells_until_stock_runs_out():
    shop = ShopState(initial_stock=2)

    assert shop.register(Decimal("4.50")) is True
    assert shop.register("2.50") is True
    assert shop.register(Decimal("4.50")) is False

    snap = shop.snapshot()
    assert snap.total_revenue == Decimal("7.00")
    assert snap.stock_remaining == 0


def test_register_with_zero_stock_never_sells():
    shop = ShopState(initial_stock=0)

    assert shop.register(Decimal("5.00")) is False
    assert shop.snapshot().stock_remaining == 0


def test_shops_have_distinct_lock_keys():
    assert ShopState(1).lock_key != ShopState(1).lock_key


def test_concurrent_registers_never_oversell():
    shop = ShopState(initial_stock=50)
    barrier = threading.Barrier(20)
    sold: list[bool] = []
    sold_guard = threading.Lock()

    def buyer() -> None:
        barrier.wait(timeout=5.0)
        for _ in range(5):
            ok = shop.register(Decimal("1.25"))
            with sold_guard:
                sold.append(ok)

    threads = [threading.Thread(target=buyer, name=f"buyer-{i}") for i in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10.0)

    snap = shop.snapshot()
    assert len(sold) == 100
    assert sold.count(True) == 50
    assert snap.stock_remaining == 0
    assert snap.total_revenue == Decimal("1.25") * 50


def test_register_gives_up_after_lock_timeout():
    be = ThreadingLockBackend()
    shop = ShopState(initial_stock=1, backend=be, lock_timeout=0.05)

    assert be.acquire(shop.lock_key, timeout=None)
    try:
        with pytest.raises(LockAcquireTimeout):
            shop.register(Decimal("5.00"))
    finally:
        be.release(shop.lock_key)

    assert shop.snapshot().stock_remaining == 1


def test_shops_do_not_leave_locks_in_the_shared_backend():
    shared = get_default_backend()
    before = len(shared._locks)

    for _ in range(200):
        shop = ShopState(initial_stock=1)
        shop.register(Decimal("1.00"))
        shop.snapshot()

    assert len(shared._locks) == before


def test_each_shop_locks_on_its_own_backend():
    first, second = ShopState(1), ShopState(1)

    assert first._backend is not second._backend
    assert isinstance(first._backend, ThreadingLockBackend)
