from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import total_ordering
from typing import Any, Iterable

from .exceptions import InvalidRequest


class ItemKind(str, Enum):
    """Closed set of things the shop sells."""

    COFFEE = "coffee"
    PASTRY = "pastry"


def to_decimal(value: Any) -> Decimal:
    """
    Convert a price-like value to `Decimal`.

    Floats go through their shortest repr, so ``4.5`` becomes ``Decimal("4.5")``
    rather than the exact binary expansion.
    """
    if isinstance(value, bool):
        raise TypeError(f"{value!r} is not a price")
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value)


@total_ordering
@dataclass(frozen=True)
class MenuItem:
    """
    A priced menu entry.

    Items compare by price first and name second, so ``sorted(items)`` gives
    the cheapest first with ties broken alphabetically.
    """

    name: str
    price: Decimal
    kind: ItemKind = ItemKind.COFFEE

    def __post_init__(self) -> None:
        object.__setattr__(self, "price", to_decimal(self.price))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, MenuItem):
            return NotImplemented
        return (self.price, self.name) < (other.price, other.name)

    def with_price(self, price: Decimal | int | str) -> MenuItem:
        return replace(self, price=to_decimal(price))

    def __str__(self) -> str:
        return f"{self.name} - ${self.price:.2f}"


@dataclass(frozen=True)
class OrderRequest:
    """
    One customer order.

    Construction does not validate: a malformed request still has to travel
    through a batch so it can be reported back with its own outcome. Call
    `validate_request` to check it.
    """

    order_id: str
    product: str
    price: Decimal
    kind: ItemKind = ItemKind.COFFEE

    @classmethod
    def from_item(cls, order_id: str, item: MenuItem) -> OrderRequest:
        return cls(order_id=order_id, product=item.name, price=item.price, kind=item.kind)


def validate_request(request: Any) -> OrderRequest:
    """
    Check that a request can be scheduled.

    Returns the request with its price normalised to `Decimal`.

    Raises
    ------
    InvalidRequest
        If the object is not an OrderRequest, the id is empty, or the price is
        not a finite, non-negative amount.
    """
    if not isinstance(request, OrderRequest):
        raise InvalidRequest(f"expected OrderRequest, got {type(request).__name__}")

    if request.order_id is None or not str(request.order_id).strip():
        raise InvalidRequest("order id is empty")

    try:
        price = to_decimal(request.price)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise InvalidRequest(f"price {request.price!r} is not a decimal amount") from e

    if not price.is_finite():
        raise InvalidRequest(f"price {request.price!r} is not finite")
    if price < 0:
        raise InvalidRequest(f"price {price} is negative")

    if type(request.price) is Decimal:
        return request
    return replace(request, price=price)


class OutcomeKind(str, Enum):
    SERVED = "served"
    OUT_OF_STOCK = "out_of_stock"
    CANCELLED = "cancelled"
    INVALID_REQUEST = "invalid_request"
    FAILED = "failed"


@dataclass(frozen=True)
class OrderOutcome:
    """Terminal result of one order request."""

    order_id: str
    kind: OutcomeKind
    price: Decimal = Decimal("0")
    detail: str = ""

    @property
    def served(self) -> bool:
        return self.kind is OutcomeKind.SERVED


@dataclass(frozen=True)
class BatchSummary:
    served: int = 0
    out_of_stock: int = 0
    cancelled: int = 0
    invalid: int = 0
    failed: int = 0
    revenue: Decimal = Decimal("0")

    @property
    def total(self) -> int:
        return self.served + self.out_of_stock + self.cancelled + self.invalid + self.failed


def summarize(outcomes: Iterable[OrderOutcome]) -> BatchSummary:
    """Aggregate a list of outcomes into counts and served revenue."""
    counts: Counter[OutcomeKind] = Counter()
    revenue = Decimal("0")

    for outcome in outcomes:
        counts[outcome.kind] += 1
        if outcome.served:
            revenue += outcome.price

    return BatchSummary(
        served=counts[OutcomeKind.SERVED],
        out_of_stock=counts[OutcomeKind.OUT_OF_STOCK],
        cancelled=counts[OutcomeKind.CANCELLED],
        invalid=counts[OutcomeKind.INVALID_REQUEST],
        failed=counts[OutcomeKind.FAILED],
        revenue=revenue,
    )
