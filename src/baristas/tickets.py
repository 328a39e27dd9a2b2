from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, Mapping

from .exceptions import IllegalTransition
from .models import OrderOutcome, OrderRequest, OutcomeKind

logger = logging.getLogger(__name__)


class OrderState(str, Enum):
    NEW = "new"
    BREWING = "brewing"
    READY = "ready"
    SERVED = "served"
    OUT_OF_STOCK = "out_of_stock"
    CANCELLED = "cancelled"
    FAILED = "failed"


TRANSITIONS: Mapping[OrderState, FrozenSet[OrderState]] = {
    OrderState.NEW: frozenset({OrderState.BREWING, OrderState.CANCELLED, OrderState.FAILED}),
    OrderState.BREWING: frozenset({OrderState.READY, OrderState.CANCELLED, OrderState.FAILED}),
    OrderState.READY: frozenset({OrderState.SERVED, OrderState.OUT_OF_STOCK, OrderState.FAILED}),
}

TERMINAL_STATES: FrozenSet[OrderState] = frozenset({
    OrderState.SERVED,
    OrderState.OUT_OF_STOCK,
    OrderState.CANCELLED,
    OrderState.FAILED,
})

_OUTCOME_FOR: Mapping[OrderState, OutcomeKind] = {
    OrderState.SERVED: OutcomeKind.SERVED,
    OrderState.OUT_OF_STOCK: OutcomeKind.OUT_OF_STOCK,
    OrderState.CANCELLED: OutcomeKind.CANCELLED,
    OrderState.FAILED: OutcomeKind.FAILED,
}


@dataclass(frozen=True)
class Transition:
    order_id: str
    previous: OrderState
    current: OrderState
    detail: str = ""


TransitionCallback = Callable[[Transition], object]


class OrderTicket:
    """
    Lifecycle of a single order on its way through a barista.

        NEW -> BREWING -> READY -> SERVED | OUT_OF_STOCK
        NEW | BREWING -> CANCELLED
        any non-terminal -> FAILED

    Terminal states are final. Reaching one produces the order's outcome, and
    since no transition leaves a terminal state, a ticket yields at most one
    outcome.

    A ticket is owned by one worker and is not thread-safe.
    """

    def __init__(self, request: OrderRequest, on_change: TransitionCallback | None = None) -> None:
        self.request = request
        self.state = OrderState.NEW
        self.outcome: OrderOutcome | None = None
        self._on_change = on_change

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def _move(self, target: OrderState, detail: str = "") -> None:
        allowed = TRANSITIONS.get(self.state, frozenset())
        if target not in allowed:
            raise IllegalTransition(
                f"order {self.request.order_id!r} cannot go from {self.state.value} to {target.value}"
            )

        previous, self.state = self.state, target
        logger.debug("order %s: %s -> %s", self.request.order_id, previous.value, target.value)

        if target in TERMINAL_STATES:
            self.outcome = OrderOutcome(
                order_id=self.request.order_id,
                kind=_OUTCOME_FOR[target],
                price=self.request.price,
                detail=detail,
            )

        if self._on_change is not None:
            self._on_change(Transition(self.request.order_id, previous, target, detail))

    def _finish(self, target: OrderState, detail: str = "") -> OrderOutcome:
        if target not in TERMINAL_STATES:
            raise IllegalTransition(
                f"order {self.request.order_id!r} cannot finish in {target.value}, it is not terminal"
            )
        self._move(target, detail)
        return self.outcome  # type: ignore[return-value]

    def start_brewing(self) -> None:
        self._move(OrderState.BREWING)

    def finish_brewing(self) -> None:
        self._move(OrderState.READY)

    def serve(self) -> OrderOutcome:
        return self._finish(OrderState.SERVED)

    def out_of_stock(self) -> OrderOutcome:
        return self._finish(OrderState.OUT_OF_STOCK, "no stock left at the register")

    def cancel(self, detail: str = "cancelled") -> OrderOutcome:
        return self._finish(OrderState.CANCELLED, detail)

    def fail(self, detail: str) -> OrderOutcome:
        return self._finish(OrderState.FAILED, detail)

    def __repr__(self) -> str:
        return f"<OrderTicket {self.request.order_id!r} {self.state.value}>"
