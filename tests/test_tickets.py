from decimal import Decimal

import pytest

from baristas.exceptions import IllegalTransition
from baristas.models import OrderRequest, OutcomeKind
from baristas.tickets import OrderState, OrderTicket


def ticket(on_change=None) -> OrderTicket:
    return OrderTicket(OrderRequest("t-1", "Latte", Decimal("4.50")), on_change=on_change)


def test_new_ticket_has_no_outcome():
    t = ticket()

    assert t.state is OrderState.NEW
    assert t.outcome is None
    assert not t.done


def test_full_lifecycle_produces_served_outcome():
    changes = []
    t = ticket(on_change=changes.append)

    t.start_brewing()
    t.finish_brewing()
    outcome = t.serve()

    assert outcome.kind is OutcomeKind.SERVED
    assert outcome.order_id == "t-1"
    assert outcome.price == Decimal("4.50")
    assert t.done
    assert [(c.previous, c.current) for c in changes] == [
        (OrderState.NEW, OrderState.BREWING),
        (OrderState.BREWING, OrderState.READY),
        (OrderState.READY, OrderState.SERVED),
    ]


def test_serving_before_brewing_is_illegal():
    t = ticket()

    with pytest.raises(IllegalTransition) as info:
        t.serve()

    assert info.value.code == "illegal_transition"
    assert t.state is OrderState.NEW


def test_cannot_cancel_once_ready():
    t = ticket()
    t.start_brewing()
    t.finish_brewing()

    with pytest.raises(IllegalTransition):
        t.cancel()


@pytest.mark.parametrize("steps", [0, 1])
def test_cancel_from_new_or_brewing(steps):
    t = ticket()
    if steps:
        t.start_brewing()

    outcome = t.cancel("shop closed")

    assert outcome.kind is OutcomeKind.CANCELLED
    assert outcome.detail == "shop closed"


def test_terminal_state_is_final():
    t = ticket()
    t.start_brewing()
    t.finish_brewing()
    first = t.out_of_stock()

    for move in (t.serve, t.out_of_stock, t.cancel, t.start_brewing):
        with pytest.raises(IllegalTransition):
            move()
    with pytest.raises(IllegalTransition):
        t.fail("late")

    assert t.outcome is first
    assert first.kind is OutcomeKind.OUT_OF_STOCK


def test_fail_is_allowed_from_any_open_state():
    t = ticket()
    t.start_brewing()

    outcome = t.fail("RuntimeError: boom")

    assert outcome.kind is OutcomeKind.FAILED
    assert t.state is OrderState.FAILED


@pytest.mark.parametrize("target", [OrderState.BREWING, OrderState.READY])
def test_finishing_in_an_open_state_is_illegal(target):
    changes = []
    t = ticket(on_change=changes.append)

    with pytest.raises(IllegalTransition):
        t._finish(target)

    assert t.state is OrderState.NEW
    assert t.outcome is None
    assert changes == []
