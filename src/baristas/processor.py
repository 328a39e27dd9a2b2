from __future__ import annotations

import logging
import math
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Iterable, Sequence

from .cancellation import CancellationToken, DeadlineTimer, coerce_deadline
from .config import Settings, get_settings
from .events import EventHook
from .exceptions import ConfigurationError, IncompleteBatch, InvalidRequest
from .models import OrderOutcome, OrderRequest, OutcomeKind, summarize, validate_request
from .shop import ShopState
from .tickets import OrderTicket, Transition

logger = logging.getLogger(__name__)

DelayRange = tuple[float, float]

# Marks a deadline the caller did not pass, as opposed to an explicit None.
UNSET: Any = object()


def check_delay_range(delay_range: Sequence[float]) -> DelayRange:
    try:
        low, high = (float(bound) for bound in delay_range)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"delay_range must be two numbers, got {delay_range!r}") from e

    if not (math.isfinite(low) and math.isfinite(high)) or low < 0 or low > high:
        raise ConfigurationError(
            f"delay_range must satisfy 0 <= low <= high, got ({low}, {high})"
        )
    return low, high


def screen_batch(
    requests: Sequence[Any],
) -> tuple[list[tuple[int, OrderRequest]], list[OrderOutcome | None]]:
    """
    Split a batch into schedulable requests and early rejections.

    Returns
    -------
    accepted : list of (index, request)
        Requests that passed validation, with their position in the batch.

    outcomes : list
        One slot per input. Rejected requests already hold their
        ``INVALID_REQUEST`` outcome; accepted slots are None.
    """
    accepted: list[tuple[int, OrderRequest]] = []
    outcomes: list[OrderOutcome | None] = [None] * len(requests)
    seen: set[str] = set()

    for index, raw in enumerate(requests):
        raw_id = getattr(raw, "order_id", None)
        try:
            request = validate_request(raw)
            if request.order_id in seen:
                raise InvalidRequest(f"duplicate order id {request.order_id!r}")
        except InvalidRequest as exc:
            logger.warning("rejected order %r: %s", raw_id, exc)
            outcomes[index] = OrderOutcome(
                order_id="" if raw_id is None else raw_id,
                kind=OutcomeKind.INVALID_REQUEST,
                detail=str(exc),
            )
            continue

        seen.add(request.order_id)
        accepted.append((index, request))

    return accepted, outcomes


class BaseOrderProcessor:
    """
    Behavior shared by the thread and asyncio processors.

    Subclasses decide how workers are scheduled and how they wait; the ticket
    handling, the register step and failure salvage live here.

    ``deadline`` is used by batches submitted without one of their own.
    """

    def __init__(
        self,
        shop: ShopState,
        *,
        delay_range: Sequence[float] = (1.0, 3.0),
        max_workers: int | None = None,
        deadline: Any = None,
        rng: random.Random | None = None,
    ) -> None:
        if max_workers is not None and max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {max_workers}")

        self.shop = shop
        self.delay_range = check_delay_range(delay_range)
        self.max_workers = max_workers
        self.deadline = coerce_deadline(deadline)
        self._rng = rng or random.Random()
        self.progress: EventHook[Transition] = EventHook("progress")

    @classmethod
    def from_settings(cls, shop: ShopState, settings: Settings | None = None):
        settings = settings or get_settings()
        return cls(
            shop,
            delay_range=settings.delay_range,
            max_workers=settings.max_workers,
            deadline=settings.deadline,
        )

    def _resolve_deadline(self, deadline: Any) -> float | None:
        if deadline is UNSET:
            return self.deadline
        return coerce_deadline(deadline)

    def _draw_delay(self) -> float:
        low, high = self.delay_range
        return self._rng.uniform(low, high)

    def _new_ticket(self, request: OrderRequest) -> OrderTicket:
        return OrderTicket(request, on_change=self.progress.emit)

    def _settle(self, ticket: OrderTicket) -> OrderOutcome:
        if self.shop.register(ticket.request.price):
            return ticket.serve()
        return ticket.out_of_stock()

    def _salvage(self, ticket: OrderTicket, exc: BaseException) -> OrderOutcome:
        logger.exception("worker for order %r failed", ticket.request.order_id, exc_info=exc)
        if ticket.outcome is not None:
            return ticket.outcome
        return ticket.fail(f"{type(exc).__name__}: {exc}")

    @staticmethod
    def _collect(outcomes: Sequence[OrderOutcome | None]) -> list[OrderOutcome]:
        missing = [index for index, outcome in enumerate(outcomes) if outcome is None]
        if missing:
            raise IncompleteBatch(f"no outcome for batch positions {missing}")
        return [outcome for outcome in outcomes if outcome is not None]

    def _log_finished(self, outcomes: Iterable[OrderOutcome]) -> None:
        summary = summarize(outcomes)
        logger.info(
            "batch finished: served=%d out_of_stock=%d cancelled=%d invalid=%d failed=%d revenue=%s",
            summary.served, summary.out_of_stock, summary.cancelled,
            summary.invalid, summary.failed, summary.revenue,
        )


class OrderProcessor(BaseOrderProcessor):
    """
    Runs each order of a batch on its own thread.

    A worker checks the cancellation token, sleeps a random brewing delay on
    that token, then settles the order at the shop register. The register
    step takes the shop lock; nothing else does.

    Example
    -------
    >>> shop = ShopState(initial_stock=10)
    >>> processor = OrderProcessor(shop, delay_range=(0.01, 0.05))
    >>> orders = [OrderRequest(f"o{i}", "Latte", Decimal("5.00")) for i in range(10)]
    >>> outcomes = processor.submit_batch(orders)
    >>> shop.snapshot().total_revenue
    Decimal('50.00')
    """

    def submit_batch(
        self,
        requests: Iterable[OrderRequest],
        deadline: Any = UNSET,
        *,
        token: CancellationToken | None = None,
    ) -> list[OrderOutcome]:
        """
        Process a batch of orders and wait for every worker to settle.

        Parameters
        ----------
        requests : iterable of OrderRequest
            Orders to process. Invalid entries are reported, not raised.

        deadline : float | int | timedelta | None
            Cancel outstanding work after this long. ``0`` cancels everything
            before it starts. Defaults to the processor's own ``deadline``;
            pass None explicitly to run without one.

        token : CancellationToken | None
            Optional caller-owned token, to cancel the batch from outside.

        Returns
        -------
        list of OrderOutcome
            Exactly one outcome per input, in submission order.

        Raises
        ------
        InvalidDeadline
            If ``deadline`` is not a valid duration. Raised before any work.
        """
        seconds = self._resolve_deadline(deadline)
        batch = list(requests)
        accepted, outcomes = screen_batch(batch)
        logger.info(
            "batch of %d orders accepted=%d deadline=%s",
            len(batch), len(accepted), seconds,
        )

        if accepted:
            self._run(accepted, outcomes, seconds, token or CancellationToken())

        settled = self._collect(outcomes)
        self._log_finished(settled)
        return settled

    def _run(
        self,
        accepted: list[tuple[int, OrderRequest]],
        outcomes: list[OrderOutcome | None],
        seconds: float | None,
        token: CancellationToken,
    ) -> None:
        timer: DeadlineTimer | None = None
        if seconds == 0:
            token.cancel()
        elif seconds is not None:
            timer = DeadlineTimer(token, seconds).start()

        try:
            with ThreadPoolExecutor(
                max_workers=self.max_workers or len(accepted),
                thread_name_prefix="barista",
            ) as pool:
                futures = {
                    pool.submit(self._work, request, token): (index, request)
                    for index, request in accepted
                }
                for future in as_completed(futures):
                    index, request = futures[future]
                    try:
                        outcomes[index] = future.result()
                    except Exception as exc:
                        logger.exception("worker for order %r crashed", request.order_id)
                        outcomes[index] = OrderOutcome(
                            order_id=request.order_id,
                            kind=OutcomeKind.FAILED,
                            price=request.price,
                            detail=f"{type(exc).__name__}: {exc}",
                        )
        finally:
            if timer is not None:
                timer.stop()

    def _work(self, request: OrderRequest, token: CancellationToken) -> OrderOutcome:
        ticket = self._new_ticket(request)
        try:
            if token.cancelled:
                return ticket.cancel("cancelled before start")

            ticket.start_brewing()
            if token.sleep(self._draw_delay()):
                return ticket.cancel("cancelled while brewing")

            ticket.finish_brewing()
            return self._settle(ticket)
        except Exception as exc:
            return self._salvage(ticket, exc)
