"""
asyncio flavour of the order processor.

Workers are tasks on the running event loop instead of threads. The brewing
delay is an awaited wait on an `asyncio.Event`, so a cancelled batch wakes
every sleeping worker at once. The register step is the same synchronous,
lock-guarded `ShopState.register`; it never awaits.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from .models import OrderOutcome, OrderRequest, OutcomeKind
from .processor import UNSET, BaseOrderProcessor, screen_batch

logger = logging.getLogger(__name__)


class AsyncCancellationToken:
    """Cancellation signal for tasks on a single event loop."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Returns True if cancelled before ``seconds`` elapsed."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=max(seconds, 0.0))
        except asyncio.TimeoutError:
            return False
        return True


class AsyncOrderProcessor(BaseOrderProcessor):
    """
    Runs each order of a batch as an asyncio task.

    ``max_workers`` bounds how many orders brew at the same time; the rest
    wait for a free slot and re-check the token once they get one.

    Example
    -------
    >>> processor = AsyncOrderProcessor(ShopState(10), delay_range=(0.01, 0.02))
    >>> outcomes = asyncio.run(processor.submit_batch(orders, deadline=2))
    """

    async def submit_batch(
        self,
        requests: Iterable[OrderRequest],
        deadline: Any = UNSET,
        *,
        token: AsyncCancellationToken | None = None,
    ) -> list[OrderOutcome]:
        seconds = self._resolve_deadline(deadline)
        batch = list(requests)
        accepted, outcomes = screen_batch(batch)
        logger.info(
            "async batch of %d orders accepted=%d deadline=%s",
            len(batch), len(accepted), seconds,
        )

        if accepted:
            token = token or AsyncCancellationToken()
            results = await self._run(accepted, seconds, token)
            for (index, request), result in zip(accepted, results):
                outcomes[index] = self._unwrap(request, result)

        settled = self._collect(outcomes)
        self._log_finished(settled)
        return settled

    async def _run(
        self,
        accepted: list[tuple[int, OrderRequest]],
        seconds: float | None,
        token: AsyncCancellationToken,
    ) -> list[Any]:
        handle: asyncio.TimerHandle | None = None
        if seconds == 0:
            token.cancel()
        elif seconds is not None:
            handle = asyncio.get_running_loop().call_later(seconds, self._expire, token, seconds)

        slots = asyncio.Semaphore(self.max_workers or len(accepted))
        try:
            return await asyncio.gather(
                *(self._work(request, token, slots) for _, request in accepted),
                return_exceptions=True,
            )
        finally:
            if handle is not None:
                handle.cancel()

    @staticmethod
    def _expire(token: AsyncCancellationToken, seconds: float) -> None:
        logger.info("deadline of %.3fs reached, cancelling pending orders", seconds)
        token.cancel()

    @staticmethod
    def _unwrap(request: OrderRequest, result: Any) -> OrderOutcome:
        if isinstance(result, OrderOutcome):
            return result

        if isinstance(result, asyncio.CancelledError):
            kind = OutcomeKind.CANCELLED
            detail = "task cancelled"
        else:
            logger.error("task for order %r crashed: %r", request.order_id, result)
            kind = OutcomeKind.FAILED
            detail = f"{type(result).__name__}: {result}"

        return OrderOutcome(order_id=request.order_id, kind=kind, price=request.price, detail=detail)

    async def _work(
        self,
        request: OrderRequest,
        token: AsyncCancellationToken,
        slots: asyncio.Semaphore,
    ) -> OrderOutcome:
        ticket = self._new_ticket(request)
        try:
            async with slots:
                if token.cancelled:
                    return ticket.cancel("cancelled before start")

                ticket.start_brewing()
                if await token.sleep(self._draw_delay()):
                    return ticket.cancel("cancelled while brewing")

                ticket.finish_brewing()
                return self._settle(ticket)
        except Exception as exc:
            return self._salvage(ticket, exc)
