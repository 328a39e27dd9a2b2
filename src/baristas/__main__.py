"""
Morning rush demo.

    python -m baristas --orders 15 --stock 10 --deadline 4

Submits one batch of lattes, prints what happened to each order and the
totals at closing time.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from decimal import Decimal, InvalidOperation
from typing import Sequence

from pydantic import ValidationError

from .aio import AsyncOrderProcessor
from .config import LOG_LEVELS, Settings
from .exceptions import ConfigurationError
from .log import configure_logging
from .models import OrderOutcome, OrderRequest, summarize
from .processor import OrderProcessor
from .shop import ShopSnapshot, ShopState
from .tickets import Transition


def _price(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a price: {value!r}") from None


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="baristas",
        description="Simulate a coffee shop morning rush with concurrent baristas")
    parser.add_argument("--orders", type=int, default=15,
                        help="Number of orders in the batch (default: 15)")
    parser.add_argument("--price", type=_price, default=Decimal("5.00"),
                        help="Unit price of every order (default: 5.00)")
    parser.add_argument("--stock", type=int, default=settings.initial_stock,
                        help=f"Cups in stock at opening (default: {settings.initial_stock})")
    parser.add_argument("--deadline", type=float, default=settings.deadline,
                        help="Close the shop after this many seconds (default: no deadline)")
    parser.add_argument("--min-delay", type=float, default=settings.min_delay,
                        help=f"Shortest brewing time in seconds (default: {settings.min_delay})")
    parser.add_argument("--max-delay", type=float, default=settings.max_delay,
                        help=f"Longest brewing time in seconds (default: {settings.max_delay})")
    parser.add_argument("--workers", type=int, default=settings.max_workers,
                        help="Baristas on shift (default: one per order)")
    parser.add_argument("--async", dest="use_async", action="store_true",
                        help="Run workers as asyncio tasks instead of threads")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS,
                        default=settings.log_level,
                        help=f"Logging level (default: {settings.log_level})")
    return parser


def _print_transition(change: Transition) -> None:
    suffix = f" ({change.detail})" if change.detail else ""
    print(f"[{change.order_id}] {change.previous.value} -> {change.current.value}{suffix}")


def _print_report(outcomes: Sequence[OrderOutcome], snapshot: ShopSnapshot) -> None:
    summary = summarize(outcomes)
    print("\n--------------------------------")
    print("--- SHOP CLOSED ---")
    print(f"Served:        {summary.served}")
    print(f"Out of stock:  {summary.out_of_stock}")
    print(f"Cancelled:     {summary.cancelled}")
    print(f"Invalid:       {summary.invalid}")
    print(f"Failed:        {summary.failed}")
    print(f"Final revenue: ${snapshot.total_revenue:.2f}")
    print(f"Cups left:     {snapshot.stock_remaining}")


def run(args: argparse.Namespace) -> int:
    shop = ShopState(args.stock)
    processor_cls = AsyncOrderProcessor if args.use_async else OrderProcessor
    processor = processor_cls(
        shop,
        delay_range=(args.min_delay, args.max_delay),
        max_workers=args.workers,
    )
    processor.progress.subscribe(_print_transition)

    orders = [
        OrderRequest(order_id=f"{n:03d}", product=f"Latte #{n}", price=args.price)
        for n in range(1, args.orders + 1)
    ]

    print(f"--- MORNING RUSH: {len(orders)} orders, {args.stock} cups ---\n")
    if args.use_async:
        outcomes = asyncio.run(processor.submit_batch(orders, deadline=args.deadline))
    else:
        outcomes = processor.submit_batch(orders, deadline=args.deadline)

    _print_report(outcomes, shop.snapshot())
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = Settings()
    except ValidationError as e:
        print(f"baristas: invalid settings: {e}", file=sys.stderr)
        return 2

    args = build_parser(settings).parse_args(argv)
    configure_logging(args.log_level)

    try:
        return run(args)
    except ConfigurationError as e:
        print(f"baristas: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
