from .aio import AsyncCancellationToken, AsyncOrderProcessor
from .cancellation import CancellationToken, DeadlineTimer
from .events import EventHook
from .exceptions import (
    BaristasError,
    ConfigurationError,
    IllegalTransition,
    IncompleteBatch,
    InvalidDeadline,
    InvalidRequest,
    LockAcquireTimeout,
)
from .decorators import synchronized
from .locks import lock
from .menu import Menu
from .models import (
    BatchSummary,
    ItemKind,
    MenuItem,
    OrderOutcome,
    OrderRequest,
    OutcomeKind,
    summarize,
)
from .processor import OrderProcessor
from .shop import ShopSnapshot, ShopState
from .tickets import OrderState, OrderTicket, Transition

__all__ = [
    "OrderProcessor",
    "AsyncOrderProcessor",
    "CancellationToken",
    "AsyncCancellationToken",
    "DeadlineTimer",
    "ShopState",
    "ShopSnapshot",
    "OrderRequest",
    "OrderOutcome",
    "OutcomeKind",
    "BatchSummary",
    "summarize",
    "ItemKind",
    "MenuItem",
    "Menu",
    "EventHook",
    "OrderState",
    "OrderTicket",
    "Transition",
    "lock",
    "synchronized",
    "BaristasError",
    "ConfigurationError",
    "InvalidDeadline",
    "InvalidRequest",
    "IllegalTransition",
    "IncompleteBatch",
    "LockAcquireTimeout",
]
