"""
Exception hierarchy for baristas.

Catch `BaristasError` to handle any failure raised by the library, or one of
the subclasses below for fine-grained control.

Only configuration errors escape `OrderProcessor.submit_batch`, plus
`IncompleteBatch` if the processor itself loses track of an order. Per-order
problems (`InvalidRequest`, a crashing worker) are converted into outcomes and
returned alongside every other result in the batch.
"""


class BaristasError(Exception):
    """
    Base exception for all baristas errors.

    Example
    -------
    >>> try:
    ...     processor.submit_batch(orders, deadline=-1)
    ... except BaristasError as exc:
    ...     print(exc.code)
    invalid_deadline
    """

    #: Stable error code for programmatic handling.
    code: str = "baristas_error"

    def __init__(self, message: str | None = None) -> None:
        if message is None:
            message = "An unspecified baristas error occurred."
        super().__init__(message)


class ConfigurationError(BaristasError):
    """
    Raised when a processor, shop or batch is set up with unusable values.

    Configuration errors are detected before any worker starts, so a batch
    that raises one has had no effect on the shop.
    """

    code: str = "configuration_error"


class InvalidDeadline(ConfigurationError):
    """
    Raised when a batch deadline is not a non-negative, finite duration.

    Accepted values are None, an int or float number of seconds, or a
    `datetime.timedelta`.
    """

    code: str = "invalid_deadline"


class InvalidRequest(BaristasError):
    """
    Raised when an order request cannot be scheduled.

    Common causes
    -------------
    - Empty or blank order id
    - Negative, non-numeric or non-finite price
    - The same order id submitted twice in one batch

    The processor never lets this propagate; the request is reported with an
    ``INVALID_REQUEST`` outcome instead.
    """

    code: str = "invalid_request"


class IllegalTransition(BaristasError):
    """
    Raised when an order ticket is moved to a state it cannot reach.

    Example
    -------
    >>> ticket = OrderTicket(order)
    >>> ticket.serve()  # still NEW, nothing was brewed
    Traceback (most recent call last):
    IllegalTransition: ...
    """

    code: str = "illegal_transition"


class LockAcquireTimeout(BaristasError):
    """
    Raised when a lock cannot be acquired within the specified timeout.

    This typically indicates that another worker currently holds the lock.
    """

    code: str = "lock_acquire_timeout"


class IncompleteBatch(BaristasError):
    """
    Raised when a finished batch is missing the outcome of some request.

    Every worker settles to exactly one outcome, so this points at a bug in
    the processor rather than a problem with the orders.
    """

    code: str = "incomplete_batch"
