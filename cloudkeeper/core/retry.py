"""
Retry Module
============

Capped exponential backoff for AWS API calls.

Only server-side failures (an HTTP status code in ``[500, 600)``) are
retried. Client errors, and errors that carry no status code at all, are
raised to the caller straight away.

The delay starts at 499 ms and is doubled before every sleep. Once the
doubled delay reaches the 64000 ms ceiling the call gives up and the last
error is raised, so a call is attempted at most 8 times with sleeps of
998, 1996, 3992, 7984, 15968, 31936 and 63872 ms in between.

Functions
---------
get_status_code
    Extract the HTTP status code from an exception.
is_retryable
    Check whether an exception is a server-side failure.
with_retry
    Run a zero-argument operation under a :class:`RetryPolicy`.

Example
-------
>>> from cloudkeeper.core.retry import with_retry
>>>
>>> images = with_retry(lambda: ec2.describe_images(Owners=["self"]))

Notes
-----
There is no attempt counter. The loop is bounded only by the growing
delay crossing the ceiling.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, TypeVar

# Module logger
logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INITIAL_DELAY_MS = 499
DEFAULT_GROWTH_FACTOR = 2
DEFAULT_CEILING_MS = 64000


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff parameters for :func:`with_retry`.

    Parameters
    ----------
    initial_delay_ms : int, default=499
        Starting delay. It is grown once before the first sleep.
    growth_factor : int, default=2
        Multiplier applied to the delay before each sleep.
    ceiling_ms : int, default=64000
        A grown delay at or above this value ends the retry loop.

    Example
    -------
    >>> list(RetryPolicy().delays())
    [998, 1996, 3992, 7984, 15968, 31936, 63872]
    """

    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS
    growth_factor: int = DEFAULT_GROWTH_FACTOR
    ceiling_ms: int = DEFAULT_CEILING_MS

    def __post_init__(self) -> None:
        if self.initial_delay_ms <= 0:
            raise ValueError("initial_delay_ms must be positive")
        if self.growth_factor < 2:
            raise ValueError("growth_factor must be at least 2")

    def delays(self) -> Iterator[int]:
        """
        Yield the sleep durations in milliseconds, in order.

        Returns
        -------
        iterator of int
            One value per retry. Exhaustion means give up.
        """
        delay = self.initial_delay_ms
        while True:
            delay *= self.growth_factor
            if delay >= self.ceiling_ms:
                return
            yield delay

    @property
    def max_attempts(self) -> int:
        """Total number of calls made before giving up."""
        return sum(1 for _ in self.delays()) + 1


DEFAULT_RETRY_POLICY = RetryPolicy()


def get_status_code(error: BaseException) -> Optional[int]:
    """
    Extract the HTTP status code carried by an exception.

    Parameters
    ----------
    error : Exception
        Typically a ``botocore.exceptions.ClientError``.

    Returns
    -------
    int or None
        The status code, or None if the error has none.
    """
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if isinstance(status, int):
            return status

    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        return status
    return None


def is_retryable(error: BaseException) -> bool:
    """Return True if the error is a 5xx server-side failure."""
    status = get_status_code(error)
    return status is not None and 500 <= status < 600


def with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    sleep: Callable[[float], Any] = time.sleep,
    description: Optional[str] = None,
) -> T:
    """
    Call ``operation`` until it succeeds or the failure is terminal.

    Parameters
    ----------
    operation : callable
        Zero-argument callable performing one remote call.
    policy : RetryPolicy, optional
        Backoff parameters. Defaults to 499 ms doubling up to 64 s.
    sleep : callable, default=time.sleep
        Called with the delay in seconds between attempts.
    description : str, optional
        Label used in log messages.

    Returns
    -------
    object
        Whatever ``operation`` returns.

    Raises
    ------
    Exception
        The operation's own error when it is not retryable, or the last
        error once the delays are exhausted.

    Example
    -------
    >>> response = with_retry(
    ...     lambda: ec2.deregister_image(ImageId="ami-123"),
    ...     description="deregister ami-123",
    ... )
    """
    label = description or getattr(operation, "__name__", "remote call")
    delays = policy.delays()
    attempt = 0

    while True:
        attempt += 1
        try:
            return operation()
        except Exception as error:
            if not is_retryable(error):
                raise

            delay_ms = next(delays, None)
            if delay_ms is None:
                logger.warning(
                    f"Giving up on {label} after {attempt} attempts: {error}"
                )
                raise

            logger.debug(
                f"{label} failed with status {get_status_code(error)}, "
                f"retrying in {delay_ms} ms (attempt {attempt})"
            )
            sleep(delay_ms / 1000.0)
