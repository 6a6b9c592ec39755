"""Bounded retry combinator.

``with_retry`` runs an async operation up to a fixed number of attempts and
returns a ``RetryResult`` instead of raising, so callers see failure as a
value.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from ..exceptions import SellerscopeError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryResult(BaseModel, Generic[T]):
    """Outcome of a bounded retry.

    Attributes:
        value: Result of the successful attempt, None on failure.
        attempts: Number of attempts made.
        error: Message of the last failure, None on success.
    """

    value: T | None = None
    attempts: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int,
    delay: float,
    retry_on: tuple[type[BaseException], ...] = (SellerscopeError,),
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> RetryResult[T]:
    """Call ``fn`` until it succeeds or ``max_attempts`` is exhausted.

    Only exceptions listed in ``retry_on`` are retried; anything else
    propagates. The delay is fixed between attempts and skipped after the
    last one.

    Args:
        fn: Zero-argument coroutine function to call.
        max_attempts: Upper bound on calls (at least one call is made).
        delay: Seconds to wait between attempts.
        retry_on: Exception types treated as a failed attempt.
        sleep: Awaitable sleep used between attempts.

    Returns:
        RetryResult carrying the value or the last error message.
    """
    attempts = max(1, max_attempts)
    last_error = "no attempts made"

    for attempt in range(1, attempts + 1):
        try:
            value = await fn()
            return RetryResult(value=value, attempts=attempt)
        except retry_on as e:
            last_error = str(e) or type(e).__name__
            logger.debug(f"Attempt {attempt}/{attempts} failed: {last_error}")

        if attempt < attempts:
            await sleep(delay)

    return RetryResult(attempts=attempts, error=last_error)
