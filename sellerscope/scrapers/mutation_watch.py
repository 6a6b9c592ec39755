"""Debounced DOM mutation watch with a hard timeout.

Two cancellable tasks race against each other:

- the debounce task, restarted on every mutation, extracts once the page has
  been quiet for ``debounce_delay`` seconds;
- the hard-timeout task, started once, cancels any pending debounce after
  ``hard_timeout`` seconds, extracts whatever is present and runs the
  timeout hook (closing the panel).

The watch resolves on the first debounced extraction that returns rows, or
on the hard timeout. The observer is always disconnected before ``run``
returns.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from .base import Disconnect, MutationCallback

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WatchResult(Generic[T]):
    """Rows extracted by a watch and how the watch ended."""

    def __init__(self, rows: list[T], timed_out: bool, extractions: int):
        self.rows = rows
        self.timed_out = timed_out
        self.extractions = extractions


class DebouncedWatch(Generic[T]):
    """Collapse mutation bursts into a single extraction."""

    def __init__(
        self,
        extract: Callable[[], Awaitable[list[T]]],
        debounce_delay: float = 1.0,
        hard_timeout: float = 5.0,
        on_timeout: Callable[[], Awaitable[None]] | None = None,
    ):
        """Initialize the watch.

        Args:
            extract: Coroutine function reading rows from the current DOM state.
            debounce_delay: Quiet period after the last mutation in seconds.
            hard_timeout: Upper bound on the whole watch in seconds.
            on_timeout: Hook awaited after the forced extraction.
        """
        self._extract = extract
        self.debounce_delay = debounce_delay
        self.hard_timeout = hard_timeout
        self._on_timeout = on_timeout

        self.extraction_count = 0
        self.mutation_count = 0
        self._debounce_task: asyncio.Task[None] | None = None
        self._done: asyncio.Future[WatchResult[T]] | None = None

    async def run(self, attach: Callable[[MutationCallback], Awaitable[Disconnect]]) -> WatchResult[T]:
        """Attach the observer and wait for the watch to resolve.

        Args:
            attach: Coroutine function that registers the mutation callback
                and returns an async disconnect function.

        Returns:
            WatchResult with the extracted rows.
        """
        self._done = asyncio.get_running_loop().create_future()
        disconnect = await attach(self.notify)
        hard_task = asyncio.create_task(self._hard_timeout())

        # Content may already be settled; extract once the first quiet period passes.
        self._schedule()

        try:
            return await self._done
        finally:
            self._cancel_debounce()
            hard_task.cancel()
            try:
                await disconnect()
            except Exception as e:
                logger.warning(f"Failed to disconnect mutation observer: {e}")

    def notify(self) -> None:
        """Record a mutation and restart the quiet period."""
        if self._done is None or self._done.done():
            return
        self.mutation_count += 1
        self._schedule()

    def _schedule(self) -> None:
        self._cancel_debounce()
        self._debounce_task = asyncio.create_task(self._debounced_extract())

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    async def _debounced_extract(self) -> None:
        await asyncio.sleep(self.debounce_delay)
        rows = await self._run_extract()
        if rows:
            self._resolve(rows, timed_out=False)
        else:
            logger.debug("Debounced extraction found no rows, waiting for more mutations")

    async def _hard_timeout(self) -> None:
        await asyncio.sleep(self.hard_timeout)
        self._cancel_debounce()
        logger.info(f"Seller panel watch hit the {self.hard_timeout:.1f}s hard timeout")

        rows = await self._run_extract()
        if self._on_timeout is not None:
            try:
                await self._on_timeout()
            except Exception as e:
                logger.warning(f"Timeout hook failed: {e}")
        self._resolve(rows, timed_out=True)

    async def _run_extract(self) -> list[T]:
        self.extraction_count += 1
        try:
            return await self._extract()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Panel extraction failed: {e}")
            return []

    def _resolve(self, rows: list[T], timed_out: bool) -> None:
        if self._done is not None and not self._done.done():
            self._done.set_result(WatchResult(rows, timed_out, self.extraction_count))
