"""Embedded payload acquisition.

Locates the ``__NEXT_DATA__`` script on a listing page and extracts the
product, item-description and review sub-objects. A missing container and a
container without a product sub-object are both failed attempts; after the
retry budget is spent the result is reported unavailable instead of raised.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..config import AcquisitionConfig
from ..exceptions import PayloadShapeError, PayloadUnavailableError
from ..models import AcquisitionResult, RawPayload
from ..scrapers.base import PageSource
from .cache_service import TTLCache
from .reliability import with_retry

logger = logging.getLogger(__name__)

DATA_PATH = ("props", "pageProps", "initialData", "data")


def parse_payload(text: str) -> RawPayload:
    """Parse the embedded JSON document.

    Args:
        text: Contents of the data container.

    Returns:
        RawPayload with the product, idml and reviews sub-objects.

    Raises:
        PayloadShapeError: If the text is not JSON or lacks a product object.
    """
    try:
        document: Any = json.loads(text)
    except ValueError as e:
        raise PayloadShapeError(f"Embedded data is not valid JSON: {e}") from e

    data = document
    for key in DATA_PATH:
        if not isinstance(data, dict):
            data = None
            break
        data = data.get(key)

    if not isinstance(data, dict):
        raise PayloadShapeError("Embedded data has no initialData.data object")

    product = data.get("product")
    if not isinstance(product, dict) or not product:
        raise PayloadShapeError("Embedded data has no product object")

    idml = data.get("idml")
    reviews = data.get("reviews")
    return RawPayload(
        product=product,
        idml=idml if isinstance(idml, dict) else {},
        reviews=reviews if isinstance(reviews, dict) else {},
    )


class PageDataAcquirer:
    """Acquire the raw payload from a page with bounded retries."""

    def __init__(
        self,
        config: AcquisitionConfig,
        cache: TTLCache[RawPayload],
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ):
        """Initialize the acquirer.

        Args:
            config: Retry budget, delay and container selector.
            cache: Raw-payload cache keyed by product identity.
            sleep: Awaitable sleep between attempts, asyncio.sleep by default.
        """
        self.config = config
        self.cache = cache
        self._sleep = sleep or asyncio.sleep

    async def _read(self, source: PageSource) -> RawPayload:
        text = await source.query_text([self.config.container_selector])
        if not text:
            raise PayloadUnavailableError("Embedded data container not found")
        return parse_payload(text)

    async def acquire(
        self,
        source: PageSource,
        product_id: str | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
    ) -> AcquisitionResult:
        """Acquire the raw payload, consulting the cache first.

        Args:
            source: Page to read.
            product_id: Identity expected on the page, enables the cache lookup.
            max_retries: Override for the configured attempt budget.
            retry_delay: Override for the configured delay in seconds.

        Returns:
            AcquisitionResult, with ``available=False`` when every attempt failed.
        """
        if product_id:
            cached = self.cache.get(product_id)
            if cached is not None:
                logger.debug(f"Using cached payload for product {product_id}")
                return AcquisitionResult(available=True, payload=cached, from_cache=True)

        attempts = self.config.max_retries if max_retries is None else max_retries
        delay = self.config.retry_delay if retry_delay is None else retry_delay
        result = await with_retry(
            lambda: self._read(source), attempts, delay, sleep=self._sleep
        )

        if not result.ok or result.value is None:
            logger.warning(
                f"Product data unavailable after {result.attempts} attempts: {result.error}"
            )
            return AcquisitionResult(available=False, attempts=result.attempts, error=result.error)

        payload: RawPayload = result.value
        key = payload.product_id or product_id
        if key:
            self.cache.set(key, payload)

        logger.debug(f"Acquired payload for product {key} in {result.attempts} attempts")
        return AcquisitionResult(available=True, payload=payload, attempts=result.attempts)
