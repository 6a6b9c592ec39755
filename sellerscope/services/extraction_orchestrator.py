"""Extraction orchestrator.

Runs acquire -> normalize -> reconcile -> assemble for a page. The last
result is kept and reused while the product identity on the page stays the
same; a new identity triggers a full run.
"""

import logging
import time

from ..models import ListingResult
from ..scrapers.base import PageSource
from ..utils import product_id_from_url
from .acquisition import PageDataAcquirer
from .assembler import assemble
from .normalizer import normalize
from .seller_reconciliation import SellerReconciler

logger = logging.getLogger(__name__)


class ExtractionOrchestrator:
    """Coordinate the extraction pipeline for listing pages."""

    def __init__(self, acquirer: PageDataAcquirer, reconciler: SellerReconciler):
        self.acquirer = acquirer
        self.reconciler = reconciler
        self.last_result: ListingResult | None = None

    async def extract(self, source: PageSource, force: bool = False) -> ListingResult | None:
        """Extract the listing result of a page.

        Args:
            source: Page to extract from.
            force: Re-run reconciliation even when the identity is unchanged.

        Returns:
            ListingResult, or None when no product data is available this cycle.
        """
        start_time = time.time()

        acquisition = await self.acquirer.acquire(source, product_id=product_id_from_url(source.url))
        if not acquisition.available or acquisition.payload is None:
            logger.warning(f"No product data for {source.url or 'page'}: {acquisition.error}")
            return None

        record = normalize(acquisition.payload)

        previous = self.last_result
        if not force and previous is not None and previous.product.product_id == record.product_id:
            logger.debug(f"Product {record.product_id} unchanged, reusing previous result")
            return previous

        if previous is not None:
            logger.info(
                f"Product identity changed: {previous.product.product_id} -> {record.product_id}"
            )

        outcome = await self.reconciler.reconcile(record, source)
        result = assemble(record, outcome)
        self.last_result = result

        processing_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Extracted product {record.product_id or '?'} with {result.seller_count} sellers "
            f"via {result.strategy.value} in {processing_time_ms}ms"
        )
        return result

