"""Command-line entry point.

Extracts the product record and seller offers of one listing page and prints
them as JSON. The page can be a URL fetched over HTTP, a saved HTML file, or
a URL opened in a headless browser (``--browser``) so the compare-sellers
panel can be clicked and observed.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import aiohttp
from dependency_injector import providers
from playwright.async_api import Error as PlaywrightError

from .core.container import Container
from .models import ListingResult
from .scrapers.headless import HeadlessBrowser
from .scrapers.html_source import HtmlPageSource, fetch_page_source

logger = logging.getLogger(__name__)


def render_result(result: ListingResult) -> dict[str, Any]:
    """Serialize a listing result with its derived summary."""
    data = result.model_dump(mode="json")
    data["summary"] = {
        "seller_count": result.seller_count,
        "platform_fulfilled_count": result.platform_fulfilled_count,
        "storefront_sells": result.storefront_sells,
        "brand_sells": result.brand_sells,
        "total_stock": result.product.inventory.total_stock,
        "total_sellers_reported": result.product.inventory.total_sellers,
    }
    data["fee_inputs"] = result.fee_inputs().model_dump()
    return data


async def run(target: str, use_browser: bool, container: Container) -> ListingResult | None:
    """Load ``target`` and run the extraction pipeline.

    Args:
        target: Listing URL or path to a saved HTML page.
        use_browser: Open the URL in a headless browser.
        container: Wired DI container.

    Returns:
        ListingResult, or None when the page has no product data.
    """
    settings = container.settings()

    async with aiohttp.ClientSession() as session:
        container.http_session.override(providers.Object(session))
        orchestrator = container.extraction_orchestrator()

        path = Path(target)
        if not use_browser and path.exists():
            logger.info(f"Reading saved page {path}")
            return await orchestrator.extract(HtmlPageSource.from_file(path))

        if use_browser:
            async with HeadlessBrowser(settings.browser) as browser:
                source = await browser.open(target)
                return await orchestrator.extract(source)

        source = await fetch_page_source(target, session, timeout=settings.offers_api.timeout * 2)
        return await orchestrator.extract(source)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sellerscope",
        description="Extract product and seller data from a marketplace listing page.",
    )
    parser.add_argument("target", help="Listing URL or path to a saved HTML page")
    parser.add_argument(
        "--browser", action="store_true", help="Open the page in a headless browser"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    args = parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    container = Container()
    try:
        result = asyncio.run(run(args.target, args.browser, container))
    except (aiohttp.ClientError, asyncio.TimeoutError, PlaywrightError) as e:
        logger.error(f"Failed to load {args.target}: {e}")
        return 1

    if result is None:
        logger.error(f"No product data found on {args.target}")
        return 1

    print(json.dumps(render_result(result), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
