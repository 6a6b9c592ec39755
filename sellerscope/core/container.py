"""Dependency-injection container.

Wires the extraction pipeline together. Caches, the rate limiter and the
offers client are process-wide singletons shared by every extraction.
"""

from dependency_injector import containers, providers

from sellerscope.config import Config
from sellerscope.scrapers.seller_panel import SellerPanelScraper
from sellerscope.services.acquisition import PageDataAcquirer
from sellerscope.services.cache_service import CacheConfig, TTLCache
from sellerscope.services.extraction_orchestrator import ExtractionOrchestrator
from sellerscope.services.offers_api import OffersClient
from sellerscope.services.rate_limiter import SlidingWindowRateLimiter
from sellerscope.services.seller_reconciliation import SellerReconciler


class Container(containers.DeclarativeContainer):
    """DI container for the extraction pipeline."""

    settings = providers.Singleton(Config)

    # Services
    raw_payload_cache = providers.Singleton(
        TTLCache,
        config=providers.Factory(
            CacheConfig, name="raw-payload", ttl=settings.provided.acquisition.raw_cache_ttl
        ),
    )
    seller_cache = providers.Singleton(
        TTLCache,
        config=providers.Factory(
            CacheConfig, name="seller", ttl=settings.provided.reconciliation.seller_cache_ttl
        ),
    )
    rate_limiter = providers.Singleton(
        SlidingWindowRateLimiter,
        max_requests=settings.provided.reconciliation.rate_limit_max,
        window=settings.provided.reconciliation.rate_limit_window,
    )
    http_session = providers.Object(None)
    offers_client = providers.Singleton(
        OffersClient, config=settings.provided.offers_api, session=http_session
    )

    # Pipeline components
    panel_scraper = providers.Singleton(
        SellerPanelScraper,
        selectors=settings.provided.selectors,
        settings=settings.provided.reconciliation,
    )
    acquirer = providers.Singleton(
        PageDataAcquirer, config=settings.provided.acquisition, cache=raw_payload_cache
    )
    reconciler = providers.Singleton(
        SellerReconciler,
        settings=settings.provided.reconciliation,
        seller_cache=seller_cache,
        rate_limiter=rate_limiter,
        offers_client=offers_client,
        panel_scraper=panel_scraper,
    )
    extraction_orchestrator = providers.Singleton(
        ExtractionOrchestrator, acquirer=acquirer, reconciler=reconciler
    )
