"""Configuration management for sellerscope.

Handles environment-overridable settings for each pipeline stage and the DOM
selector fallback lists. Selectors are data: they load from
``sellerscope/config/selectors.yml`` and fall back to built-in defaults when
the file is missing, so markup changes never require code changes.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

GRAPHQL_ENDPOINT = (
    "https://www.walmart.com/orchestra/home/graphql/GetAllSellerOffers/"
    "ceb1a19937155516286824bfb2b9cc9331cc89e6d4bea5756776737724d5b3cf"
)


class AcquisitionConfig(BaseSettings):
    """Embedded payload acquisition parameters.

    Attributes:
        container_selector: CSS selector of the embedded JSON script.
        max_retries: Attempts before acquisition is reported unavailable.
        retry_delay: Fixed delay between attempts in seconds.
        raw_cache_ttl: Freshness window of the raw-payload cache in seconds.
    """

    model_config = SettingsConfigDict(env_prefix="SELLERSCOPE_ACQUIRE_")

    container_selector: str = "script#__NEXT_DATA__"
    max_retries: int = 10
    retry_delay: float = 1.0
    raw_cache_ttl: float = 300.0


class ReconciliationConfig(BaseSettings):
    """Seller reconciliation parameters.

    Attributes:
        storefront_name: Seller name of the platform's own storefront.
        seller_cache_ttl: Freshness window of the seller-offer cache in seconds.
        rate_limit_max: Remote queries admitted per window.
        rate_limit_window: Sliding window length in seconds.
        panel_poll_attempts: Checks for the seller panel before giving up.
        panel_poll_interval: Delay between panel checks in seconds.
        debounce_delay: Quiet period after the last mutation in seconds.
        hard_timeout: Upper bound on panel observation in seconds.
    """

    model_config = SettingsConfigDict(env_prefix="SELLERSCOPE_")

    storefront_name: str = "Walmart.com"
    seller_cache_ttl: float = 30.0
    rate_limit_max: int = 30
    rate_limit_window: float = 60.0
    panel_poll_attempts: int = 5
    panel_poll_interval: float = 1.0
    debounce_delay: float = 1.0
    hard_timeout: float = 5.0


class OffersApiConfig(BaseSettings):
    """Remote offers query settings.

    Attributes:
        endpoint: GraphQL persisted-query URL for all seller offers.
        timeout: HTTP request timeout in seconds.
        channel: Channel variable sent with the query.
        page_type: Page type variable sent with the query.
        user_agent: User-Agent header for outbound requests.
        block_cooldown: Base cooldown in seconds after a bot-protection response.
        max_block_exponent: Cap on the exponential cooldown multiplier.
    """

    model_config = SettingsConfigDict(env_prefix="SELLERSCOPE_OFFERS_")

    endpoint: str = GRAPHQL_ENDPOINT
    timeout: float = 10.0
    channel: str = "WWW"
    page_type: str = "ItemPageGlobal"
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    )
    block_cooldown: float = 60.0
    max_block_exponent: int = 4


class BrowserConfig(BaseSettings):
    """Headless browser settings.

    Attributes:
        headless: Launch Chromium without a window.
        navigation_timeout: Page navigation timeout in milliseconds.
    """

    model_config = SettingsConfigDict(env_prefix="SELLERSCOPE_BROWSER_")

    headless: bool = True
    navigation_timeout: int = Field(default=30000, ge=1000)


class SelectorConfig(BaseModel):
    """Ordered CSS selector fallback lists for the seller panel.

    Each list is tried in order and the first selector that yields a
    non-empty result wins.
    """

    panel_wrapper: list[str] = Field(
        default_factory=lambda: [
            "div[data-testid='ip-more-sellers-panel-offers-div-wrapper']",
            "div[data-testid='seller-panel-wrapper']",
            "div[data-testid='seller-panel']",
            "div[data-testid='more-sellers-panel']",
            "[data-testid*='seller-panel']",
            "[data-testid*='offers-panel']",
        ]
    )
    seller_row: list[str] = Field(
        default_factory=lambda: [
            "div[data-testid='allSellersOfferLine']",
            "div[data-testid='seller-offer-row']",
            "div[data-testid='seller-panel-row']",
            "[data-testid*='seller-row']",
            "[data-testid*='offer-line']",
        ]
    )
    price: list[str] = Field(
        default_factory=lambda: [
            "span[itemprop='price']",
            "[data-testid='price-wrap'] span",
            "span[data-testid='price-string']",
            "div[data-testid='seller-price']",
            "[data-automation-id='product-price']",
        ]
    )
    seller_info: list[str] = Field(
        default_factory=lambda: [
            "span[data-testid='product-seller-info']",
            "div[data-testid='seller-info']",
            "a[data-testid='seller-name-link']",
            "div[data-testid='seller-name']",
            "span[data-testid='seller-display-name']",
            "[data-testid*='seller-name']",
            "[data-testid*='seller-info']",
        ]
    )
    delivery: list[str] = Field(
        default_factory=lambda: [
            "div[data-testid='shipping-delivery-date']",
            "div[data-testid='fulfillment-options']",
            "div[data-testid='more-seller-options-fulfillment-option']",
            "div[data-testid='seller-delivery-options']",
            "div[data-testid='delivery-option']",
        ]
    )
    wfs_indicator: list[str] = Field(
        default_factory=lambda: [
            "span[aria-label*='Walmart Fulfillment Services']",
            "span[data-testid='wfs-badge']",
            "span[data-testid='fulfillment-badge']",
        ]
    )
    pro_badge: list[str] = Field(
        default_factory=lambda: [
            "span[data-testid='pro-seller-badge']",
            "span[data-testid='seller-badge-pro']",
            "span[data-testid='seller-type-pro']",
            "div[data-testid='pro-badge']",
            "[data-testid*='pro-seller']",
        ]
    )
    compare_button: list[str] = Field(
        default_factory=lambda: [
            "button[aria-label='Compare all sellers']",
            "button[data-testid='compare-sellers-button']",
            "[data-testid*='compare-sellers']",
            "button[data-automation-id='compare-sellers']",
            "a[href*='seller-all']",
        ]
    )
    close_button: list[str] = Field(
        default_factory=lambda: [
            "button[aria-label='Close dialog']",
            "button[data-testid='panel-close-button']",
            "[data-testid*='close-button']",
        ]
    )


class Config:
    """Main configuration container.

    Loads all configuration from environment variables and the selector YAML
    file, providing a single access point for every pipeline stage.
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        self.acquisition = AcquisitionConfig()
        self.reconciliation = ReconciliationConfig()
        self.offers_api = OffersApiConfig()
        self.browser = BrowserConfig()

        if config_dir is None:
            config_dir = Path(__file__).parent / "config"
        self.selectors = self._load_selectors(config_dir / "selectors.yml")

    def _load_selectors(self, path: Path) -> SelectorConfig:
        """Load selector fallback lists from YAML.

        Args:
            path: Path to the selectors file.

        Returns:
            SelectorConfig with file values merged over the defaults.
        """
        if not path.exists():
            return SelectorConfig()

        with open(path, encoding="utf-8") as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}

        return SelectorConfig(**data)


# Global configuration instance
config = Config()
