"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from sellerscope.config import BrowserConfig, Config, ReconciliationConfig, SelectorConfig


class TestSettings:
    def test_defaults(self) -> None:
        settings = ReconciliationConfig()

        assert settings.storefront_name == "Walmart.com"
        assert settings.seller_cache_ttl == 30.0
        assert settings.rate_limit_max == 30
        assert settings.rate_limit_window == 60.0
        assert settings.debounce_delay == 1.0
        assert settings.hard_timeout == 5.0

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SELLERSCOPE_HARD_TIMEOUT", "2.5")
        monkeypatch.setenv("SELLERSCOPE_ACQUIRE_MAX_RETRIES", "3")

        config = Config()

        assert config.reconciliation.hard_timeout == 2.5
        assert config.acquisition.max_retries == 3

    def test_browser_timeout_lower_bound(self) -> None:
        with pytest.raises(ValidationError):
            BrowserConfig(navigation_timeout=10)


class TestSelectorLoading:
    def test_packaged_file_matches_defaults(self) -> None:
        assert Config().selectors == SelectorConfig()

    def test_yaml_overrides_lists(self, tmp_path) -> None:
        (tmp_path / "selectors.yml").write_text(
            "seller_row:\n  - \"li.offer\"\nprice:\n  - \"b.amount\"\n",
            encoding="utf-8",
        )

        selectors = Config(config_dir=tmp_path).selectors

        assert selectors.seller_row == ["li.offer"]
        assert selectors.price == ["b.amount"]
        assert selectors.panel_wrapper == SelectorConfig().panel_wrapper

    def test_missing_file_uses_defaults(self, tmp_path) -> None:
        assert Config(config_dir=tmp_path).selectors == SelectorConfig()

    def test_empty_file_uses_defaults(self, tmp_path) -> None:
        (tmp_path / "selectors.yml").write_text("", encoding="utf-8")

        assert Config(config_dir=tmp_path).selectors == SelectorConfig()
