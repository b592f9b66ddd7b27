"""
Unit tests for Settings.
"""

import pytest

from equity_screener.core.config import PLACEHOLDER_API_KEY, Settings


class TestSyntheticPreference:
    """Synthetic mode is forced by the flag or by a missing key."""

    def test_missing_key_prefers_synthetic(self):
        settings = Settings(alpha_vantage_api_key="")

        assert settings.has_api_key is False
        assert settings.prefers_synthetic is True

    def test_placeholder_key_counts_as_missing(self):
        settings = Settings(alpha_vantage_api_key=PLACEHOLDER_API_KEY)

        assert settings.has_api_key is False

    def test_real_key_prefers_live(self):
        settings = Settings(alpha_vantage_api_key="ABC123", use_synthetic_data=False)

        assert settings.prefers_synthetic is False

    def test_flag_overrides_key(self):
        settings = Settings(alpha_vantage_api_key="ABC123", use_synthetic_data=True)

        assert settings.prefers_synthetic is True

    def test_flag_from_environment(self, monkeypatch):
        monkeypatch.setenv("USE_SYNTHETIC_DATA", "true")

        assert Settings().use_synthetic_data is True


class TestDefaults:
    """Test defaults that other modules rely on."""

    def test_quota_and_ttls(self):
        settings = Settings()

        assert settings.rate_limit_requests == 5
        assert settings.rate_limit_window == 60
        assert settings.cache_ttl_quote == 300
        assert settings.mutation_grace_seconds == pytest.approx(0.05)
        assert settings.news_limit == 20
