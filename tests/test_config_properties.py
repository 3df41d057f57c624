"""Property-based tests for configuration management.

Feature: crefeed
Tests configuration defaults, parsing and validation.
"""

import os
from unittest.mock import patch

import pytest
from hypothesis import given, settings, strategies as st

from crefeed.config.settings import (
    ConfigurationError,
    DEFAULT_ENABLED_SOURCES,
    MANDATORY_SOURCE,
    Settings,
    load_settings,
    normalize_sources,
)


# Feature: crefeed, Property: Configuration defaults
class TestConfigurationDefaults:
    """Property tests for configuration defaults."""

    def test_default_settings_have_documented_values(self):
        settings_obj = Settings()

        assert settings_obj.use_mock_data is False
        assert settings_obj.enabled_sources == DEFAULT_ENABLED_SOURCES
        assert settings_obj.cache_ttl_minutes == 60.0
        assert settings_obj.cache_ttl_seconds == 3600.0
        assert settings_obj.rate_limit_default == 10
        assert settings_obj.rate_limit_rpm == {"bisnow": 5, "globest": 5, "connectcre": 5}
        assert settings_obj.request_rpm == 60
        assert settings_obj.max_queue_size == 50
        assert settings_obj.adapter_timeout_seconds == 30.0
        assert settings_obj.robots_cache_seconds == 24 * 60 * 60
        assert settings_obj.user_agent == "CRENewsLite/1.0"
        assert settings_obj.page_size == 10

    def test_load_settings_uses_defaults_for_missing_env_vars(self):
        with patch.dict(os.environ, {}, clear=True):
            settings_obj = load_settings(env_path="/nonexistent/.env", validate=True)

        assert settings_obj.enabled_sources == DEFAULT_ENABLED_SOURCES
        assert settings_obj.rate_limit_rpm == {"bisnow": 5, "globest": 5, "connectcre": 5}
        assert settings_obj.disallowed_domains == []
        assert settings_obj.max_articles_per_source == 50

    @given(
        ttl=st.integers(min_value=0, max_value=1440),
        rpm=st.integers(min_value=1, max_value=600),
        page_size=st.integers(min_value=1, max_value=100),
    )
    @settings(max_examples=100)
    def test_load_settings_parses_valid_env_vars(self, ttl: int, rpm: int, page_size: int):
        env_vars = {
            "SCRAPE_CACHE_DURATION_MINUTES": str(ttl),
            "RATE_LIMIT_GLOBEST": str(rpm),
            "FEED_PAGE_SIZE": str(page_size),
            "ADAPTER_TIMEOUT_SECONDS": "12.5",
            "RATE_LIMIT_PER_HOST": "120",
            "DISALLOWED_DOMAINS": "costar.com, loopnet.com",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            settings_obj = load_settings(env_path="/nonexistent/.env", validate=True)

        assert settings_obj.cache_ttl_minutes == ttl
        assert settings_obj.rpm_for("globest") == rpm
        assert settings_obj.rpm_for("bisnow") == 5
        assert settings_obj.page_size == page_size
        assert settings_obj.adapter_timeout_seconds == 12.5
        assert settings_obj.request_rpm == 120
        assert settings_obj.disallowed_domains == ["costar.com", "loopnet.com"]

    def test_load_settings_uses_defaults_for_invalid_env_vars(self):
        env_vars = {
            "SCRAPE_CACHE_DURATION_MINUTES": "soon",
            "RATE_LIMIT_DEFAULT": "fast",
            "USE_MOCK_DATA": "maybe",
            "MAX_ARTICLES_PER_SOURCE": "lots",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            settings_obj = load_settings(env_path="/nonexistent/.env", validate=True)

        assert settings_obj.cache_ttl_minutes == 60.0
        assert settings_obj.rate_limit_default == 10
        assert settings_obj.use_mock_data is False
        assert settings_obj.max_articles_per_source == 50

    def test_unknown_enabled_source_uses_default_rate(self):
        env_vars = {"ENABLE_SOURCES": "credaily", "RATE_LIMIT_DEFAULT": "7"}

        with patch.dict(os.environ, env_vars, clear=True):
            settings_obj = load_settings(env_path="/nonexistent/.env", validate=True)

        assert settings_obj.rpm_for("credaily") == 7


# Feature: crefeed, Property: Mandatory default source
class TestEnabledSources:

    @given(
        sources=st.lists(
            st.sampled_from(["bisnow", "globest", "connectcre", "GlobeSt", " ConnectCRE "]),
            max_size=6,
        )
    )
    @settings(max_examples=100)
    def test_mandatory_source_always_present_once(self, sources: list[str]):
        result = normalize_sources(sources)

        assert result.count(MANDATORY_SOURCE) == 1
        assert len(result) == len(set(result))
        assert all(s == s.strip().lower() for s in result)

    def test_configured_order_preserved(self):
        env_vars = {"ENABLE_SOURCES": "connectcre,globest"}

        with patch.dict(os.environ, env_vars, clear=True):
            settings_obj = load_settings(env_path="/nonexistent/.env")

        assert settings_obj.enabled_sources == ["connectcre", "globest", "bisnow"]

    def test_blank_env_falls_back_to_defaults(self):
        with patch.dict(os.environ, {"ENABLE_SOURCES": " , "}, clear=True):
            settings_obj = load_settings(env_path="/nonexistent/.env")

        assert settings_obj.enabled_sources == DEFAULT_ENABLED_SOURCES


class TestValidation:
    """Invalid values are collected into one ConfigurationError."""

    def test_valid_defaults_pass(self):
        Settings().validate()

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"rate_limit_default": 0}, "rate_limit_default"),
            ({"rate_limit_rpm": {"bisnow": 0}}, "bisnow"),
            ({"request_rpm": 0}, "request_rpm"),
            ({"adapter_timeout_seconds": 0}, "adapter_timeout_seconds"),
            ({"cache_ttl_minutes": -1}, "cache_ttl_minutes"),
            ({"page_size": 0}, "page_size"),
            ({"user_agent": "  "}, "user_agent"),
            ({"use_mock_data": True}, "mock_data_path"),
        ],
    )
    def test_invalid_value_rejected(self, overrides: dict, message: str):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(**overrides).validate()
        assert message in str(exc_info.value)

    def test_errors_joined(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(page_size=0, max_queue_size=-1).validate()
        assert "; " in str(exc_info.value)
