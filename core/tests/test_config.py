"""
Tests for configuration validation on startup

Run with: python -m pytest core/tests/test_config.py -v
"""

import pytest
from django.core.exceptions import ImproperlyConfigured

from core.config.validators import group_issues, validate_config_on_startup
from spacefinder.config import AppConfig, APIKeysConfig, SearchConfig, SecurityConfig

SECURE_KEY = "k" * 64


class FakeConfig:
    def __init__(self, issues, production=False):
        self.issues = issues
        self.is_production = production
        self.logged = False

    def validate(self):
        return list(self.issues)

    def log_status(self):
        self.logged = True


class TestGroupIssues:

    def test_buckets_by_prefix(self):
        grouped = group_issues([
            "CRITICAL: no key",
            "WARNING: debug on",
            "INFO: llm off",
            "something else",
        ])
        assert grouped == {
            "CRITICAL": ["CRITICAL: no key"],
            "WARNING": ["WARNING: debug on"],
            "INFO": ["INFO: llm off", "something else"],
        }

    def test_empty(self):
        assert group_issues([]) == {"CRITICAL": [], "WARNING": [], "INFO": []}


class TestValidateConfigOnStartup:

    def test_critical_in_production_raises(self):
        with pytest.raises(ImproperlyConfigured, match="no key"):
            validate_config_on_startup(FakeConfig(["CRITICAL: no key"], production=True))

    def test_critical_in_development_is_logged(self):
        app_config = FakeConfig(["CRITICAL: no key"])
        grouped = validate_config_on_startup(app_config)
        assert grouped["CRITICAL"] == ["CRITICAL: no key"]
        assert app_config.logged is True

    def test_warnings_never_raise(self):
        grouped = validate_config_on_startup(FakeConfig(["WARNING: debug on"], production=True))
        assert grouped["WARNING"] == ["WARNING: debug on"]


class TestAppConfigValidate:

    def test_insecure_production(self):
        app_config = AppConfig(
            environment="production",
            debug=True,
            security=SecurityConfig(secret_key="django-insecure-dev"),
        )
        issues = app_config.validate()
        assert "CRITICAL: Using insecure SECRET_KEY in production!" in issues
        assert "WARNING: DEBUG=True in production!" in issues

    def test_search_tuning_checked(self):
        app_config = AppConfig(
            environment="development",
            search=SearchConfig(port_timeout=0, window_days=0, fuzzy_ratio=1.5, llm_enabled=False),
        )
        issues = app_config.validate()
        assert "CRITICAL: SEARCH_PORT_TIMEOUT must be positive" in issues
        assert "CRITICAL: SEARCH_WINDOW_DAYS must be at least 1" in issues
        assert any(i.startswith("WARNING: SEARCH_FUZZY_RATIO") for i in issues)

    def test_llm_without_key(self):
        app_config = AppConfig(
            environment="development",
            search=SearchConfig(llm_enabled=True),
            apis=APIKeysConfig(openai_api_key=""),
        )
        assert "WARNING: LLM_INTENT_ENABLED but OPENAI_API_KEY is not set" in app_config.validate()

    def test_clean_production(self):
        app_config = AppConfig(
            environment="production",
            debug=False,
            security=SecurityConfig(secret_key=SECURE_KEY),
            search=SearchConfig(
                port_timeout=3.0, request_timeout=8.0, window_days=14, fuzzy_ratio=0.3,
                llm_enabled=True,
            ),
            apis=APIKeysConfig(openai_api_key="sk-test"),
        )
        assert app_config.validate() == []
        assert app_config.apis.configured_services == ["openai"]
