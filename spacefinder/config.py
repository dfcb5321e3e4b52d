"""
Configuration Layer
===================

Centralized, type-safe configuration management for all environment variables.
This replaces scattered os.getenv() calls throughout the codebase.

Usage:
    from spacefinder.config import config

    # Search tuning
    timeout = config.search.port_timeout

    # Access database settings
    db_url = config.database.url

    # Check if in production
    if config.is_production:
        ...
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List
import logging

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


# =============================================================================
# Configuration Classes
# =============================================================================

@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection settings."""
    url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///db.sqlite3"))
    name: str = field(default_factory=lambda: os.getenv("DB_NAME", "db.sqlite3"))
    host: str = field(default_factory=lambda: os.getenv("DB_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("DB_PORT", "5432")))
    user: str = field(default_factory=lambda: os.getenv("DB_USER", ""))
    password: str = field(default_factory=lambda: os.getenv("DB_PASSWORD", ""))

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.url.lower()


@dataclass(frozen=True)
class RedisConfig:
    """Redis/Celery broker settings."""
    url: str = field(default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    broker_url: str = field(default_factory=lambda: os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0"))
    result_backend: str = field(default_factory=lambda: os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0"))


@dataclass(frozen=True)
class APIKeysConfig:
    """External API keys - single source of truth."""

    # OpenAI (conversational intent fallback)
    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))

    def is_configured(self, service: str) -> bool:
        """Check if a service has its API keys configured."""
        checks = {
            "openai": bool(self.openai_api_key),
        }
        return checks.get(service.lower(), False)

    @property
    def configured_services(self) -> List[str]:
        """Return list of services with valid API keys."""
        return [s for s in ("openai",) if self.is_configured(s)]


@dataclass(frozen=True)
class SecurityConfig:
    """Security-related settings."""
    secret_key: str = field(default_factory=lambda: os.getenv("SECRET_KEY", "django-insecure-dev-key-change-in-production"))
    allowed_hosts: List[str] = field(default_factory=lambda: os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(","))
    cors_origins: List[str] = field(default_factory=lambda: os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"
    ).split(","))
    csrf_trusted_origins: List[str] = field(default_factory=lambda: os.getenv(
        "CSRF_TRUSTED_ORIGINS",
        "http://localhost:3000,http://localhost:5173"
    ).split(","))
    admin_url: str = field(default_factory=lambda: os.getenv("ADMIN_URL", "admin/"))

    @property
    def is_secure_key(self) -> bool:
        """Check if using a proper secret key."""
        return "insecure" not in self.secret_key.lower() and len(self.secret_key) >= 50


@dataclass(frozen=True)
class SearchConfig:
    """Search pipeline tuning."""
    port_timeout: float = field(default_factory=lambda: float(os.getenv("SEARCH_PORT_TIMEOUT", "3.0")))
    request_timeout: float = field(default_factory=lambda: float(os.getenv("SEARCH_TIMEOUT", "8.0")))
    window_days: int = field(default_factory=lambda: int(os.getenv("SEARCH_WINDOW_DAYS", "14")))
    fuzzy_ratio: float = field(default_factory=lambda: float(os.getenv("SEARCH_FUZZY_RATIO", "0.3")))
    autocomplete_limit: int = field(default_factory=lambda: int(os.getenv("SEARCH_AUTOCOMPLETE_LIMIT", "8")))
    suggestion_limit: int = field(default_factory=lambda: int(os.getenv("SEARCH_SUGGESTION_LIMIT", "5")))
    max_workers: int = field(default_factory=lambda: int(os.getenv("SEARCH_MAX_WORKERS", "8")))

    # LLM intent fallback for conversational queries
    llm_enabled: bool = field(default_factory=lambda: _env_bool("LLM_INTENT_ENABLED", "false"))
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_INTENT_MODEL", "gpt-4o-mini"))
    llm_timeout: float = field(default_factory=lambda: float(os.getenv("LLM_INTENT_TIMEOUT", "3.0")))


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration - aggregates all config sections."""

    # Environment
    environment: str = field(default_factory=lambda: os.getenv("DJANGO_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "True").lower() == "true")

    # Sub-configurations
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    apis: APIKeysConfig = field(default_factory=APIKeysConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    search: SearchConfig = field(default_factory=SearchConfig)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def validate(self) -> List[str]:
        """
        Validate configuration and return list of warnings/errors.
        Call this on startup to catch misconfigurations early.
        """
        issues = []

        if self.is_production:
            if not self.security.is_secure_key:
                issues.append("CRITICAL: Using insecure SECRET_KEY in production!")
            if self.debug:
                issues.append("WARNING: DEBUG=True in production!")

        if self.search.port_timeout <= 0:
            issues.append("CRITICAL: SEARCH_PORT_TIMEOUT must be positive")
        if self.search.window_days < 1:
            issues.append("CRITICAL: SEARCH_WINDOW_DAYS must be at least 1")
        if not 0 < self.search.fuzzy_ratio < 1:
            issues.append("WARNING: SEARCH_FUZZY_RATIO outside (0, 1); suggestions will be noisy or empty")
        if self.search.request_timeout < self.search.port_timeout:
            issues.append("WARNING: SEARCH_TIMEOUT is shorter than SEARCH_PORT_TIMEOUT")

        if self.search.llm_enabled and not self.apis.openai_api_key:
            issues.append("WARNING: LLM_INTENT_ENABLED but OPENAI_API_KEY is not set")
        elif not self.search.llm_enabled:
            issues.append("INFO: LLM intent fallback disabled (rule-based parsing only)")

        return issues

    def log_status(self) -> None:
        """Log configuration status on startup."""
        logger.info(f"Environment: {self.environment}")
        logger.info(f"Debug: {self.debug}")
        logger.info(f"Configured APIs: {', '.join(self.apis.configured_services) or 'None'}")
        logger.info(
            f"Search: port_timeout={self.search.port_timeout}s, window={self.search.window_days}d, "
            f"llm_intent={'on' if self.search.llm_enabled else 'off'}"
        )


# =============================================================================
# Singleton Instance
# =============================================================================

@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """
    Get the singleton configuration instance.
    Uses lru_cache to ensure single instance across the application.
    """
    return AppConfig()


# Convenience alias
config = get_config()


# =============================================================================
# Django Settings Helpers
# =============================================================================

def get_database_config() -> dict:
    """
    Get database configuration in Django format.
    Returns dict suitable for DATABASES setting.
    """
    if config.database.is_sqlite:
        return {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": config.database.name,
        }

    return {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": config.database.name,
        "HOST": config.database.host,
        "PORT": config.database.port,
        "USER": config.database.user,
        "PASSWORD": config.database.password,
    }
