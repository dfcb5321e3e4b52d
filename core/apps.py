"""
Core App Configuration
======================

Validates search and service configuration once Django has loaded.
"""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    name = "core"
    verbose_name = "Spacefinder core"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        from core.config import validate_config_on_startup
        validate_config_on_startup()
