"""
Configuration Validators
========================

Startup validation for the Spacefinder configuration layer.

Issues come back from ``AppConfig.validate()`` as strings prefixed with
their severity. CRITICAL issues stop a production process from starting;
everything else is only logged.

Called automatically via core.apps.CoreConfig.ready().
"""

import logging
from typing import Dict, List

from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)

SEVERITIES = ("CRITICAL", "WARNING", "INFO")


def group_issues(issues: List[str]) -> Dict[str, List[str]]:
    """Bucket issue strings by their severity prefix; unknown prefixes count as INFO."""
    grouped = {severity: [] for severity in SEVERITIES}
    for issue in issues:
        severity = issue.split(":", 1)[0].strip().upper()
        grouped[severity if severity in grouped else "INFO"].append(issue)
    return grouped


def validate_config_on_startup(app_config=None) -> Dict[str, List[str]]:
    """
    Validate configuration on application startup.

    Production:
        CRITICAL issues raise ImproperlyConfigured.
    Development:
        Every issue is only logged.

    Returns the grouped issues.
    """
    if app_config is None:
        from spacefinder.config import config as app_config

    grouped = group_issues(app_config.validate())

    for issue in grouped["INFO"]:
        logger.info(issue)
    for issue in grouped["WARNING"]:
        logger.warning(issue)
    for issue in grouped["CRITICAL"]:
        logger.critical(issue)

    if app_config.is_production and grouped["CRITICAL"]:
        raise ImproperlyConfigured(
            "Configuration validation failed in production:\n"
            + "\n".join(f"  • {i}" for i in grouped["CRITICAL"])
        )

    if not any(grouped.values()):
        logger.info("Configuration validated, no issues found")
    app_config.log_status()
    return grouped
