"""
API Deprecation Middleware
==========================

Marks responses to unversioned ``/api/`` requests as deprecated so
clients move to ``/api/v1/``. The sunset date comes from the
``API_SUNSET_DATE`` setting.
"""

from django.conf import settings
from django.utils.deprecation import MiddlewareMixin

DEFAULT_SUNSET_DATE = "2027-06-30T00:00:00Z"


class APIDeprecationMiddleware(MiddlewareMixin):
    """
    Headers added to ``/api/*`` responses without a version prefix:

        Deprecation: true
        Sunset: <API_SUNSET_DATE>
        X-API-Warn: Use /api/v1/ prefix. ...
    """

    VERSION_PREFIXES = ("/api/v1/",)

    def process_response(self, request, response):
        path = request.path

        if path.startswith("/api/") and not path.startswith(self.VERSION_PREFIXES):
            response["Deprecation"] = "true"
            response["Sunset"] = getattr(settings, "API_SUNSET_DATE", DEFAULT_SUNSET_DATE)
            response["X-API-Warn"] = (
                "Use /api/v1/ prefix. "
                "Unversioned /api/ endpoints are deprecated and will be removed."
            )

        return response
