"""
Tests for the unversioned-API deprecation headers

Run with: python -m pytest core/tests/test_middleware.py -v
"""

from django.http import HttpResponse
from django.test import RequestFactory, override_settings

from core.middleware.deprecation import APIDeprecationMiddleware

factory = RequestFactory()


def respond(path):
    middleware = APIDeprecationMiddleware(lambda request: HttpResponse("ok"))
    return middleware(factory.get(path))


class TestAPIDeprecationMiddleware:

    def test_unversioned_api_is_marked(self):
        response = respond("/api/search/")
        assert response["Deprecation"] == "true"
        assert response["X-API-Warn"].startswith("Use /api/v1/ prefix.")

    def test_versioned_api_untouched(self):
        response = respond("/api/v1/search/")
        assert not response.has_header("Deprecation")

    def test_non_api_path_untouched(self):
        assert not respond("/admin/").has_header("Sunset")

    @override_settings(API_SUNSET_DATE="2027-01-01T00:00:00Z")
    def test_sunset_from_settings(self):
        assert respond("/api/health/")["Sunset"] == "2027-01-01T00:00:00Z"

