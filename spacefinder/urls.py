"""
Spacefinder URL Configuration
"""

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse

from spacefinder.config import config


def api_root(request):
    """API root with the public endpoint map."""
    return JsonResponse({
        "service": "Spacefinder API",
        "version": "1.0.0",
        "notice": "Use /api/v1/ prefix. Unversioned /api/ is deprecated.",
        "endpoints": {
            "search": "/api/v1/search/?q=<query>&date=<YYYY-MM-DD>",
            "autocomplete": "/api/v1/autocomplete/?q=<partial>",
            "availability": "/api/v1/spaces/<space_id>/availability/?start=<date>&end=<date>",
            "hold": "/api/v1/bookings/hold/",
            "health": "/api/v1/health/",
        },
        "example": "/api/v1/search/?q=Eastgate+fashion+20sqm+next+Monday",
    })


urlpatterns = [
    path('', api_root, name='api_root'),
    path(f"{config.security.admin_url.strip('/')}/", admin.site.urls),  # Dynamic admin URL from ADMIN_URL env var

    # ── Versioned API (canonical) ─────────────────────────────────────
    path('api/v1/', include('spaces.urls')),

    # ── Legacy unversioned API (deprecated, kept for backward compat) ─
    path('api/', include(('spaces.urls', 'spaces'), namespace='spaces-legacy')),
]
