"""
Space Views

API endpoints for space search, centre autocomplete, availability checks
and booking holds.
"""

import hashlib
import logging

from django.core.cache import cache
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import ValidationError

from .query_sanitizer import sanitize_query, validate_query
from .repositories import split_space_id
from .serializers import (
    AutocompleteParamsSerializer,
    AvailabilityParamsSerializer,
    BookingHoldSerializer,
    BookingSerializer,
    SearchParamsSerializer,
    validated,
)
from .services import get_search_engine
from .services.booking_service import BookingHoldService

logger = logging.getLogger(__name__)

AUTOCOMPLETE_CACHE_TTL = 300


class SearchView(APIView):
    """
    Search spaces using a free-text query.

    GET /api/v1/search/?q=<query>&date=YYYY-MM-DD

    Query params:
        q     - Search text, e.g. "Eastgate fashion 20sqm next Monday".
                An empty query returns an empty result.
        date  - Day the query is interpreted on (default: today); relative
                phrases such as "next Monday" resolve against it

    Response: the full search result, including the parsed filter,
    ranked spaces with score breakdowns, availability calendars and any
    "did you mean" suggestions.
    """
    permission_classes = [AllowAny]

    def get(self, request):
        params = validated(SearchParamsSerializer, request.query_params)

        # ── Sanitize & validate ───────────────────────
        query = sanitize_query(params["q"])
        error = validate_query(query)
        if error:
            raise ValidationError(error, field="q")

        # ── Search ────────────────────────────────────
        result = get_search_engine().search(query, search_date=params["date"])
        return Response(result.to_dict())


class AutocompleteView(APIView):
    """
    Typo-tolerant centre typeahead.

    GET /api/v1/autocomplete/?q=<partial>&limit=8

    Fewer than two characters returns an empty list.
    """
    permission_classes = [AllowAny]

    def get(self, request):
        params = validated(AutocompleteParamsSerializer, request.query_params)
        partial = sanitize_query(params["q"])
        limit = params["limit"]

        # ── Cache lookup (5-minute TTL) ──────────────
        cache_key = f"autocomplete:{hashlib.md5(partial.lower().encode()).hexdigest()}:{limit}"
        cached = cache.get(cache_key)
        if cached is not None:
            return Response({**cached, "cached": True})

        centres = get_search_engine().autocomplete(partial, limit=limit)
        response_data = {
            "query": partial,
            "centres": [c.to_dict() for c in centres],
        }
        cache.set(cache_key, response_data, timeout=AUTOCOMPLETE_CACHE_TTL)
        return Response({**response_data, "cached": False})


class AvailabilityCheckView(APIView):
    """
    Check whether a space is free for a date range.

    GET /api/v1/spaces/<space_id>/availability/?start=YYYY-MM-DD&end=YYYY-MM-DD&exclude_booking=<id>

    ``exclude_booking`` ignores one booking, for rescheduling it.
    """
    permission_classes = [AllowAny]

    def get(self, request, space_id):
        split_space_id(space_id)
        params = validated(AvailabilityParamsSerializer, request.query_params)

        conflicts = get_search_engine().availability_engine.conflicts(
            space_id,
            params["start"],
            params["end"],
            exclude_booking_id=params["exclude_booking"] or None,
        )
        return Response({
            "space_id": space_id,
            "available": not conflicts,
            "conflicts": [b.to_dict() for b in conflicts],
        })


class BookingHoldView(APIView):
    """
    Place a pending hold on a space.

    POST /api/v1/bookings/hold/
    {"space_id": "site-12", "start_date": "2026-11-02", "end_date": "2026-11-08"}

    Returns 201 with the booking, or 409 listing the conflicting bookings.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        data = validated(BookingHoldSerializer, request.data)
        booking = BookingHoldService.hold(
            data["space_id"],
            data["start_date"],
            data["end_date"],
            customer_email=data["customer_email"],
        )
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)


class HealthView(APIView):
    """
    Health check endpoint.

    GET /api/v1/health/
    """
    permission_classes = [AllowAny]

    def get(self, request):
        from spacefinder.config import config

        return Response({
            "status": "healthy",
            "service": "Spacefinder API",
            "version": "1.0.0",
            "llm_intent": config.search.llm_enabled,
        })
