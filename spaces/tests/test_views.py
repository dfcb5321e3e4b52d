"""
Tests for the spaces API views

Views run against a real engine wired to the in-memory ports from
conftest; nothing touches the database.

Run with: python -m pytest spaces/tests/test_views.py -v
"""

from datetime import date

import pytest
from django.core.cache import cache
from rest_framework.test import APIRequestFactory

from core.exceptions import BookingConflictError
from spaces import views
from spaces.models import Booking
from spaces.services.booking_service import BookingHoldService
from spaces.services.orchestrator import SearchEngine

from .conftest import FakeBookings, ImmediateExecutor, booking

factory = APIRequestFactory()


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def engine(catalog, analytics, gateway, monkeypatch):
    bookings = FakeBookings([booking("b-9", "site-1", date(2026, 11, 3), date(2026, 11, 5))])
    engine = SearchEngine(
        catalog, bookings, analytics,
        gateway=gateway,
        analytics_executor=ImmediateExecutor(),
    )
    monkeypatch.setattr(views, "get_search_engine", lambda: engine)
    return engine


def get(view_class, path, params=None, **kwargs):
    request = factory.get(path, params or {})
    return view_class.as_view()(request, **kwargs)


# =============================================================================
# Search
# =============================================================================

class TestSearchView:

    def test_search(self, engine):
        response = get(views.SearchView, "/api/v1/search/", {"q": "Eastgate fashion", "date": "2026-10-14"})

        assert response.status_code == 200
        assert response.data["parsed"]["product_category"] == "fashion"
        assert [s["id"] for s in response.data["spaces"]] == ["site-2", "site-3"]

    def test_html_is_stripped(self, engine):
        response = get(views.SearchView, "/api/v1/search/", {"q": "<b>Eastgate</b>", "date": "2026-10-14"})
        assert response.data["parsed"]["original"] == "Eastgate"

    def test_empty_query(self, engine):
        response = get(views.SearchView, "/api/v1/search/", {"q": ""})
        assert response.status_code == 200
        assert response.data["spaces"] == []

    def test_symbols_only_rejected(self, engine):
        response = get(views.SearchView, "/api/v1/search/", {"q": "!!! ???"})
        assert response.status_code == 400
        assert response.data["error"] == "validation_error"
        assert response.data["detail"]["field"] == "q"

    def test_bad_date(self, engine):
        response = get(views.SearchView, "/api/v1/search/", {"q": "Eastgate", "date": "14/10/2026"})
        assert response.status_code == 400
        assert response.data["detail"]["field"] == "date"


# =============================================================================
# Autocomplete
# =============================================================================

class TestAutocompleteView:

    def test_results_are_cached(self, engine):
        first = get(views.AutocompleteView, "/api/v1/autocomplete/", {"q": "highlnd"})
        second = get(views.AutocompleteView, "/api/v1/autocomplete/", {"q": "highlnd"})

        assert first.status_code == 200
        assert [c["name"] for c in first.data["centres"]] == ["Highlands Marketplace"]
        assert first.data["cached"] is False
        assert second.data["cached"] is True
        assert second.data["centres"] == first.data["centres"]

    def test_short_query(self, engine):
        response = get(views.AutocompleteView, "/api/v1/autocomplete/", {"q": "h"})
        assert response.data["centres"] == []

    def test_limit_out_of_range(self, engine):
        response = get(views.AutocompleteView, "/api/v1/autocomplete/", {"q": "east", "limit": "50"})
        assert response.status_code == 400
        assert response.data["detail"]["field"] == "limit"


# =============================================================================
# Availability & holds
# =============================================================================

class TestAvailabilityCheckView:

    path = "/api/v1/spaces/site-1/availability/"

    def test_conflicts_listed(self, engine):
        response = get(
            views.AvailabilityCheckView, self.path,
            {"start": "2026-11-01", "end": "2026-11-03"}, space_id="site-1",
        )
        assert response.status_code == 200
        assert response.data["available"] is False
        assert [b["booking_id"] for b in response.data["conflicts"]] == ["b-9"]

    def test_free_range(self, engine):
        response = get(
            views.AvailabilityCheckView, self.path,
            {"start": "2026-11-06", "end": "2026-11-08"}, space_id="site-1",
        )
        assert response.data["available"] is True
        assert response.data["conflicts"] == []

    def test_excluded_booking(self, engine):
        response = get(
            views.AvailabilityCheckView, self.path,
            {"start": "2026-11-01", "end": "2026-11-03", "exclude_booking": "b-9"}, space_id="site-1",
        )
        assert response.data["available"] is True

    def test_malformed_space_id(self, engine):
        response = get(
            views.AvailabilityCheckView, "/api/v1/spaces/kiosk-1/availability/",
            {"start": "2026-11-01", "end": "2026-11-03"}, space_id="kiosk-1",
        )
        assert response.status_code == 400
        assert response.data["detail"]["field"] == "space_id"

    def test_end_before_start(self, engine):
        response = get(
            views.AvailabilityCheckView, self.path,
            {"start": "2026-11-03", "end": "2026-11-01"}, space_id="site-1",
        )
        assert response.status_code == 400
        assert response.data["detail"]["field"] == "end"


class TestBookingHoldView:

    payload = {"space_id": "site-1", "start_date": "2026-11-10", "end_date": "2026-11-12"}

    def post(self, data):
        request = factory.post("/api/v1/bookings/hold/", data, format="json")
        return views.BookingHoldView.as_view()(request)

    def test_hold_created(self, monkeypatch):
        def hold(space_id, start_date, end_date, customer_email=""):
            return Booking(
                booking_number="BK-0123456789", space_id=space_id,
                start_date=start_date, end_date=end_date, status="pending",
            )

        monkeypatch.setattr(BookingHoldService, "hold", staticmethod(hold))
        response = self.post(self.payload)

        assert response.status_code == 201
        assert response.data["booking_number"] == "BK-0123456789"
        assert response.data["start_date"] == "2026-11-10"
        assert response.data["status"] == "pending"

    def test_conflict(self, monkeypatch):
        def hold(*args, **kwargs):
            raise BookingConflictError("site-1 is already booked", conflicts=["41"])

        monkeypatch.setattr(BookingHoldService, "hold", staticmethod(hold))
        response = self.post(self.payload)

        assert response.status_code == 409
        assert response.data["error"] == "booking_conflict"
        assert response.data["detail"]["conflicts"] == ["41"]

    def test_invalid_space_id(self):
        response = self.post({**self.payload, "space_id": "kiosk-1"})
        assert response.status_code == 400
        assert response.data["detail"]["field"] == "space_id"


def test_health():
    response = get(views.HealthView, "/api/v1/health/")
    assert response.status_code == 200
    assert response.data["status"] == "healthy"
    assert response.data["llm_intent"] is False
