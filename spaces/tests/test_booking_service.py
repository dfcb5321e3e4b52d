"""
Tests for placing booking holds

The transaction and the ORM calls are patched out; what is checked is
the overlap re-check and what gets written.

Run with: python -m pytest spaces/tests/test_booking_service.py -v
"""

import contextlib
from datetime import date
from types import SimpleNamespace

import pytest

from core.exceptions import BookingConflictError, NotFoundError, ValidationError
from spaces.repositories import BookingRepository, SpaceRepository
from spaces.services.booking_service import BookingHoldService, generate_booking_number


def row(pk, start, end, status="confirmed", space_id="site-1"):
    return SimpleNamespace(pk=pk, space_id=space_id, start_date=start, end_date=end, status=status)


class TestBookingHoldService:

    @pytest.fixture
    def store(self, monkeypatch):
        """Patch the repositories; returns the existing rows and the created calls."""
        state = SimpleNamespace(rows=[], created=[], locked=[])

        def get(space_id, lock=False):
            state.locked.append((space_id, lock))
            return SimpleNamespace(pk=1)

        def create(**fields):
            state.created.append(fields)
            return SimpleNamespace(**fields)

        monkeypatch.setattr(BookingHoldService, "atomic", staticmethod(contextlib.nullcontext))
        monkeypatch.setattr(SpaceRepository, "get", staticmethod(get))
        monkeypatch.setattr(
            BookingRepository, "blocking_for_update", staticmethod(lambda *args, **kwargs: state.rows)
        )
        monkeypatch.setattr(BookingRepository, "create", staticmethod(create))
        return state

    def test_hold_creates_pending_booking(self, store):
        booking = BookingHoldService.hold(
            "site-1", date(2026, 11, 2), date(2026, 11, 8), customer_email="stall@example.com"
        )

        assert booking.booking_number.startswith("BK-")
        assert booking.status == "pending"
        assert store.created[0]["space_id"] == "site-1"
        assert store.created[0]["customer_email"] == "stall@example.com"
        assert store.locked == [("site-1", True)]

    def test_single_day_hold(self, store):
        booking = BookingHoldService.hold("site-1", date(2026, 11, 2), date(2026, 11, 2))
        assert booking.start_date == booking.end_date

    def test_overlap_is_rejected(self, store):
        store.rows = [
            row(41, date(2026, 11, 1), date(2026, 11, 3)),
            row(42, date(2026, 11, 7), date(2026, 11, 12), status="pending"),
        ]
        with pytest.raises(BookingConflictError) as exc_info:
            BookingHoldService.hold("site-1", date(2026, 11, 2), date(2026, 11, 8))

        assert exc_info.value.conflicts == ["41", "42"]
        assert exc_info.value.status_code == 409
        assert store.created == []

    def test_touching_booking_conflicts(self, store):
        """Ranges are inclusive: a booking ending on the start day overlaps."""
        store.rows = [row(7, date(2026, 10, 30), date(2026, 11, 2))]
        with pytest.raises(BookingConflictError):
            BookingHoldService.hold("site-1", date(2026, 11, 2), date(2026, 11, 4))

    def test_end_before_start(self, store):
        with pytest.raises(ValidationError) as exc_info:
            BookingHoldService.hold("site-1", date(2026, 11, 8), date(2026, 11, 2))
        assert exc_info.value.details["field"] == "end_date"
        assert store.locked == []

    def test_unknown_space(self, store, monkeypatch):
        def missing(space_id, lock=False):
            raise NotFoundError(f"No space {space_id}", resource="space")

        monkeypatch.setattr(SpaceRepository, "get", staticmethod(missing))
        with pytest.raises(NotFoundError):
            BookingHoldService.hold("site-99", date(2026, 11, 2), date(2026, 11, 8))
        assert store.created == []


def test_booking_numbers_are_unique():
    numbers = {generate_booking_number() for _ in range(50)}
    assert len(numbers) == 50
    assert all(len(n) == 13 for n in numbers)
