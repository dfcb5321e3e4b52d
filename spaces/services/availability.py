"""
Availability Engine

Per-day booked/free calendars for a set of spaces over a date window, and
the overlap predicate shared by search display and booking conflict checks.

Intervals are inclusive at day granularity: ``[s1, e1]`` and ``[s2, e2]``
overlap iff ``s1 <= e2 and s2 <= e1``. Only pending and confirmed bookings
block a day.

Reads here are advisory. The booking hold re-checks inside a database
transaction before it writes.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Union

from core.exceptions import (
    AvailabilityUnavailable,
    BookingConflictError,
    PortError,
    SearchCancelled,
    ValidationError,
)

from .domain import BLOCKING_STATUSES, BookingInterval, BookingStatus, CancellationToken
from .ports import BookingPort, PortGateway

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def to_day(value: DateLike) -> date:
    """Strip the time of day; datetimes compare as their calendar date."""
    if isinstance(value, datetime):
        return value.date()
    return value


def overlaps(s1: DateLike, e1: DateLike, s2: DateLike, e2: DateLike) -> bool:
    """Inclusive interval overlap. Symmetric in its two intervals."""
    return to_day(s1) <= to_day(e2) and to_day(s2) <= to_day(e1)


def occupies_calendar(status: Union[BookingStatus, str]) -> bool:
    """Only pending and confirmed bookings block dates."""
    try:
        return BookingStatus(status) in BLOCKING_STATUSES
    except ValueError:
        return False


def days_between(start: date, end: date) -> List[date]:
    """Every day of the inclusive range ``[start, end]``."""
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def blocking_overlaps(
    intervals: Iterable[BookingInterval],
    start: DateLike,
    end: DateLike,
    exclude_booking_id: Optional[str] = None,
) -> List[BookingInterval]:
    """Intervals that block any day of ``[start, end]``."""
    return [
        interval for interval in intervals
        if occupies_calendar(interval.status)
        and interval.booking_id != exclude_booking_id
        and overlaps(interval.start_date, interval.end_date, start, end)
    ]


@dataclass
class SpaceAvailability:
    """Window calendar for one space."""
    space_id: str
    start: date
    end: date
    days: Dict[date, bool] = field(default_factory=dict)   # date → booked
    bookings: List[BookingInterval] = field(default_factory=list)

    @property
    def fraction_free(self) -> float:
        if not self.days:
            return 1.0
        free = sum(1 for booked in self.days.values() if not booked)
        return free / len(self.days)

    @property
    def requested_date_free(self) -> bool:
        """Whether the first day of the window is free."""
        return not self.days.get(self.start, False)

    @property
    def booked_dates(self) -> List[date]:
        return [day for day, booked in self.days.items() if booked]

    def to_dict(self) -> dict:
        return {
            "space_id": self.space_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "fraction_free": round(self.fraction_free, 3),
            "requested_date_free": self.requested_date_free,
            "booked_dates": [d.isoformat() for d in self.booked_dates],
        }


class AvailabilityEngine:
    """
    Booking-port backed availability reads.

    Usage:
        engine = AvailabilityEngine(bookings, PortGateway(timeout=2.0))
        calendars = engine.availability(["site-1", "site-2"], start, end)
        engine.is_available("site-1", start, end)
    """

    def __init__(self, bookings: BookingPort, gateway: Optional[PortGateway] = None):
        self.bookings = bookings
        self.gateway = gateway or PortGateway()

    def calendar(
        self,
        space_ids: List[str],
        start: DateLike,
        end: DateLike,
        token: Optional[CancellationToken] = None,
    ) -> Dict[str, List[BookingInterval]]:
        """
        Blocking intervals overlapping ``[start, end]`` per space.
        Every requested id is present, with an empty list when free.

        Raises:
            AvailabilityUnavailable: the booking port failed or timed out
            SearchCancelled: the request was cancelled
        """
        start, end = to_day(start), to_day(end)
        if end < start:
            raise ValidationError("End date must not be before start date", field="end")

        result: Dict[str, List[BookingInterval]] = {space_id: [] for space_id in space_ids}
        if not space_ids:
            return result

        try:
            intervals = self.gateway.call(
                self.bookings.bookings_for_spaces, list(space_ids), start, end,
                token=token, port="bookings",
            )
        except SearchCancelled:
            raise
        except PortError as e:
            logger.warning(f"Booking port unavailable for {len(space_ids)} spaces: {e.message}")
            raise AvailabilityUnavailable(str(e.message)) from e
        except Exception as e:
            logger.warning(f"Booking port failed for {len(space_ids)} spaces: {e}")
            raise AvailabilityUnavailable(f"Booking lookup failed: {e}") from e

        for interval in blocking_overlaps(intervals, start, end):
            if interval.space_id in result:
                result[interval.space_id].append(interval)
        return result

    def availability(
        self,
        space_ids: List[str],
        start: DateLike,
        end: DateLike,
        token: Optional[CancellationToken] = None,
    ) -> Dict[str, SpaceAvailability]:
        """Per-day booked flags for each space over ``[start, end]``."""
        start, end = to_day(start), to_day(end)
        calendars = self.calendar(space_ids, start, end, token=token)
        window = days_between(start, end)

        result = {}
        for space_id, intervals in calendars.items():
            days = {
                day: any(overlaps(i.start_date, i.end_date, day, day) for i in intervals)
                for day in window
            }
            result[space_id] = SpaceAvailability(
                space_id=space_id, start=start, end=end, days=days, bookings=intervals,
            )
        return result

    def conflicts(
        self,
        space_id: str,
        start: DateLike,
        end: DateLike,
        exclude_booking_id: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> List[BookingInterval]:
        intervals = self.calendar([space_id], start, end, token=token)[space_id]
        return blocking_overlaps(intervals, start, end, exclude_booking_id=exclude_booking_id)

    def is_available(
        self,
        space_id: str,
        start: DateLike,
        end: DateLike,
        exclude_booking_id: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        return not self.conflicts(space_id, start, end, exclude_booking_id, token=token)

    def ensure_available(
        self,
        space_id: str,
        start: DateLike,
        end: DateLike,
        exclude_booking_id: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        """
        Raises:
            BookingConflictError: listing the ids of the conflicting bookings
        """
        found = self.conflicts(space_id, start, end, exclude_booking_id, token=token)
        if found:
            raise BookingConflictError(
                f"{space_id} is already booked between {to_day(start)} and {to_day(end)}",
                conflicts=[b.booking_id for b in found],
            )
