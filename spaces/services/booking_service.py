"""
Booking Hold Service

Places a pending booking on a space after re-checking for overlaps inside
a database transaction. Search-time availability is advisory; this check is
the one that decides.
"""

import uuid
from datetime import date

from core.exceptions import BookingConflictError, ValidationError
from core.services.base import BaseService

from .availability import blocking_overlaps
from .domain import BookingInterval, BookingStatus


def generate_booking_number() -> str:
    return f"BK-{uuid.uuid4().hex[:10].upper()}"


class BookingHoldService(BaseService):
    """
    Usage:
        booking = BookingHoldService.hold("site-12", date(2026, 11, 2), date(2026, 11, 8))
    """

    @classmethod
    def hold(cls, space_id: str, start_date: date, end_date: date, customer_email: str = ""):
        """
        Create a pending booking for ``[start_date, end_date]``.

        The space row and every overlapping blocking booking are locked
        for the duration of the transaction, so two concurrent holds on
        the same dates cannot both succeed.

        Raises:
            ValidationError: end before start, or malformed space id
            NotFoundError: unknown or inactive space
            BookingConflictError: a pending or confirmed booking overlaps
        """
        from spaces.repositories import BookingRepository, SpaceRepository

        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date", field="end_date")

        request_id = cls.generate_request_id()
        with cls.atomic():
            SpaceRepository.get(space_id, lock=True)

            existing = [
                BookingInterval(
                    booking_id=str(row.pk),
                    space_id=row.space_id,
                    start_date=row.start_date,
                    end_date=row.end_date,
                    status=BookingStatus(row.status),
                )
                for row in BookingRepository.blocking_for_update(space_id, start_date, end_date)
            ]
            conflicts = blocking_overlaps(existing, start_date, end_date)
            if conflicts:
                cls.logger.info(
                    f"[{request_id}] Hold on {space_id} {start_date}→{end_date} rejected: "
                    f"{len(conflicts)} conflicting bookings"
                )
                raise BookingConflictError(
                    f"{space_id} is already booked between {start_date} and {end_date}",
                    conflicts=[b.booking_id for b in conflicts],
                )

            booking = BookingRepository.create(
                booking_number=generate_booking_number(),
                space_id=space_id,
                start_date=start_date,
                end_date=end_date,
                status=BookingStatus.PENDING.value,
                customer_email=customer_email or "",
            )

        cls.logger.info(f"[{request_id}] Held {space_id} {start_date}→{end_date} as {booking.booking_number}")
        return booking
