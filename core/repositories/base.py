"""
Generic Base Repository
=======================

Typed query helpers shared by the spaces repositories. Model-specific
queries live on the subclasses as static or class methods.

Usage:
    from core.repositories import BaseRepository
    from spaces.models import Booking

    class BookingRepository(BaseRepository[Booking]):
        model = Booking

        @staticmethod
        def pending():
            return Booking.objects.filter(status="pending")
"""

from typing import Generic, Type, TypeVar

from django.db import models
from django.db.models import QuerySet

T = TypeVar("T", bound=models.Model)


class BaseRepository(Generic[T]):
    """
    Subclasses MUST set the `model` class attribute:

        class CentreRepository(BaseRepository[ShoppingCentre]):
            model = ShoppingCentre
    """

    model: Type[T]

    # ── Read ──────────────────────────────────────────────────────────

    @classmethod
    def filter(cls, **kwargs) -> QuerySet[T]:
        return cls.model.objects.filter(**kwargs)

    # ── Write ─────────────────────────────────────────────────────────

    @classmethod
    def create(cls, **kwargs) -> T:
        return cls.model.objects.create(**kwargs)
