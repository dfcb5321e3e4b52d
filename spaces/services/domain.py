"""
Search Domain Types

Plain dataclasses shared by the parser, resolvers, availability engine and
scorer. None of them touch Django; the ORM adapters in ``spaces.repositories``
translate model rows into these types.
"""

import re
import threading
import time
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import ClassVar, Dict, FrozenSet, List, Optional, Union

from . import vocabulary


# =============================================================================
# Enumerations
# =============================================================================

class AssetType(str, Enum):
    CASUAL_LEASING = vocabulary.CASUAL_LEASING
    VACANT_SHOP = vocabulary.VACANT_SHOP
    THIRD_LINE = vocabulary.THIRD_LINE


class State(str, Enum):
    NSW = "NSW"
    VIC = "VIC"
    QLD = "QLD"
    SA = "SA"
    WA = "WA"
    TAS = "TAS"
    NT = "NT"
    ACT = "ACT"

    @property
    def label(self) -> str:
        return vocabulary.STATES[self.value]


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"
    COMPLETED = "completed"


# Only these statuses hold a space on the calendar
BLOCKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


# =============================================================================
# Parsed query
# =============================================================================

@dataclass(frozen=True)
class Budget:
    """Spending ceiling; any subset of the three limits may be set."""
    max_per_day: Optional[float] = None
    max_per_week: Optional[float] = None
    max_total: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.max_per_day is None and self.max_per_week is None and self.max_total is None

    def merged_with(self, other: "Budget") -> "Budget":
        """Fill this budget's gaps from ``other``; existing limits win."""
        return Budget(
            max_per_day=self.max_per_day if self.max_per_day is not None else other.max_per_day,
            max_per_week=self.max_per_week if self.max_per_week is not None else other.max_per_week,
            max_total=self.max_total if self.max_total is not None else other.max_total,
        )

    def to_dict(self) -> dict:
        return {
            "max_per_day": self.max_per_day,
            "max_per_week": self.max_per_week,
            "max_total": self.max_total,
        }


@dataclass
class ParsedFilter:
    """
    Structured interpretation of a free-text space search.

    ``centre_name_phrase`` is whatever text is left once every typed token
    has been stripped. Reparsing it never yields another typed field.
    """
    centre_name_phrase: str = ""
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    min_size_m2: Optional[float] = None
    max_size_m2: Optional[float] = None
    min_tables: Optional[int] = None
    product_category: Optional[str] = None
    state_filter: Optional[State] = None
    asset_type: Optional[AssetType] = None
    third_line_category: Optional[str] = None
    budget: Optional[Budget] = None
    original: str = ""

    def typed_fields(self) -> Dict[str, object]:
        """Every typed (non-phrase) field that carries a value."""
        values = {
            "date_start": self.date_start,
            "date_end": self.date_end,
            "min_size_m2": self.min_size_m2,
            "max_size_m2": self.max_size_m2,
            "min_tables": self.min_tables,
            "product_category": self.product_category,
            "state_filter": self.state_filter,
            "asset_type": self.asset_type,
            "third_line_category": self.third_line_category,
            "budget": self.budget,
        }
        return {k: v for k, v in values.items() if v is not None}

    @property
    def has_size_constraint(self) -> bool:
        return self.min_size_m2 is not None or self.min_tables is not None

    @property
    def has_constraints(self) -> bool:
        return self.has_size_constraint or self.product_category is not None

    @property
    def has_budget(self) -> bool:
        return self.budget is not None and not self.budget.is_empty

    def to_dict(self) -> dict:
        return {
            "original": self.original,
            "centre_name_phrase": self.centre_name_phrase,
            "date_start": self.date_start.isoformat() if self.date_start else None,
            "date_end": self.date_end.isoformat() if self.date_end else None,
            "min_size_m2": self.min_size_m2,
            "max_size_m2": self.max_size_m2,
            "min_tables": self.min_tables,
            "product_category": self.product_category,
            "state_filter": self.state_filter.value if self.state_filter else None,
            "asset_type": self.asset_type.value if self.asset_type else None,
            "third_line_category": self.third_line_category,
            "budget": self.budget.to_dict() if self.budget else None,
        }


# =============================================================================
# Category approval policy
# =============================================================================

@dataclass(frozen=True)
class AllApproved:
    """Every product category may trade from the space."""

    def allows(self, category_id: Optional[str]) -> bool:
        return True

    @property
    def category_ids(self) -> FrozenSet[str]:
        return frozenset()

    def to_dict(self) -> dict:
        return {"kind": "all"}


@dataclass(frozen=True)
class ApprovedSet:
    """Only the listed categories may trade. An empty set approves nothing."""
    category_ids: FrozenSet[str] = frozenset()

    def allows(self, category_id: Optional[str]) -> bool:
        return category_id in self.category_ids

    def to_dict(self) -> dict:
        return {"kind": "set", "category_ids": sorted(self.category_ids)}


CategoryPolicy = Union[AllApproved, ApprovedSet]


def is_free_only(
    policy: Optional[CategoryPolicy],
    free_categories: FrozenSet[str] = vocabulary.FREE_CATEGORIES,
) -> bool:
    """Space reserved exclusively for free (charity/community/government) use."""
    return (
        isinstance(policy, ApprovedSet)
        and bool(policy.category_ids)
        and policy.category_ids <= free_categories
    )


# =============================================================================
# Catalog entities
# =============================================================================

@dataclass(frozen=True)
class Centre:
    id: int
    name: str
    state: Optional[State] = None
    suburb: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "state": self.state.value if self.state else None,
            "suburb": self.suburb,
            "city": self.city,
            "postcode": self.postcode,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass(frozen=True, kw_only=True)
class Space:
    """
    A bookable unit. Concrete subclasses carry their own identifiers but
    share every attribute the scorer and resolver read.
    """
    asset_type: ClassVar[AssetType]

    id: str
    centre_id: int
    identifier: str = ""
    description: str = ""
    size_m2: Optional[float] = None
    max_tables: Optional[int] = None
    price_per_day: Optional[float] = None
    price_per_week: Optional[float] = None
    weekend_price_per_day: Optional[float] = None
    state: Optional[State] = None

    @property
    def weekly_price(self) -> Optional[float]:
        if self.price_per_week is not None:
            return self.price_per_week
        if self.price_per_day is not None:
            return self.price_per_day * 7
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asset_type": self.asset_type.value,
            "centre_id": self.centre_id,
            "identifier": self.identifier,
            "description": self.description,
            "size_m2": self.size_m2,
            "max_tables": self.max_tables,
            "price_per_day": self.price_per_day,
            "price_per_week": self.price_per_week,
            "weekend_price_per_day": self.weekend_price_per_day,
            "state": self.state.value if self.state else None,
        }


@dataclass(frozen=True, kw_only=True)
class CasualLeasingSite(Space):
    asset_type: ClassVar[AssetType] = AssetType.CASUAL_LEASING


@dataclass(frozen=True, kw_only=True)
class VacantShop(Space):
    asset_type: ClassVar[AssetType] = AssetType.VACANT_SHOP


@dataclass(frozen=True, kw_only=True)
class ThirdLineAsset(Space):
    asset_type: ClassVar[AssetType] = AssetType.THIRD_LINE

    category_name: str = ""

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["category_name"] = self.category_name
        return data


_NATURAL_DIGITS = re.compile(r"\D")
_HAS_LETTER = re.compile(r"[a-zA-Z]")


def natural_identifier_key(identifier: str) -> tuple:
    """
    Sort key for site numbers: 1, 2, 10, 11 before 9a, VK13.
    Pure numbers come before alphanumeric identifiers.
    """
    digits = _NATURAL_DIGITS.sub("", identifier or "")
    number = int(digits) if digits else 0
    has_letter = bool(_HAS_LETTER.search(identifier or ""))
    return (has_letter, number, identifier or "")


# =============================================================================
# Bookings
# =============================================================================

@dataclass(frozen=True)
class BookingInterval:
    booking_id: str
    space_id: str
    start_date: date
    end_date: date
    status: BookingStatus = BookingStatus.CONFIRMED

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking_id,
            "space_id": self.space_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status.value,
        }


# =============================================================================
# Cancellation
# =============================================================================

class CancellationToken:
    """
    Shared cancel flag for every external read issued by one request.

    Usage::

        token = CancellationToken(timeout=5.0)
        engine.search("Eastgate fashion", token=token)
        # another thread may call token.cancel()
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())


# =============================================================================
# Analytics
# =============================================================================

@dataclass(frozen=True)
class SearchEvent:
    """Payload handed to the analytics collaborator after every search."""
    query: str
    parsed_centre_name: str
    min_size_m2: Optional[float]
    product_category: Optional[str]
    results_count: int
    suggestions_shown: int
    search_date: date
    parser_used: str = "rules"
    top_result_score: Optional[int] = None
    parsed_intent: Dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "parsed_centre_name": self.parsed_centre_name,
            "min_size_m2": self.min_size_m2,
            "product_category": self.product_category,
            "results_count": self.results_count,
            "suggestions_shown": self.suggestions_shown,
            "search_date": self.search_date.isoformat(),
            "parser_used": self.parser_used,
            "top_result_score": self.top_result_score,
            "parsed_intent": self.parsed_intent,
        }


def spaces_by_id(spaces: List[Space]) -> Dict[str, Space]:
    return {s.id: s for s in spaces}
