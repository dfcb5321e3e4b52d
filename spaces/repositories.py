"""
Repository Layer
================

Encapsulates all ORM queries for the spaces app and adapts model rows to
the plain domain types the search engine reads.

Usage:
    from spaces.repositories import DjangoCatalog, DjangoBookings

    catalog = DjangoCatalog()
    centres = catalog.list_centres_by_name("eastgate")
    spaces = catalog.list_spaces_by_centre(centres[0].id, AssetType.CASUAL_LEASING)
"""

import logging
import re
from datetime import date
from functools import wraps
from typing import FrozenSet, Iterable, List, Optional, Tuple

from django.db import close_old_connections
from django.db.models import Q

from core.exceptions import NotFoundError, ValidationError
from core.repositories import BaseRepository

from .models import Booking, SearchLog, ShoppingCentre, Site, UsageCategory
from .models import ThirdLineAsset as ThirdLineAssetModel
from .models import VacantShop as VacantShopModel
from .services.domain import (
    BLOCKING_STATUSES,
    AllApproved,
    ApprovedSet,
    AssetType,
    BookingInterval,
    BookingStatus,
    CasualLeasingSite,
    CategoryPolicy,
    Centre,
    SearchEvent,
    Space,
    State,
    ThirdLineAsset,
    VacantShop,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Space identifiers
# =============================================================================

SPACE_ID_PREFIXES = {
    AssetType.CASUAL_LEASING: "site",
    AssetType.VACANT_SHOP: "shop",
    AssetType.THIRD_LINE: "asset",
}
_PREFIX_TO_ASSET_TYPE = {prefix: asset_type for asset_type, prefix in SPACE_ID_PREFIXES.items()}
_SPACE_ID_PATTERN = re.compile(r"^(site|shop|asset)-(\d+)$")


def make_space_id(asset_type: AssetType, pk: int) -> str:
    return f"{SPACE_ID_PREFIXES[asset_type]}-{pk}"


def split_space_id(space_id: str) -> Tuple[AssetType, int]:
    """
    ``"site-12"`` → ``(AssetType.CASUAL_LEASING, 12)``.

    Raises:
        ValidationError: the id is not in ``<kind>-<number>`` form
    """
    match = _SPACE_ID_PATTERN.match(space_id or "")
    if not match:
        raise ValidationError(f"Invalid space id: {space_id!r}", field="space_id")
    return _PREFIX_TO_ASSET_TYPE[match.group(1)], int(match.group(2))


# =============================================================================
# Row → domain conversion
# =============================================================================

_DIMENSIONS = re.compile(r"(\d+\.?\d*)\s*m?\s*[xX×]\s*(\d+\.?\d*)\s*m?")
_AREA = re.compile(r"(\d+\.?\d*)\s*(?:sqm|sq\s*m|square\s*met(?:er|re)s?|m2|m\s*2)?", re.IGNORECASE)


def parse_site_size(size: Optional[str]) -> Optional[float]:
    """
    Area in m² from a free-text size field.

    Examples:
        >>> parse_site_size("3m x 4m")
        12.0
        >>> parse_site_size("15 sqm")
        15.0
        >>> parse_site_size("TBC") is None
        True
    """
    if not size:
        return None
    dimensions = _DIMENSIONS.search(size)
    if dimensions:
        return float(dimensions.group(1)) * float(dimensions.group(2))
    area = _AREA.search(size)
    if area:
        return float(area.group(1))
    return None


def _money(value) -> Optional[float]:
    return float(value) if value is not None else None


def _state(value: Optional[str]) -> Optional[State]:
    try:
        return State(value.upper()) if value else None
    except ValueError:
        logger.warning(f"Unknown state code on centre: {value!r}")
        return None


def centre_from_row(row: ShoppingCentre) -> Centre:
    return Centre(
        id=row.id,
        name=row.name,
        state=_state(row.state),
        suburb=row.suburb or None,
        city=row.city or None,
        postcode=row.postcode or None,
        latitude=float(row.latitude) if row.latitude is not None else None,
        longitude=float(row.longitude) if row.longitude is not None else None,
    )


def _space_fields(row, identifier: str) -> dict:
    return {
        "centre_id": row.centre_id,
        "identifier": identifier,
        "description": row.description or "",
        "size_m2": parse_site_size(row.size),
        "max_tables": row.max_tables,
        "price_per_day": _money(row.price_per_day),
        "price_per_week": _money(row.price_per_week),
        "weekend_price_per_day": _money(row.weekend_price_per_day),
        "state": _state(row.centre.state),
    }


def space_from_row(row) -> Space:
    """Domain space for a Site, VacantShop or ThirdLineAsset row."""
    if isinstance(row, Site):
        return CasualLeasingSite(
            id=make_space_id(AssetType.CASUAL_LEASING, row.pk), **_space_fields(row, row.site_number)
        )
    if isinstance(row, VacantShopModel):
        return VacantShop(
            id=make_space_id(AssetType.VACANT_SHOP, row.pk), **_space_fields(row, row.shop_number)
        )
    return ThirdLineAsset(
        id=make_space_id(AssetType.THIRD_LINE, row.pk),
        category_name=row.category_name or "",
        **_space_fields(row, row.asset_number),
    )


# =============================================================================
# Model repositories
# =============================================================================

class CentreRepository(BaseRepository[ShoppingCentre]):
    model = ShoppingCentre

    @staticmethod
    def listed():
        """Centres shown on the public site."""
        return ShoppingCentre.objects.filter(include_in_main_site=True)

    @classmethod
    def matching(cls, phrase: str, state: Optional[str] = None):
        """Case-insensitive substring match on name, suburb or city."""
        qs = cls.listed()
        if phrase:
            qs = qs.filter(
                Q(name__icontains=phrase) | Q(suburb__icontains=phrase) | Q(city__icontains=phrase)
            )
        if state:
            qs = qs.filter(state=state)
        return qs


class SpaceRepository:
    """Active spaces of every kind, keyed by asset type."""

    MODELS = {
        AssetType.CASUAL_LEASING: Site,
        AssetType.VACANT_SHOP: VacantShopModel,
        AssetType.THIRD_LINE: ThirdLineAssetModel,
    }

    @classmethod
    def active(cls, asset_type: AssetType):
        return cls.MODELS[asset_type].objects.filter(is_active=True).select_related("centre")

    @classmethod
    def for_centre(cls, centre_id: int, asset_type: AssetType):
        return cls.active(asset_type).filter(centre_id=centre_id)

    @classmethod
    def get(cls, space_id: str, lock: bool = False):
        """
        With ``lock`` the row stays locked until the transaction ends.

        Raises:
            ValidationError: malformed id
            NotFoundError: no active space with that id
        """
        asset_type, pk = split_space_id(space_id)
        qs = cls.active(asset_type).filter(pk=pk)
        if lock:
            qs = qs.select_for_update(of=("self",))
        row = qs.first()
        if row is None:
            raise NotFoundError(f"Space {space_id} not found")
        return row

    @staticmethod
    def sites_matching_text(text: str, category: Optional[str] = None, state: Optional[str] = None):
        """
        Sites whose centre name, site number and description together
        contain the whole text, or every word of it.
        """
        text = " ".join((text or "").split())
        if not text:
            return Site.objects.none()

        def contains(term: str) -> Q:
            return (
                Q(centre__name__icontains=term)
                | Q(site_number__icontains=term)
                | Q(description__icontains=term)
            )

        every_word = Q()
        for word in text.split():
            every_word &= contains(word)

        qs = Site.objects.filter(is_active=True, centre__include_in_main_site=True)
        qs = qs.filter(contains(text) | every_word)
        if state:
            qs = qs.filter(centre__state=state)
        if category:
            qs = qs.filter(
                Q(all_categories_approved=True)
                | Q(approved_categories__slug=category, approved_categories__is_active=True)
                | Q(approved_categories__isnull=True)
            )
        return qs.select_related("centre").distinct()

    @staticmethod
    def site_with_categories(pk: int) -> Optional[Site]:
        """Site with every approval row, active or not."""
        return Site.objects.filter(pk=pk).prefetch_related("approved_categories").first()


class CategoryRepository(BaseRepository[UsageCategory]):
    model = UsageCategory

    @classmethod
    def free_slugs(cls) -> FrozenSet[str]:
        return frozenset(cls.filter(is_free=True, is_active=True).values_list("slug", flat=True))


class BookingRepository(BaseRepository[Booking]):
    model = Booking

    @staticmethod
    def overlapping(space_ids: Iterable[str], start: date, end: date):
        """Bookings touching [start, end] on any of the spaces, any status."""
        return Booking.objects.filter(
            space_id__in=list(space_ids),
            start_date__lte=end,
            end_date__gte=start,
        )

    @classmethod
    def blocking_for_update(cls, space_id: str, start: date, end: date, exclude_booking_id: Optional[str] = None):
        """Blocking bookings for one space, row-locked until the transaction ends."""
        qs = cls.overlapping([space_id], start, end).filter(
            status__in=[s.value for s in BLOCKING_STATUSES]
        )
        if exclude_booking_id:
            qs = qs.exclude(pk=exclude_booking_id)
        return qs.select_for_update()


class SearchLogRepository(BaseRepository[SearchLog]):
    model = SearchLog

    @classmethod
    def record(cls, event: dict) -> SearchLog:
        return cls.create(
            query=(event.get("query") or "")[:255],
            parsed_centre_name=(event.get("parsed_centre_name") or "")[:255],
            min_size_m2=event.get("min_size_m2"),
            product_category=event.get("product_category") or "",
            results_count=event.get("results_count") or 0,
            suggestions_shown=event.get("suggestions_shown") or 0,
            search_date=date.fromisoformat(event["search_date"]),
            parser_used=event.get("parser_used") or "rules",
            top_result_score=event.get("top_result_score"),
            parsed_intent=event.get("parsed_intent") or {},
        )


# =============================================================================
# Port adapters
# =============================================================================

def fresh_connection(method):
    """
    Adapter methods run on the port thread pool, outside Django's request
    cycle, so stale or broken connections are dropped around every call.
    """
    @wraps(method)
    def wrapper(*args, **kwargs):
        close_old_connections()
        try:
            return method(*args, **kwargs)
        finally:
            close_old_connections()
    return wrapper


class DjangoCatalog:
    """CatalogPort over the ORM."""

    @fresh_connection
    def list_centres_by_name(self, phrase: str, state: Optional[State] = None) -> List[Centre]:
        rows = CentreRepository.matching(phrase.strip(), state.value if state else None)
        return [centre_from_row(row) for row in rows]

    @fresh_connection
    def list_all_centres(self) -> List[Centre]:
        return [centre_from_row(row) for row in CentreRepository.listed()]

    @fresh_connection
    def get_centres(self, centre_ids: Iterable[int]) -> List[Centre]:
        rows = CentreRepository.filter(pk__in=list(centre_ids))
        return [centre_from_row(row) for row in rows]

    @fresh_connection
    def list_spaces_by_centre(self, centre_id: int, asset_type: AssetType) -> List[Space]:
        return [space_from_row(row) for row in SpaceRepository.for_centre(centre_id, asset_type)]

    @fresh_connection
    def search_spaces_by_text(
        self,
        text: str,
        category: Optional[str] = None,
        state: Optional[State] = None,
    ) -> List[Space]:
        rows = SpaceRepository.sites_matching_text(text, category, state.value if state else None)
        return [space_from_row(row) for row in rows]

    @fresh_connection
    def approved_category_ids(self, space_id: str) -> CategoryPolicy:
        """
        Sites with no approval rows at all, or flagged all-approved, accept
        every category. Otherwise only the active approved categories
        count; a site whose approvals are all deactivated accepts none.
        Vacant shops and third-line assets have no category restrictions.
        """
        asset_type, pk = split_space_id(space_id)
        if asset_type != AssetType.CASUAL_LEASING:
            return AllApproved()
        site = SpaceRepository.site_with_categories(pk)
        if site is None:
            raise NotFoundError(f"Space {space_id} not found")
        rows = list(site.approved_categories.all())
        if site.all_categories_approved or not rows:
            return AllApproved()
        return ApprovedSet(category_ids=frozenset(c.slug for c in rows if c.is_active))

    @fresh_connection
    def free_category_ids(self) -> FrozenSet[str]:
        return CategoryRepository.free_slugs()


class DjangoBookings:
    """BookingPort over the ORM."""

    @fresh_connection
    def bookings_for_spaces(self, space_ids: List[str], start: date, end: date) -> List[BookingInterval]:
        rows = BookingRepository.overlapping(space_ids, start, end)
        return [
            BookingInterval(
                booking_id=str(row.pk),
                space_id=row.space_id,
                start_date=row.start_date,
                end_date=row.end_date,
                status=BookingStatus(row.status),
            )
            for row in rows
        ]


class CelerySearchAnalytics:
    """AnalyticsPort that hands each search to the ``log_search`` task."""

    def record_search(self, event: SearchEvent) -> None:
        from .tasks import log_search
        log_search.delay(event.to_dict())
