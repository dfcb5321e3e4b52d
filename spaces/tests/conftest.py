"""
In-memory catalog, booking and analytics fakes for the search engine tests.

Three centres:
    1  Eastgate Bondi Junction   NSW   sites 1-4, vacant shop, two third-line assets
    2  Highlands Marketplace     NSW   site 5
    3  Pacific Square            QLD   site 6
"""

import concurrent.futures
from collections import Counter
from datetime import date

import pytest

from spaces.services.domain import (
    AllApproved,
    ApprovedSet,
    BookingInterval,
    BookingStatus,
    CasualLeasingSite,
    Centre,
    State,
    ThirdLineAsset,
    VacantShop,
)
from spaces.services.ports import PortGateway
from spaces.services.vocabulary import FREE_CATEGORIES

# A Wednesday
TODAY = date(2026, 10, 14)


class FakeCatalog:
    """CatalogPort over plain lists; counts every call by method name."""

    def __init__(self, centres, spaces, policies, free_categories=FREE_CATEGORIES):
        self.centres = {c.id: c for c in centres}
        self.spaces = list(spaces)
        self.policies = dict(policies)
        self.free_categories = frozenset(free_categories)
        self.calls = Counter()

    def list_centres_by_name(self, phrase, state=None):
        self.calls["list_centres_by_name"] += 1
        needle = " ".join(phrase.lower().split())
        return [
            c for c in self.centres.values()
            if (state is None or c.state == state)
            and (not needle or any(v and needle in v.lower() for v in (c.name, c.suburb, c.city)))
        ]

    def list_all_centres(self):
        self.calls["list_all_centres"] += 1
        return list(self.centres.values())

    def get_centres(self, centre_ids):
        self.calls["get_centres"] += 1
        return [self.centres[i] for i in centre_ids if i in self.centres]

    def list_spaces_by_centre(self, centre_id, asset_type):
        self.calls["list_spaces_by_centre"] += 1
        return [s for s in self.spaces if s.centre_id == centre_id and s.asset_type == asset_type]

    def search_spaces_by_text(self, text, category=None, state=None):
        self.calls["search_spaces_by_text"] += 1
        text = text.lower()
        words = text.split()
        hits = []
        for space in self.spaces:
            centre = self.centres[space.centre_id]
            if state is not None and centre.state != state:
                continue
            if category and not self.approved_category_ids(space.id).allows(category):
                continue
            haystack = " ".join((space.description, space.identifier, centre.name)).lower()
            if text in haystack or all(w in haystack for w in words):
                hits.append(space)
        return hits

    def approved_category_ids(self, space_id):
        self.calls["approved_category_ids"] += 1
        return self.policies.get(space_id, AllApproved())

    def free_category_ids(self):
        self.calls["free_category_ids"] += 1
        return self.free_categories

    @property
    def total_calls(self):
        return sum(self.calls.values())


class BrokenCatalog(FakeCatalog):
    """Every lookup fails."""

    def __init__(self):
        super().__init__([], [], {})

    def _fail(self, *args, **kwargs):
        raise RuntimeError("catalog database is down")

    list_centres_by_name = _fail
    list_all_centres = _fail
    get_centres = _fail
    list_spaces_by_centre = _fail
    search_spaces_by_text = _fail
    approved_category_ids = _fail
    free_category_ids = _fail


class FakeBookings:
    """BookingPort returning every stored interval of the requested spaces."""

    def __init__(self, intervals=None, error=None):
        self.intervals = list(intervals or [])
        self.error = error
        self.calls = 0

    def bookings_for_spaces(self, space_ids, start, end):
        self.calls += 1
        if self.error is not None:
            raise self.error
        wanted = set(space_ids)
        return [i for i in self.intervals if i.space_id in wanted]


class FakeAnalytics:
    def __init__(self, error=None):
        self.events = []
        self.error = error

    def record_search(self, event):
        if self.error is not None:
            raise self.error
        self.events.append(event)


class ImmediateExecutor(concurrent.futures.Executor):
    """Runs submitted work on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = concurrent.futures.Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


# =============================================================================
# Catalog data
# =============================================================================

EASTGATE = Centre(1, "Eastgate Bondi Junction", State.NSW, "Bondi Junction", "Sydney", "2022")
HIGHLANDS = Centre(2, "Highlands Marketplace", State.NSW, "Mittagong", "Southern Highlands", "2575")
PACIFIC = Centre(3, "Pacific Square", State.QLD, "Maroochydore", "Sunshine Coast", "4558")

CENTRES = [EASTGATE, HIGHLANDS, PACIFIC]

SPACES = [
    CasualLeasingSite(
        id="site-1", centre_id=1, identifier="1", description="Main entrance near Coles",
        size_m2=15.0, max_tables=2, price_per_day=80.0, state=State.NSW,
    ),
    CasualLeasingSite(
        id="site-2", centre_id=1, identifier="2", description="Level 1 outside Myer",
        size_m2=20.0, max_tables=4, price_per_day=120.0, state=State.NSW,
    ),
    CasualLeasingSite(
        id="site-3", centre_id=1, identifier="10", description="Food court walkway",
        size_m2=25.0, max_tables=6, price_per_day=150.0, state=State.NSW,
    ),
    CasualLeasingSite(
        id="site-4", centre_id=1, identifier="11", description="Community corner",
        size_m2=20.0, state=State.NSW,
    ),
    CasualLeasingSite(
        id="site-5", centre_id=2, identifier="1", description="Centre court",
        size_m2=12.0, max_tables=2, price_per_day=60.0, state=State.NSW,
    ),
    CasualLeasingSite(
        id="site-6", centre_id=3, identifier="3", description="Beach end mall",
        size_m2=30.0, price_per_week=700.0, state=State.QLD,
    ),
    VacantShop(
        id="shop-1", centre_id=1, identifier="G12", description="Ground floor tenancy",
        size_m2=85.0, price_per_week=2500.0, state=State.NSW,
    ),
    ThirdLineAsset(
        id="asset-1", centre_id=1, identifier="VM1", category_name="Vending Machines",
        price_per_week=150.0, state=State.NSW,
    ),
    ThirdLineAsset(
        id="asset-2", centre_id=1, identifier="DS4", category_name="Digital Screens",
        price_per_week=400.0, state=State.NSW,
    ),
]

POLICIES = {
    "site-1": ApprovedSet(frozenset({"food", "coffee"})),
    "site-2": AllApproved(),
    "site-3": ApprovedSet(frozenset({"fashion", "footwear"})),
    "site-4": ApprovedSet(frozenset({"charity", "community"})),
    "site-5": AllApproved(),
    "site-6": ApprovedSet(frozenset({"food"})),
}


def booking(booking_id, space_id, start, end, status=BookingStatus.CONFIRMED):
    return BookingInterval(booking_id, space_id, start, end, status)


@pytest.fixture
def catalog():
    return FakeCatalog(CENTRES, SPACES, POLICIES)


@pytest.fixture
def bookings():
    return FakeBookings()


@pytest.fixture
def analytics():
    return FakeAnalytics()


@pytest.fixture
def gateway():
    return PortGateway(timeout=2.0)
