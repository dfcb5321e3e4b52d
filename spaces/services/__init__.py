# Services package
import concurrent.futures
from functools import lru_cache

from .query_parser import space_query_parser, SpaceQueryParser, parse_query, EXTRACTION_ORDER
from .domain import ParsedFilter, Budget, AssetType, State, CancellationToken
from .availability import AvailabilityEngine, SpaceAvailability, overlaps
from .candidate_resolver import CandidateResolver, Resolution
from .scoring import RelevanceScorer, MatchScore
from .suggestions import SuggestionResolver, Suggestion
from .orchestrator import SearchEngine, SearchResult
from .ports import PortGateway


@lru_cache(maxsize=1)
def get_search_engine() -> SearchEngine:
    """
    Singleton engine wired to the Django adapters.
    Imported lazily so the engine modules stay free of ORM imports.
    """
    from spacefinder.config import config
    from spaces.repositories import CelerySearchAnalytics, DjangoBookings, DjangoCatalog

    search = config.search
    return SearchEngine(
        DjangoCatalog(),
        DjangoBookings(),
        CelerySearchAnalytics(),
        gateway=PortGateway(
            timeout=search.port_timeout,
            executor=concurrent.futures.ThreadPoolExecutor(
                max_workers=search.max_workers, thread_name_prefix="spaces-port"
            ),
        ),
        window_days=search.window_days,
        suggestion_limit=search.suggestion_limit,
        autocomplete_limit=search.autocomplete_limit,
        fuzzy_ratio=search.fuzzy_ratio,
        request_timeout=search.request_timeout,
    )


__all__ = [
    # Query parser
    "space_query_parser",
    "SpaceQueryParser",
    "parse_query",
    "EXTRACTION_ORDER",
    "ParsedFilter",
    "Budget",
    "AssetType",
    "State",
    "CancellationToken",
    # Availability
    "AvailabilityEngine",
    "SpaceAvailability",
    "overlaps",
    # Resolution and ranking
    "CandidateResolver",
    "Resolution",
    "RelevanceScorer",
    "MatchScore",
    "SuggestionResolver",
    "Suggestion",
    # Engine
    "SearchEngine",
    "SearchResult",
    "PortGateway",
    "get_search_engine",
]
