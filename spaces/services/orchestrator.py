"""
Search Engine

Coordinates one space search end to end:

    parse → (LLM gap fill) → gather candidates
          → availability ∥ category approvals → narrow → score → rank

Zero centres is not an error: the result carries "did you mean" suggestions
instead. Availability failures degrade to a neutral sub-score and a flag.
Cancellation returns whatever was gathered, flagged ``cancelled``. Every
search is reported to analytics without waiting for it.
"""

import time
import concurrent.futures
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Set

from core.exceptions import AvailabilityUnavailable, SearchCancelled
from core.services.base import BaseService

from .availability import AvailabilityEngine, SpaceAvailability
from .candidate_resolver import Candidates, CandidateResolver
from .domain import (
    AssetType,
    CancellationToken,
    Centre,
    ParsedFilter,
    SearchEvent,
    Space,
)
from .intent_parser import merge_llm_intent, parse_intent_with_llm, should_use_llm
from .ports import AnalyticsPort, BookingPort, CatalogPort, PortGateway
from .query_parser import parse_query
from .scoring import MatchScore, RelevanceScorer
from .suggestions import (
    DEFAULT_AUTOCOMPLETE_LIMIT,
    DEFAULT_SUGGESTION_LIMIT,
    FUZZY_DISTANCE_RATIO,
    Suggestion,
    SuggestionResolver,
)

# Default availability window: two weekly windows
AVAILABILITY_WINDOW_DAYS = 14

_ANALYTICS_EXECUTOR = concurrent.futures.ThreadPoolExecutor(
    max_workers=2, thread_name_prefix="spaces-analytics"
)


@dataclass
class SearchResult:
    """Everything a search produced, including how it degraded."""
    query: str
    parsed: ParsedFilter
    window_start: date
    window_end: date
    parser_used: str = "rules"
    asset_type: AssetType = AssetType.CASUAL_LEASING
    centres: List[Centre] = field(default_factory=list)
    spaces: List[Space] = field(default_factory=list)
    matched_space_ids: Set[str] = field(default_factory=set)
    availability: Dict[str, SpaceAvailability] = field(default_factory=dict)
    scores: Dict[str, MatchScore] = field(default_factory=dict)
    size_not_available: bool = False
    closest_match: Optional[Space] = None
    category_not_available: bool = False
    suggestions: List[Suggestion] = field(default_factory=list)
    availability_degraded: bool = False
    cancelled: bool = False
    budget_filter_applied: bool = False
    resolved_by: str = "none"
    search_time_ms: int = 0

    @property
    def window_days(self) -> int:
        return (self.window_end - self.window_start).days + 1

    @property
    def top_score(self) -> Optional[int]:
        if not self.spaces or not self.scores:
            return None
        top = self.scores.get(self.spaces[0].id)
        return top.total if top else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "parsed": self.parsed.to_dict(),
            "parser_used": self.parser_used,
            "asset_type": self.asset_type.value,
            "window": {
                "start": self.window_start.isoformat(),
                "end": self.window_end.isoformat(),
            },
            "centres": [c.to_dict() for c in self.centres],
            "spaces": [s.to_dict() for s in self.spaces],
            "matched_space_ids": sorted(self.matched_space_ids),
            "availability": {sid: a.to_dict() for sid, a in self.availability.items()},
            "scores": {sid: s.to_dict() for sid, s in self.scores.items()},
            "size_not_available": self.size_not_available,
            "closest_match": self.closest_match.to_dict() if self.closest_match else None,
            "category_not_available": self.category_not_available,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "availability_degraded": self.availability_degraded,
            "cancelled": self.cancelled,
            "budget_filter_applied": self.budget_filter_applied,
            "resolved_by": self.resolved_by,
            "search_time_ms": self.search_time_ms,
        }


class SearchEngine(BaseService):
    """
    The produced search interface.

    Usage:
        engine = SearchEngine(catalog, bookings, analytics)
        result = engine.search("Eastgate fashion 20sqm next Monday")
        engine.autocomplete("highlnd")
    """

    def __init__(
        self,
        catalog: CatalogPort,
        bookings: BookingPort,
        analytics: Optional[AnalyticsPort] = None,
        *,
        gateway: Optional[PortGateway] = None,
        window_days: int = AVAILABILITY_WINDOW_DAYS,
        suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT,
        autocomplete_limit: int = DEFAULT_AUTOCOMPLETE_LIMIT,
        fuzzy_ratio: float = FUZZY_DISTANCE_RATIO,
        request_timeout: Optional[float] = None,
        analytics_executor: Optional[concurrent.futures.Executor] = None,
    ):
        self.gateway = gateway or PortGateway()
        self.resolver = CandidateResolver(catalog, self.gateway)
        self.availability_engine = AvailabilityEngine(bookings, self.gateway)
        self.scorer = RelevanceScorer()
        self.suggestions = SuggestionResolver(catalog, self.gateway, distance_ratio=fuzzy_ratio)
        self.analytics = analytics
        self.window_days = window_days
        self.suggestion_limit = suggestion_limit
        self.autocomplete_limit = autocomplete_limit
        self.request_timeout = request_timeout
        self._analytics_executor = analytics_executor or _ANALYTICS_EXECUTOR

    # ─── Public API ──────────────────────────────────────────────

    def search(
        self,
        query: str,
        search_date: Optional[date] = None,
        token: Optional[CancellationToken] = None,
    ) -> SearchResult:
        """
        Search spaces for a free-text query.

        Raises:
            CatalogUnavailableError: the catalog itself is down
        """
        started = time.monotonic()
        today = search_date or date.today()
        token = token or CancellationToken(timeout=self.request_timeout)
        request_id = self.generate_request_id()

        parsed, parser_used = self._parse(query, today)
        window_start = parsed.date_start or today
        window_end = parsed.date_end or window_start + timedelta(days=self.window_days - 1)
        if window_end < window_start:
            window_end = window_start

        result = SearchResult(
            query=parsed.original,
            parsed=parsed,
            window_start=window_start,
            window_end=window_end,
            parser_used=parser_used,
            asset_type=parsed.asset_type or AssetType.CASUAL_LEASING,
        )

        try:
            candidates = self.resolver.gather(parsed, token=token)
            result.centres = candidates.centres
            result.spaces = candidates.spaces
            result.resolved_by = candidates.resolved_by

            if not candidates.centres:
                phrase = parsed.centre_name_phrase or parsed.original
                result.suggestions = self.suggestions.suggest(phrase, self.suggestion_limit, token=token)
                self.logger.info(
                    f"[{request_id}] No centres for {parsed.original!r}; "
                    f"{len(result.suggestions)} suggestions"
                )
            else:
                self._score(result, candidates, token)
        except SearchCancelled:
            result.cancelled = True
            result.scores = {}
            self.logger.warning(f"[{request_id}] Search cancelled for {parsed.original!r}; returning partial result")

        result.search_time_ms = self.elapsed_ms(started)
        self.logger.info(
            f"[{request_id}] Search {parsed.original!r}: {len(result.centres)} centres, "
            f"{len(result.spaces)} spaces, resolved_by={result.resolved_by}, "
            f"degraded={result.availability_degraded}, {result.search_time_ms}ms"
        )
        self._record(result, today)
        return result

    def autocomplete(
        self,
        partial: str,
        limit: Optional[int] = None,
        token: Optional[CancellationToken] = None,
    ) -> List[Centre]:
        return self.suggestions.autocomplete(partial, limit or self.autocomplete_limit, token=token)

    def switch_view(
        self,
        result: SearchResult,
        asset_type: AssetType,
        token: Optional[CancellationToken] = None,
    ) -> SearchResult:
        """Re-run scoring for another asset type over the same centres."""
        if asset_type == result.asset_type:
            return result

        started = time.monotonic()
        token = token or CancellationToken(timeout=self.request_timeout)
        switched = SearchResult(
            query=result.query,
            parsed=result.parsed,
            window_start=result.window_start,
            window_end=result.window_end,
            parser_used=result.parser_used,
            asset_type=asset_type,
            centres=result.centres,
            resolved_by=result.resolved_by,
        )
        try:
            candidates = self.resolver.gather_for_centres(
                result.centres, asset_type, result.parsed, result.resolved_by, token=token
            )
            switched.spaces = candidates.spaces
            self._score(switched, candidates, token)
        except SearchCancelled:
            switched.cancelled = True
            switched.scores = {}
        switched.search_time_ms = self.elapsed_ms(started)
        return switched

    # ─── Pipeline steps ──────────────────────────────────────────

    def _parse(self, query: str, today: date):
        parsed = parse_query(query, today=today)
        if should_use_llm(parsed):
            merged = merge_llm_intent(parsed, parse_intent_with_llm(parsed.original))
            if merged != parsed:
                return merged, "llm"
        return parsed, "rules"

    def _score(self, result: SearchResult, candidates: Candidates, token: CancellationToken) -> None:
        """Fan out availability and approvals, join, narrow, score and rank."""
        parsed = result.parsed
        space_ids = [s.id for s in candidates.spaces]

        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
            availability_future = executor.submit(
                self.availability_engine.availability,
                space_ids, result.window_start, result.window_end, token,
            )
            policies_future = executor.submit(self.resolver.fetch_policies, candidates.spaces, token)

            policies = policies_future.result()
            try:
                availability = availability_future.result()
            except AvailabilityUnavailable as e:
                self.logger.warning(f"Availability degraded for {len(space_ids)} spaces: {e.message}")
                availability = None
                result.availability_degraded = True

        resolution = self.resolver.narrow(parsed, candidates, policies)
        result.spaces = resolution.spaces
        result.matched_space_ids = resolution.matched_space_ids
        result.size_not_available = resolution.size_not_available
        result.closest_match = resolution.closest_match
        result.category_not_available = resolution.category_not_available

        if token.cancelled:
            raise SearchCancelled()

        scores = self.scorer.score_all(
            parsed,
            resolution.spaces,
            availability,
            centres=resolution.centres_by_id,
            policies=resolution.policies,
            window_days=result.window_days,
        )
        ranked = self.scorer.rank(resolution.spaces, scores)

        if parsed.has_budget:
            affordable = [s for s in ranked if scores[s.id].price_match > 0]
            if affordable and len(affordable) < len(ranked):
                self.logger.info(f"Budget filter dropped {len(ranked) - len(affordable)} spaces")
                ranked = affordable
                result.budget_filter_applied = True

        kept = {s.id for s in ranked}
        result.spaces = ranked
        result.scores = {sid: score for sid, score in scores.items() if sid in kept}
        result.matched_space_ids = result.matched_space_ids & kept
        if availability is not None:
            result.availability = {sid: a for sid, a in availability.items() if sid in kept}

    # ─── Analytics ───────────────────────────────────────────────

    def _record(self, result: SearchResult, today: date) -> None:
        """Hand the search to analytics without waiting; failures are only logged."""
        if self.analytics is None:
            return
        event = SearchEvent(
            query=result.query,
            parsed_centre_name=result.parsed.centre_name_phrase,
            min_size_m2=result.parsed.min_size_m2,
            product_category=result.parsed.product_category,
            results_count=len(result.spaces),
            suggestions_shown=len(result.suggestions),
            search_date=today,
            parser_used=result.parser_used,
            top_result_score=result.top_score,
            parsed_intent=result.parsed.to_dict(),
        )
        try:
            self._analytics_executor.submit(self._deliver, event)
        except RuntimeError as e:
            self.logger.warning(f"Analytics executor unavailable: {e}")

    def _deliver(self, event: SearchEvent) -> None:
        try:
            self.analytics.record_search(event)
        except Exception as e:
            self.logger.warning(f"Failed to record search analytics for {event.query!r}: {e}")
