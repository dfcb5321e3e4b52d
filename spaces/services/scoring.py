"""
Relevance Scorer

Scores a candidate space 0-100 against a parsed search. Five integer
sub-scores with fixed weights, each contributing one human-readable reason:

    category 30 · location 25 · availability 20 · price 15 · size 10

A constraint the customer did not state never costs points. A missing space
attribute scores 0 for that factor only.
"""

import math
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from . import vocabulary
from .availability import SpaceAvailability
from .domain import (
    CategoryPolicy,
    Centre,
    ParsedFilter,
    Space,
    natural_identifier_key,
)

logger = logging.getLogger(__name__)

CATEGORY_WEIGHT = 30
LOCATION_WEIGHT = 25
AVAILABILITY_WEIGHT = 20
PRICE_WEIGHT = 15
SIZE_WEIGHT = 10

# Same state as requested, but a different centre or area
SAME_STATE_LOCATION_SCORE = 12
# Availability data missing: neither reward nor punish
NEUTRAL_AVAILABILITY_SCORE = 10
# Price credit reaches 0 at this fraction over budget
PRICE_FALLOFF = 0.5

BEST_MATCH_THRESHOLD = 70
GOOD_MATCH_THRESHOLD = 40


def bucket_for(total: int) -> str:
    if total >= BEST_MATCH_THRESHOLD:
        return "best_match"
    if total >= GOOD_MATCH_THRESHOLD:
        return "good_match"
    return "other"


@dataclass
class MatchScore:
    space_id: str
    category_match: int = 0
    location_match: int = 0
    availability: int = 0
    price_match: int = 0
    size_match: int = 0
    reasons: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            self.category_match
            + self.location_match
            + self.availability
            + self.price_match
            + self.size_match
        )

    @property
    def bucket(self) -> str:
        return bucket_for(self.total)

    def to_dict(self) -> dict:
        return {
            "space_id": self.space_id,
            "total": self.total,
            "category_match": self.category_match,
            "location_match": self.location_match,
            "availability": self.availability,
            "price_match": self.price_match,
            "size_match": self.size_match,
            "reasons": list(self.reasons),
            "bucket": self.bucket,
        }


def _words(*values: Optional[str]) -> set:
    words = set()
    for value in values:
        if value:
            words.update(w for w in value.lower().split() if len(w) >= 3)
    return words - vocabulary.CONNECTOR_WORDS


def phrase_matches_centre(phrase: str, centre: Centre) -> bool:
    """Substring either way, shared words, or an area alias covering the centre."""
    phrase_lower = " ".join(phrase.lower().split())
    if not phrase_lower:
        return False
    for value in (centre.name, centre.suburb, centre.city):
        if not value:
            continue
        value_lower = value.lower()
        if phrase_lower in value_lower or value_lower in phrase_lower:
            return True
    if _words(phrase) & _words(centre.name, centre.suburb, centre.city):
        return True
    return vocabulary.area_matches_centre(phrase, centre.suburb, centre.city)


class RelevanceScorer:
    """
    Usage:
        scorer = RelevanceScorer()
        score = scorer.score(parsed, space, calendar, centre=centre, policy=policy, window_days=14)
        score.total, score.bucket, score.reasons
    """

    def score(
        self,
        parsed: ParsedFilter,
        space: Space,
        availability: Optional[SpaceAvailability],
        *,
        centre: Optional[Centre] = None,
        policy: Optional[CategoryPolicy] = None,
        window_days: int = 1,
    ) -> MatchScore:
        result = MatchScore(space_id=space.id)

        for attr, (points, reason) in (
            ("category_match", self._category(parsed, policy)),
            ("location_match", self._location(parsed, centre)),
            ("availability", self._availability(availability)),
            ("price_match", self._price(parsed, space, window_days)),
            ("size_match", self._size(parsed, space)),
        ):
            setattr(result, attr, points)
            result.reasons.append(reason)

        return result

    def score_all(
        self,
        parsed: ParsedFilter,
        spaces: List[Space],
        availability: Optional[Dict[str, SpaceAvailability]],
        *,
        centres: Dict[int, Centre],
        policies: Dict[str, CategoryPolicy],
        window_days: int,
    ) -> Dict[str, MatchScore]:
        scores = {}
        for space in spaces:
            scores[space.id] = self.score(
                parsed,
                space,
                (availability or {}).get(space.id),
                centre=centres.get(space.centre_id),
                policy=policies.get(space.id),
                window_days=window_days,
            )
        return scores

    @staticmethod
    def rank(spaces: List[Space], scores: Dict[str, MatchScore]) -> List[Space]:
        """Highest total first; ties in natural site-number order."""
        def key(space: Space):
            score = scores.get(space.id)
            return (-(score.total if score else 0), natural_identifier_key(space.identifier))
        return sorted(spaces, key=key)

    # ─── Sub-scores ──────────────────────────────────────────────

    def _category(self, parsed: ParsedFilter, policy: Optional[CategoryPolicy]) -> Tuple[int, str]:
        category = parsed.product_category
        if category is None:
            return CATEGORY_WEIGHT, "Any category welcome"
        label = vocabulary.get_category_label(category)
        if policy is None:
            return 0, f"Category approvals unknown for {label}"
        if policy.allows(category):
            return CATEGORY_WEIGHT, f"Accepts {label} category"
        return 0, f"Does not accept {label}"

    def _location(self, parsed: ParsedFilter, centre: Optional[Centre]) -> Tuple[int, str]:
        phrase = parsed.centre_name_phrase
        state = parsed.state_filter
        if not phrase and state is None:
            return LOCATION_WEIGHT, "Any location"
        if centre is None:
            return 0, "Centre details unavailable"
        if state is not None and centre.state != state:
            return 0, f"Not in {state.label}"

        if not phrase:
            return LOCATION_WEIGHT, f"In {state.label}"
        if phrase_matches_centre(phrase, centre):
            return LOCATION_WEIGHT, f"Matches {centre.name}"

        requested_states = set(vocabulary.area_states(phrase))
        if state is not None:
            requested_states.add(state.value)
        if centre.state is not None and centre.state.value in requested_states:
            return SAME_STATE_LOCATION_SCORE, f"Same state, different area ({centre.name})"
        return 0, "Outside your requested area"

    def _availability(self, availability: Optional[SpaceAvailability]) -> Tuple[int, str]:
        if availability is None:
            return NEUTRAL_AVAILABILITY_SCORE, "Availability unknown"
        if availability.requested_date_free:
            return AVAILABILITY_WEIGHT, "Available on your requested date"
        free_days = len(availability.days) - len(availability.booked_dates)
        points = round(AVAILABILITY_WEIGHT * availability.fraction_free)
        return points, f"Booked on your requested date; free {free_days} of {len(availability.days)} days"

    def _price(self, parsed: ParsedFilter, space: Space, window_days: int) -> Tuple[int, str]:
        if not parsed.has_budget:
            return PRICE_WEIGHT, "No budget set"
        budget = parsed.budget

        if budget.max_per_day is not None:
            price, limit, period = space.price_per_day, budget.max_per_day, "per day"
        elif budget.max_per_week is not None:
            price, limit, period = space.weekly_price, budget.max_per_week, "per week"
        else:
            daily = space.price_per_day
            if daily is None and space.price_per_week is not None:
                daily = space.price_per_week / 7
            price = daily * max(window_days, 1) if daily is not None else None
            limit, period = budget.max_total, "in total"

        if price is None:
            return 0, "Price not listed"
        if price <= limit:
            return PRICE_WEIGHT, f"Within your budget ${limit:,.0f} {period}"
        if limit <= 0:
            return 0, f"Over your budget {period}"

        over = (price - limit) / limit
        points = max(0, math.floor(PRICE_WEIGHT * (1 - over / PRICE_FALLOFF)))
        return points, f"{round(over * 100)}% over your budget {period}"

    def _size(self, parsed: ParsedFilter, space: Space) -> Tuple[int, str]:
        requested = parsed.min_size_m2
        if requested is None:
            if parsed.min_tables is None:
                return SIZE_WEIGHT, "Any size"
            if space.max_tables is None:
                return 0, "Table capacity not listed"
            if space.max_tables >= parsed.min_tables:
                return SIZE_WEIGHT, f"Fits {parsed.min_tables} tables"
            return 0, f"Fits only {space.max_tables} tables"

        size = space.size_m2
        if size is None:
            return 0, "Size not listed"
        upper = parsed.max_size_m2 if parsed.max_size_m2 is not None else requested
        if requested <= size <= upper:
            if size == requested:
                return SIZE_WEIGHT, f"Perfect size ({size:g}m²)"
            return SIZE_WEIGHT, f"Within your size range ({size:g}m²)"
        if size > upper:
            points = max(1, min(SIZE_WEIGHT - 1, round(SIZE_WEIGHT * requested / size)))
            return points, f"Larger than requested ({size:g}m²)"
        return 0, f"Smaller than requested ({size:g}m²)"
