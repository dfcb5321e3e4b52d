"""
Suggestion Resolver

Typo-tolerant centre lookup for typeahead and for "did you mean" when a
search finds no centre.

Ranking: exact case-insensitive substring hits on name, suburb or city
first (alphabetical), then fuzzy hits within
``int(len(phrase) * FUZZY_DISTANCE_RATIO)`` edits (by distance, then
alphabetical). "Nearby" centres in the named state or area fill any
remaining suggestion slots.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from core.exceptions import CatalogUnavailableError, SearchCancelled

from . import vocabulary
from .domain import CancellationToken, Centre
from .fuzzy_matcher import best_field_distance, max_distance_for, rank_by_distance
from .ports import CatalogPort, PortGateway

logger = logging.getLogger(__name__)

FUZZY_DISTANCE_RATIO = 0.3
MIN_AUTOCOMPLETE_LENGTH = 2
DEFAULT_SUGGESTION_LIMIT = 5
DEFAULT_AUTOCOMPLETE_LIMIT = 8

EXACT = "exact"
SIMILAR_NAME = "similar_name"
NEARBY = "nearby"


@dataclass(frozen=True)
class Suggestion:
    centre_id: int
    centre_name: str
    reason: str
    kind: str = SIMILAR_NAME
    distance: int = 0

    def to_dict(self) -> dict:
        return {
            "centre_id": self.centre_id,
            "centre_name": self.centre_name,
            "reason": self.reason,
            "kind": self.kind,
            "distance": self.distance,
        }


def _is_exact(phrase: str, centre: Centre) -> bool:
    needle = phrase.lower()
    return any(value and needle in value.lower() for value in (centre.name, centre.suburb, centre.city))


class SuggestionResolver:
    """
    Usage:
        resolver = SuggestionResolver(catalog)
        resolver.autocomplete("highlnd")      # → [Centre(name="Highlands Marketplace", ...)]
        resolver.suggest("eastgte")           # → [Suggestion(reason='Did you mean "Eastgate"?')]
    """

    def __init__(
        self,
        catalog: CatalogPort,
        gateway: Optional[PortGateway] = None,
        distance_ratio: float = FUZZY_DISTANCE_RATIO,
    ):
        self.catalog = catalog
        self.gateway = gateway or PortGateway()
        self.distance_ratio = distance_ratio

    # ─── Public API ──────────────────────────────────────────────

    def rank(self, phrase: str, centres: List[Centre]) -> List[Tuple[str, int, Centre]]:
        """``(kind, distance, centre)`` for every centre that matches at all."""
        phrase = " ".join(phrase.split())
        if not phrase:
            return []

        exact = sorted((c for c in centres if _is_exact(phrase, c)), key=lambda c: c.name.lower())
        exact_ids = {c.id for c in exact}
        ranked = [(EXACT, 0, c) for c in exact]

        max_distance = max_distance_for(phrase, self.distance_ratio)
        if max_distance < 1:
            return ranked

        fuzzy = []
        for centre in centres:
            if centre.id in exact_ids:
                continue
            distance = best_field_distance(phrase, (centre.name, centre.suburb, centre.city), max_distance)
            if distance is not None:
                fuzzy.append((distance, centre.name, (SIMILAR_NAME, distance, centre)))
        ranked.extend(rank_by_distance(fuzzy))
        return ranked

    def autocomplete(
        self,
        partial: str,
        limit: int = DEFAULT_AUTOCOMPLETE_LIMIT,
        token: Optional[CancellationToken] = None,
    ) -> List[Centre]:
        """Centres for typeahead. Under two characters returns [] untouched."""
        partial = (partial or "").strip()
        if len(partial) < MIN_AUTOCOMPLETE_LENGTH:
            return []
        centres = self._all_centres(token)
        return [centre for _, _, centre in self.rank(partial, centres)[:limit]]

    def suggest(
        self,
        phrase: str,
        limit: int = DEFAULT_SUGGESTION_LIMIT,
        token: Optional[CancellationToken] = None,
    ) -> List[Suggestion]:
        """"Did you mean" centres, then nearby centres, deduplicated by id."""
        phrase = (phrase or "").strip()
        if not phrase:
            return []

        centres = self._all_centres(token)
        suggestions: List[Suggestion] = []
        seen = set()

        for kind, distance, centre in self.rank(phrase, centres):
            if len(suggestions) >= limit:
                break
            suggestions.append(Suggestion(
                centre_id=centre.id,
                centre_name=centre.name,
                reason=f'Did you mean "{centre.name}"?',
                kind=kind,
                distance=distance,
            ))
            seen.add(centre.id)

        for centre in self._nearby(phrase, centres):
            if len(suggestions) >= limit:
                break
            if centre.id in seen:
                continue
            place = centre.suburb or centre.city or (centre.state.label if centre.state else "")
            suggestions.append(Suggestion(
                centre_id=centre.id,
                centre_name=centre.name,
                reason=f'Try "{centre.name}" in {place}' if place else f'Try "{centre.name}"',
                kind=NEARBY,
            ))
            seen.add(centre.id)

        logger.debug(f"{len(suggestions)} suggestions for {phrase!r}")
        return suggestions

    # ─── Helpers ─────────────────────────────────────────────────

    def _nearby(self, phrase: str, centres: List[Centre]) -> List[Centre]:
        """Centres inside a state or area named anywhere in the phrase."""
        words = phrase.lower().split()
        states = set()
        for size in (3, 2, 1):
            for i in range(len(words) - size + 1):
                chunk = " ".join(words[i:i + size])
                code = vocabulary.get_state_code(chunk)
                if code:
                    states.add(code)
                states |= vocabulary.area_states(chunk)
        if not states:
            return []
        nearby = [c for c in centres if c.state is not None and c.state.value in states]
        return sorted(nearby, key=lambda c: c.name.lower())

    def _all_centres(self, token: Optional[CancellationToken]) -> List[Centre]:
        try:
            return self.gateway.call(self.catalog.list_all_centres, token=token, port="catalog")
        except (SearchCancelled, CatalogUnavailableError):
            raise
        except Exception as e:
            logger.warning(f"Centre list unavailable for suggestions: {e}")
            raise CatalogUnavailableError(f"Centre lookup failed: {e}") from e
