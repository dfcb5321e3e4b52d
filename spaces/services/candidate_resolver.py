"""
Candidate Resolver

Selects the centres and spaces a parsed search is about, then narrows them
by category approval, size and table constraints.

Split into three steps so the search engine can overlap the slow parts:

    gather(parsed)            centres + raw spaces          (catalog)
    fetch_policies(spaces)    category approvals per space  (catalog, fan-out)
    narrow(parsed, ...)       strict filters and fallbacks  (pure)

``resolve`` runs the three in sequence.
"""

import re
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, FrozenSet, List, Optional, Set, Tuple, TypeVar

from core.exceptions import CatalogUnavailableError, SearchCancelled

from . import vocabulary
from .domain import (
    AssetType,
    CancellationToken,
    CategoryPolicy,
    Centre,
    ParsedFilter,
    Space,
    ThirdLineAsset,
    is_free_only,
    natural_identifier_key,
)
from .ports import CatalogPort, PortGateway

logger = logging.getLogger(__name__)

T = TypeVar("T")

# A space "fits" a requested size up to this fraction larger
SIZE_FIT_TOLERANCE = 0.10

SITE_NUMBER_PATTERN = re.compile(r"\b(?:site|shop|tenancy)\s*#?\s*\d+[a-z]?\b|#\s*\d+[a-z]?\b", re.IGNORECASE)

_WORD_PATTERN = re.compile(r"[a-z0-9]+")


@dataclass
class Candidates:
    """Output of ``gather``: everything before approvals are known."""
    centres: List[Centre] = field(default_factory=list)
    spaces: List[Space] = field(default_factory=list)
    description_hits: Set[str] = field(default_factory=set)
    resolved_by: str = "none"
    asset_type: AssetType = AssetType.CASUAL_LEASING
    free_categories: FrozenSet[str] = vocabulary.FREE_CATEGORIES


@dataclass
class Resolution:
    centres: List[Centre] = field(default_factory=list)
    spaces: List[Space] = field(default_factory=list)
    matched_space_ids: Set[str] = field(default_factory=set)
    size_not_available: bool = False
    closest_match: Optional[Space] = None
    category_not_available: bool = False
    policies: Dict[str, CategoryPolicy] = field(default_factory=dict)
    resolved_by: str = "none"
    asset_type: AssetType = AssetType.CASUAL_LEASING

    @property
    def centres_by_id(self) -> Dict[int, Centre]:
        return {c.id: c for c in self.centres}

    def to_dict(self) -> dict:
        return {
            "centres": [c.to_dict() for c in self.centres],
            "spaces": [s.to_dict() for s in self.spaces],
            "matched_space_ids": sorted(self.matched_space_ids),
            "size_not_available": self.size_not_available,
            "closest_match": self.closest_match.to_dict() if self.closest_match else None,
            "category_not_available": self.category_not_available,
            "resolved_by": self.resolved_by,
            "asset_type": self.asset_type.value,
        }


def meets_size(space: Space, parsed: ParsedFilter) -> bool:
    """Close fit on area (range or tolerance) and enough trestle tables."""
    if parsed.min_size_m2 is not None:
        if space.size_m2 is None:
            return False
        upper = parsed.max_size_m2
        if upper is None:
            upper = parsed.min_size_m2 * (1 + SIZE_FIT_TOLERANCE)
        if not parsed.min_size_m2 <= space.size_m2 <= upper:
            return False
    if parsed.min_tables is not None:
        if space.max_tables is None or space.max_tables < parsed.min_tables:
            return False
    return True


def closest_larger(spaces: List[Space], min_size_m2: Optional[float]) -> Optional[Space]:
    """Smallest space at least ``min_size_m2``; ties in natural site order."""
    if min_size_m2 is None:
        return None
    larger = [s for s in spaces if s.size_m2 is not None and s.size_m2 >= min_size_m2]
    if not larger:
        return None
    return min(larger, key=lambda s: (s.size_m2 - min_size_m2, natural_identifier_key(s.identifier)))


def third_line_matches(space: Space, category: Optional[str]) -> bool:
    if not category:
        return True
    if not isinstance(space, ThirdLineAsset):
        return False
    name = space.category_name.lower()
    label = vocabulary.THIRD_LINE_CATEGORIES.get(category, category).lower()
    return category.replace("_", " ") in name or label in name


def _words(text: Optional[str]) -> Set[str]:
    return set(_WORD_PATTERN.findall((text or "").lower()))


class CandidateResolver:
    """
    Usage:
        resolver = CandidateResolver(catalog, PortGateway(timeout=2.0))
        resolution = resolver.resolve(parsed, token=token)
    """

    def __init__(self, catalog: CatalogPort, gateway: Optional[PortGateway] = None):
        self.catalog = catalog
        self.gateway = gateway or PortGateway()

    # ─── Public API ──────────────────────────────────────────────

    def resolve(self, parsed: ParsedFilter, token: Optional[CancellationToken] = None) -> Resolution:
        candidates = self.gather(parsed, token=token)
        policies = self.fetch_policies(candidates.spaces, token=token)
        return self.narrow(parsed, candidates, policies)

    def gather(self, parsed: ParsedFilter, token: Optional[CancellationToken] = None) -> Candidates:
        """
        Raises:
            CatalogUnavailableError: the catalog failed or timed out
            SearchCancelled: the request was cancelled
        """
        asset_type = parsed.asset_type or AssetType.CASUAL_LEASING

        if not parsed.centre_name_phrase and not parsed.typed_fields():
            return Candidates(resolved_by="empty_query", asset_type=asset_type)

        if asset_type != AssetType.CASUAL_LEASING:
            centres, resolved_by = self._derive_centres(parsed, token)
            return self.gather_for_centres(centres, asset_type, parsed, resolved_by, token=token)

        candidates = self._from_description(parsed, token)
        if candidates is None:
            centres, resolved_by = self._derive_centres(parsed, token)
            spaces = self._spaces_for(centres, asset_type, token)
            candidates = Candidates(centres, spaces, set(), resolved_by, asset_type)
        return self._with_free_categories(candidates, token)

    def fetch_policies(
        self, spaces: List[Space], token: Optional[CancellationToken] = None
    ) -> Dict[str, CategoryPolicy]:
        """Category approvals for every space, looked up concurrently."""
        if not spaces:
            return {}
        ids = [s.id for s in spaces]
        policies = self._catalog_map(self.catalog.approved_category_ids, ids, token)
        return dict(zip(ids, policies))

    def narrow(
        self,
        parsed: ParsedFilter,
        candidates: Candidates,
        policies: Dict[str, CategoryPolicy],
    ) -> Resolution:
        """Apply approval, category and size constraints to gathered spaces."""
        spaces = list(candidates.spaces)
        category = parsed.product_category
        satisfied_constraint = False
        category_not_available = False
        size_not_available = False
        closest = None

        free = candidates.free_categories
        if category not in free:
            spaces = [s for s in spaces if not is_free_only(policies.get(s.id), free)]

        if category is not None and spaces:
            allowed = [s for s in spaces if policies.get(s.id) is not None and policies[s.id].allows(category)]
            if allowed:
                spaces = allowed
                satisfied_constraint = True
            else:
                category_not_available = True
                logger.info(f"No space accepts category {category!r}; returning all {len(spaces)} candidates")

        if parsed.has_size_constraint and spaces:
            fitting = [s for s in spaces if meets_size(s, parsed)]
            if fitting:
                spaces = fitting
                satisfied_constraint = True
            else:
                size_not_available = True
                closest = closest_larger(spaces, parsed.min_size_m2)

        returned = {s.id for s in spaces}
        matched = candidates.description_hits & returned
        if satisfied_constraint:
            matched |= returned

        return Resolution(
            centres=candidates.centres,
            spaces=spaces,
            matched_space_ids=matched,
            size_not_available=size_not_available,
            closest_match=closest,
            category_not_available=category_not_available,
            policies={sid: p for sid, p in policies.items() if sid in returned},
            resolved_by=candidates.resolved_by,
            asset_type=candidates.asset_type,
        )

    def switch_view(
        self,
        resolution: Resolution,
        asset_type: AssetType,
        parsed: ParsedFilter,
        token: Optional[CancellationToken] = None,
    ) -> Resolution:
        """Load another asset type for the centres already resolved."""
        if asset_type == resolution.asset_type:
            return resolution
        candidates = self.gather_for_centres(
            resolution.centres, asset_type, parsed, resolution.resolved_by, token=token
        )
        policies = self.fetch_policies(candidates.spaces, token=token)
        return self.narrow(replace(parsed, asset_type=asset_type), candidates, policies)

    def gather_for_centres(
        self,
        centres: List[Centre],
        asset_type: AssetType,
        parsed: ParsedFilter,
        resolved_by: str = "centre_name",
        token: Optional[CancellationToken] = None,
    ) -> Candidates:
        """Spaces of one asset type across already known centres."""
        spaces = self._spaces_for(centres, asset_type, token)
        if asset_type == AssetType.THIRD_LINE and parsed.third_line_category:
            spaces = [s for s in spaces if third_line_matches(s, parsed.third_line_category)]
        candidates = Candidates(list(centres), spaces, set(), resolved_by, asset_type)
        return self._with_free_categories(candidates, token)

    # ─── Centre derivation ───────────────────────────────────────

    def _derive_centres(
        self, parsed: ParsedFilter, token: Optional[CancellationToken]
    ) -> Tuple[List[Centre], str]:
        phrase = parsed.centre_name_phrase
        state = parsed.state_filter

        if phrase:
            centres = self._catalog_call(self.catalog.list_centres_by_name, phrase, state, token=token)
            if centres:
                return centres, "centre_name"

            area_states = vocabulary.area_states(phrase)
            if area_states:
                everywhere = self._catalog_call(self.catalog.list_centres_by_name, "", state, token=token)
                in_area = [c for c in everywhere if vocabulary.area_matches_centre(phrase, c.suburb, c.city)]
                if in_area:
                    return in_area, "area"
                in_states = [c for c in everywhere if c.state is not None and c.state.value in area_states]
                if in_states:
                    return in_states, "area_state"
            return [], "none"

        if state is not None:
            return self._catalog_call(self.catalog.list_centres_by_name, "", state, token=token), "state"
        return self._catalog_call(self.catalog.list_all_centres, token=token), "all_centres"

    def _from_description(
        self, parsed: ParsedFilter, token: Optional[CancellationToken]
    ) -> Optional[Candidates]:
        """
        Spaces whose description or site number match the whole query.
        None when the query carries no site-specific signal.
        """
        if not parsed.original:
            return None

        hits = self._catalog_call(
            self.catalog.search_spaces_by_text,
            parsed.original, parsed.product_category, parsed.state_filter,
            token=token,
        )
        hits = [h for h in hits if h.asset_type == AssetType.CASUAL_LEASING]

        if hits and parsed.product_category:
            policies = self.fetch_policies(hits, token=token)
            hits = [
                h for h in hits
                if policies.get(h.id) is not None and policies[h.id].allows(parsed.product_category)
            ]
        if not hits:
            return None

        centre_ids = sorted({h.centre_id for h in hits})
        centres = self._catalog_call(self.catalog.get_centres, centre_ids, token=token)

        explained = set()
        for centre in centres:
            explained |= _words(centre.name) | _words(centre.suburb) | _words(centre.city)
        description_terms = {
            w for w in _words(parsed.centre_name_phrase)
            if len(w) >= 3 and w not in vocabulary.CONNECTOR_WORDS
        } - explained

        site_number = bool(SITE_NUMBER_PATTERN.search(parsed.original))
        if not (parsed.has_constraints or site_number or description_terms):
            return None

        spaces = self._spaces_for(centres, AssetType.CASUAL_LEASING, token)
        known = {s.id for s in spaces}
        spaces.extend(h for h in hits if h.id not in known)
        logger.debug(f"Description search matched {len(hits)} spaces in {len(centres)} centres")
        return Candidates(
            centres=centres,
            spaces=spaces,
            description_hits={h.id for h in hits},
            resolved_by="description",
            asset_type=AssetType.CASUAL_LEASING,
        )

    # ─── Catalog access ──────────────────────────────────────────

    def _with_free_categories(
        self, candidates: Candidates, token: Optional[CancellationToken]
    ) -> Candidates:
        """Only casual leasing sites carry category approvals."""
        if candidates.asset_type != AssetType.CASUAL_LEASING or not candidates.spaces:
            return candidates
        free = self._catalog_call(self.catalog.free_category_ids, token=token)
        return replace(candidates, free_categories=frozenset(free))

    def _spaces_for(
        self, centres: List[Centre], asset_type: AssetType, token: Optional[CancellationToken]
    ) -> List[Space]:
        per_centre = self._catalog_map(
            lambda centre_id: self.catalog.list_spaces_by_centre(centre_id, asset_type),
            [c.id for c in centres],
            token,
        )
        return [space for spaces in per_centre for space in spaces]

    def _catalog_call(self, fn: Callable[..., T], *args, token: Optional[CancellationToken] = None) -> T:
        try:
            return self.gateway.call(fn, *args, token=token, port="catalog")
        except (SearchCancelled, CatalogUnavailableError):
            raise
        except Exception as e:
            logger.warning(f"Catalog call {getattr(fn, '__name__', fn)} failed: {e}")
            raise CatalogUnavailableError(f"Catalog lookup failed: {e}") from e

    def _catalog_map(self, fn: Callable[..., T], items: List, token: Optional[CancellationToken]) -> List[T]:
        try:
            return self.gateway.map(fn, items, token=token, port="catalog")
        except (SearchCancelled, CatalogUnavailableError):
            raise
        except Exception as e:
            logger.warning(f"Catalog fan-out over {len(items)} items failed: {e}")
            raise CatalogUnavailableError(f"Catalog lookup failed: {e}") from e
