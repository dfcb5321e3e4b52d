"""
Fuzzy Matching Utility

Typo-tolerant matching for centre names, suburbs and cities.
Uses Levenshtein edit distance for similarity calculation.
"""

from typing import Iterable, List, Optional, Tuple
from functools import lru_cache


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Calculate the Levenshtein edit distance between two strings.

    The edit distance is the minimum number of single-character edits
    (insertions, deletions, substitutions) needed to transform s1 into s2.

    Examples:
        >>> levenshtein_distance("highlnd", "highland")
        1
        >>> levenshtein_distance("eastgte", "eastgate")
        1
        >>> levenshtein_distance("pacific", "pacific")
        0
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = range(len(s2) + 1)
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


@lru_cache(maxsize=50000)
def cached_levenshtein(s1: str, s2: str) -> int:
    """Cached version of levenshtein_distance for repeated lookups."""
    return levenshtein_distance(s1, s2)


def max_distance_for(query: str, ratio: float) -> int:
    """Edit-distance budget for a query: int(len * ratio)."""
    return int(len(query.strip()) * ratio)


def field_distance(query: str, value: Optional[str], max_distance: Optional[int] = None) -> Optional[int]:
    """
    Smallest edit distance between ``query`` and a field value.

    Compared against the whole value, the value's prefix of the same length
    as the query, and each individual word of the value. Handles both
    "highlnd" vs "Highlands Marketplace" (prefix) and "marketplce" (word).

    With ``max_distance``, candidates whose length alone puts them out of
    reach are skipped and None is returned when nothing is close enough.
    """
    if not value:
        return None
    q = query.lower().strip()
    v = value.lower().strip()
    if not q or not v:
        return None

    candidates = [v, v[:len(q)]]
    candidates.extend(v.split())
    if max_distance is not None:
        candidates = [c for c in candidates if abs(len(c) - len(q)) <= max_distance]
        if not candidates:
            return None

    best = min(cached_levenshtein(q, c) for c in candidates)
    if max_distance is not None and best > max_distance:
        return None
    return best


def best_field_distance(
    query: str,
    values: Iterable[Optional[str]],
    max_distance: Optional[int] = None,
) -> Optional[int]:
    """Smallest ``field_distance`` across several fields (name, suburb, city)."""
    distances = [
        d for d in (field_distance(query, v, max_distance) for v in values)
        if d is not None
    ]
    return min(distances) if distances else None


def fuzzy_match(
    query: str,
    candidates: Iterable[str],
    max_distance: int = 2,
    min_length: int = 4
) -> Optional[Tuple[str, int]]:
    """
    Find the best fuzzy match for a query in a set of candidates.

    Args:
        query: The string to match
        candidates: Candidate strings to match against
        max_distance: Maximum allowed edit distance (default: 2)
        min_length: Minimum query length for fuzzy matching (default: 4)

    Returns:
        Tuple of (matched_string, edit_distance) or None if no match found

    Examples:
        >>> fuzzy_match("eastgte", {"eastgate", "westfield"})
        ("eastgate", 1)
    """
    query = query.lower().strip()
    candidates = list(candidates)

    # Short queries require exact or near-exact match
    if len(query) < min_length:
        max_distance = min(max_distance, 1)

    # For very short queries, only exact match
    if len(query) < 3:
        for candidate in candidates:
            if candidate.lower() == query:
                return (candidate, 0)
        return None

    best_match = None
    best_distance = max_distance + 1

    for candidate in candidates:
        candidate_lower = candidate.lower()

        # Exact match - return immediately
        if query == candidate_lower:
            return (candidate, 0)

        # Skip if length difference is too large
        if abs(len(query) - len(candidate_lower)) > max_distance:
            continue

        distance = cached_levenshtein(query, candidate_lower)

        if distance <= max_distance and distance < best_distance:
            best_distance = distance
            best_match = candidate

    return (best_match, best_distance) if best_match else None


def rank_by_distance(items: List[Tuple[int, str, object]]) -> List[object]:
    """Order ``(distance, name, item)`` triples by distance then name."""
    return [item for _, _, item in sorted(items, key=lambda t: (t[0], t[1].lower()))]
