"""
Space Query Parser

Turns one free-text search ("15-20sqm fashion at Eastgate from next week")
into a structured ParsedFilter.

Extraction is an explicit ordered list of independent extractors
(EXTRACTION_ORDER). Each one looks at the remaining text and returns the
earliest match as an ``Extraction(span, value)``. The matched span is blanked
out and the extractor runs again until it finds nothing, so every occurrence
is consumed. Whole passes repeat until nothing matches; what is left is the
centre-name phrase.

Features:
1. Input sanitisation (HTML entities, tags, control characters, length)
2. Asset-type keywords (vacant shops, third-line income assets)
3. Budgets ($80/day, under $500 pw, budget of 2000)
4. Sizes (3x4m, 20sqm, 15-20 m²) and trestle-table counts
5. Dates (25/12, tomorrow, next monday, 5th of March, next week, ranges)
6. Product categories via the entity trie (synonyms, multi-word phrases)
7. States and territories
8. LRU caching (256 recent parses)
"""

import re
import html
import logging
from calendar import monthrange
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Tuple
from functools import lru_cache

from . import vocabulary
from .domain import AssetType, Budget, ParsedFilter, State

logger = logging.getLogger(__name__)

# Max query length to prevent abuse
MAX_QUERY_LENGTH = 200

EXTRACTION_ORDER = ("asset_type", "budget", "size", "tables", "date", "category", "state")


@dataclass(frozen=True)
class Extraction:
    """A matched ``[start, end)`` span of the working text and its value."""
    span: Tuple[int, int]
    value: object


def _earliest(candidates) -> Optional[Extraction]:
    """Leftmost extraction; the longest one wins a tie."""
    best = None
    for candidate in candidates:
        if candidate is None:
            continue
        if (
            best is None
            or candidate.span[0] < best.span[0]
            or (candidate.span[0] == best.span[0] and candidate.span[1] > best.span[1])
        ):
            best = candidate
    return best


def _alternation(phrases) -> str:
    """Regex alternation, longest phrase first, spaces matching any whitespace."""
    ordered = sorted(set(phrases), key=len, reverse=True)
    return "|".join(r"\s+".join(re.escape(word) for word in p.split()) for p in ordered)


# =============================================================================
# ENTITY TRIE: O(k) multi-word category matching
# =============================================================================

class TrieNode:
    """A node in the category recognition trie."""
    __slots__ = ('children', 'canonical', 'original')

    def __init__(self):
        self.children: Dict[str, 'TrieNode'] = {}
        self.canonical: Optional[str] = None     # canonical category id
        self.original: Optional[str] = None      # original phrase


class EntityTrie:
    """
    Prefix trie for fast multi-word phrase matching.

    Usage:
        trie = EntityTrie()
        trie.insert("ugg boots", "footwear")
        matches = trie.search(["cheap", "ugg", "boots", "stall"])
        # → [{"canonical": "footwear", "start": 1, "end": 3, ...}]
    """

    def __init__(self):
        self.root = TrieNode()
        self._size = 0

    def insert(self, phrase: str, canonical: str):
        """Insert a phrase into the trie."""
        words = phrase.lower().split()
        node = self.root
        for word in words:
            if word not in node.children:
                node.children[word] = TrieNode()
            node = node.children[word]
        node.canonical = canonical
        node.original = phrase
        self._size += 1

    def search(self, words: List[str]) -> List[Dict]:
        """
        Find all phrase matches in a word list.

        Greedy: prefers the longest match starting at each position.
        Returns list of dicts with: canonical, original, start, end (token indices)
        """
        matches = []
        i = 0

        while i < len(words):
            best_match = None
            node = self.root
            j = i

            # Walk the trie as far as possible (greedy longest match)
            while j < len(words) and words[j] in node.children:
                node = node.children[words[j]]
                j += 1
                if node.canonical is not None:
                    best_match = {
                        "canonical": node.canonical,
                        "original": node.original,
                        "matched_text": " ".join(words[i:j]),
                        "start": i,
                        "end": j,
                    }

            if best_match:
                matches.append(best_match)
                i = best_match["end"]
            else:
                i += 1

        return matches

    @property
    def size(self) -> int:
        return self._size


def _build_category_trie() -> EntityTrie:
    trie = EntityTrie()
    for term, canonical in vocabulary.get_all_category_terms().items():
        trie.insert(term, canonical)
    logger.debug(f"Category trie built with {trie.size} phrases")
    return trie


_CATEGORY_TRIE = _build_category_trie()


# =============================================================================
# EXTRACTORS
# =============================================================================

# --- asset type --------------------------------------------------------------

_ASSET_PATTERN = re.compile(
    r"(?<!\w)(" + _alternation(vocabulary.ASSET_TYPE_KEYWORDS) + r")(?!\w)",
    re.IGNORECASE,
)


def extract_asset_type(text: str, today: date) -> Optional[Extraction]:
    match = _ASSET_PATTERN.search(text)
    if not match:
        return None
    hint = vocabulary.get_asset_type_for_keyword(match.group(1))
    if hint is None:
        return None
    asset_type, third_line_category = hint
    return Extraction(match.span(), (AssetType(asset_type), third_line_category))


# --- budget ------------------------------------------------------------------

# A number followed by a size or table unit is never money
_NOT_MEASURE = (
    r"(?!\s*(?:[x×]\s*\d|sqm|sq\.?\s*m|square|m2|m²|metres?|meters?|m\b|(?:trestle\s*)?tables?\b))"
)
_AMOUNT = r"(\d+(?:,\d{3})*(?:\.\d+)?)(?![\d.,]*\d)" + _NOT_MEASURE
_PERIOD = (
    r"(?P<unit>\s*/\s*(?:day|d|week|wk|w)\b"
    r"|\s*(?:pd|pw)\b"
    r"|\s+(?:per|a)\s+(?:day|week)\b"
    r"|\s+(?:daily|weekly)\b)?"
)

_BUDGET_PATTERNS = [
    # $100-$150 → upper bound
    re.compile(r"\$\s*\d+(?:,\d{3})*(?:\.\d+)?\s*(?:-|–|to)\s*\$?\s*" + _AMOUNT + _PERIOD, re.IGNORECASE),
    re.compile(
        r"\b(?:under|below|less\s+than|max(?:imum)?|up\s+to)\s+\$\s*" + _AMOUNT + _PERIOD,
        re.IGNORECASE,
    ),
    re.compile(r"\bbudget\s+(?:of\s+|is\s+)?\$?\s*" + _AMOUNT + _PERIOD, re.IGNORECASE),
    re.compile(r"\$\s*" + _AMOUNT + _PERIOD, re.IGNORECASE),
    re.compile(r"(?<![\w.])" + _AMOUNT + r"\s*(?:dollars?|aud)\b" + _PERIOD, re.IGNORECASE),
]


def _budget_from(amount: float, unit: Optional[str]) -> Budget:
    if not unit:
        return Budget(max_total=amount)
    # Week units are the only ones containing a "w"
    if "w" in unit.lower():
        return Budget(max_per_week=amount)
    return Budget(max_per_day=amount)


def extract_budget(text: str, today: date) -> Optional[Extraction]:
    candidates = []
    for pattern in _BUDGET_PATTERNS:
        match = pattern.search(text)
        if match:
            amount = float(match.group(1).replace(",", ""))
            candidates.append(Extraction(match.span(), _budget_from(amount, match.group("unit"))))
    return _earliest(candidates)


# --- size --------------------------------------------------------------------

_AREA_UNIT = (
    r"(?:sqm|sq\.?\s*m(?:etres?|eters?)?|square\s*(?:metres?|meters?|m)|m2|m²)(?!\w)"
)
_NUMBER = r"(\d+(?:\.\d+)?)"

_SIZE_DIMENSION = re.compile(
    r"(?<![\w.])" + _NUMBER + r"\s*m?\s*[x×]\s*" + _NUMBER
    + r"(?:\s*(?:metres?|meters?|m)(?!\w))?(?!\w)(?!\s*(?:trestle\s*)?tables?\b)",
    re.IGNORECASE,
)
_SIZE_RANGE = re.compile(
    r"(?<![\w.])" + _NUMBER + r"\s*(?:-|–|to)\s*" + _NUMBER + r"\s*" + _AREA_UNIT,
    re.IGNORECASE,
)
_SIZE_AREA = re.compile(r"(?<![\w.])" + _NUMBER + r"\s*" + _AREA_UNIT, re.IGNORECASE)


def extract_size(text: str, today: date) -> Optional[Extraction]:
    """Value is ``(min_size_m2, max_size_m2 or None)``."""
    candidates = []

    match = _SIZE_DIMENSION.search(text)
    if match:
        area = round(float(match.group(1)) * float(match.group(2)), 2)
        candidates.append(Extraction(match.span(), (area, None)))

    match = _SIZE_RANGE.search(text)
    if match:
        low, high = sorted((float(match.group(1)), float(match.group(2))))
        candidates.append(Extraction(match.span(), (low, high)))

    match = _SIZE_AREA.search(text)
    if match:
        candidates.append(Extraction(match.span(), (float(match.group(1)), None)))

    return _earliest(candidates)


# --- tables ------------------------------------------------------------------

_TABLES_PATTERN = re.compile(r"(?<![\w.])(\d+)\s*(?:trestle\s*)?tables?\b", re.IGNORECASE)


def extract_tables(text: str, today: date) -> Optional[Extraction]:
    match = _TABLES_PATTERN.search(text)
    if not match:
        return None
    return Extraction(match.span(), int(match.group(1)))


# --- date --------------------------------------------------------------------

_MONTH_NAMES = _alternation(vocabulary.MONTHS)
_WEEKDAY_NAMES = _alternation(vocabulary.WEEKDAYS)
_ORDINAL = r"(?:st|nd|rd|th)?"

_DATE_PATTERNS = [
    ("numeric", re.compile(r"(?<![\d/.$])(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2}))?(?![\d/])")),
    ("relative", re.compile(r"\b(today|tonight|tomorrow)\b", re.IGNORECASE)),
    ("weekday", re.compile(r"\b(?:(next|this)\s+)?(" + _WEEKDAY_NAMES + r")\b", re.IGNORECASE)),
    ("day_month", re.compile(
        r"\b(\d{1,2})" + _ORDINAL + r"\s+(?:of\s+)?(" + _MONTH_NAMES + r")\b\.?(?:,?\s+(\d{4})\b)?",
        re.IGNORECASE,
    )),
    ("month_day", re.compile(
        r"\b(" + _MONTH_NAMES + r")\.?\s+(\d{1,2})" + _ORDINAL + r"\b(?:,?\s+(\d{4})\b)?",
        re.IGNORECASE,
    )),
    ("week", re.compile(r"\b(next|this)\s+week\b", re.IGNORECASE)),
]

_DATE_PREFIX = re.compile(
    r"\b(?:starting\s+(?:from|on)|from|starting|between|on|beginning|commencing)\s+$",
    re.IGNORECASE,
)
_RANGE_JOINER = re.compile(
    r"\s*(?:[-–—]|\b(?:to|until|till|through|thru|and)\b)\s*",
    re.IGNORECASE,
)

DateValue = Tuple[date, Optional[date]]


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    if not 1 <= month <= 12:
        return None
    if not 1 <= day <= monthrange(year, month)[1]:
        return None
    return date(year, month, day)


def _with_year(month: int, day: int, year_text: Optional[str], today: date,
               anchor: Optional[date]) -> Optional[date]:
    if year_text:
        year = int(year_text)
        if year < 100:
            year += 2000
        return _safe_date(year, month, day)
    if anchor is None:
        return _safe_date(today.year, month, day)
    resolved = _safe_date(anchor.year, month, day)
    if resolved is not None and resolved < anchor:
        resolved = _safe_date(anchor.year + 1, month, day)
    return resolved


def _resolve_date(kind: str, match: re.Match, today: date,
                  anchor: Optional[date] = None) -> Optional[DateValue]:
    """
    Resolve a date match to ``(start, end or None)``.

    ``anchor`` is the start of a range when resolving its second date;
    weekdays and year-less dates are then read relative to it.
    """
    if kind == "numeric":
        resolved = _with_year(int(match.group(2)), int(match.group(1)), match.group(3), today, anchor)
        return (resolved, None) if resolved else None

    if kind == "relative":
        word = match.group(1).lower()
        return (today + timedelta(days=1), None) if word == "tomorrow" else (today, None)

    if kind == "weekday":
        qualifier = (match.group(1) or "").lower()
        weekday = vocabulary.WEEKDAYS[match.group(2).lower()]
        if anchor is not None:
            return (anchor + timedelta(days=(weekday - anchor.weekday()) % 7 or 7), None)
        if qualifier == "next":
            return (today + timedelta(days=(weekday - today.weekday()) % 7 or 7), None)
        if qualifier == "this":
            monday = today - timedelta(days=today.weekday())
            return (monday + timedelta(days=weekday), None)
        return (today + timedelta(days=(weekday - today.weekday()) % 7), None)

    if kind == "day_month":
        month = vocabulary.MONTHS[match.group(2).lower()]
        resolved = _with_year(month, int(match.group(1)), match.group(3), today, anchor)
        return (resolved, None) if resolved else None

    if kind == "month_day":
        month = vocabulary.MONTHS[match.group(1).lower()]
        resolved = _with_year(month, int(match.group(2)), match.group(3), today, anchor)
        return (resolved, None) if resolved else None

    if kind == "week":
        monday = today - timedelta(days=today.weekday())
        if match.group(1).lower() == "next":
            monday += timedelta(days=7)
        return (monday, monday + timedelta(days=6))

    return None


def _date_at(text: str, pos: int, today: date, anchor: date) -> Optional[Tuple[int, DateValue]]:
    """Longest valid date starting exactly at ``pos``; returns (end, value)."""
    best = None
    for kind, pattern in _DATE_PATTERNS:
        match = pattern.match(text, pos)
        if not match:
            continue
        resolved = _resolve_date(kind, match, today, anchor=anchor)
        if resolved and (best is None or match.end() > best[0]):
            best = (match.end(), resolved)
    return best


def extract_date(text: str, today: date) -> Optional[Extraction]:
    """
    Earliest date in the text, with an optional directly following second
    date joined by a range word. Value is ``(start, end or None)``.
    """
    candidates = []
    for kind, pattern in _DATE_PATTERNS:
        for match in pattern.finditer(text):
            resolved = _resolve_date(kind, match, today)
            if resolved:
                candidates.append(Extraction(match.span(), resolved))
                break
    first = _earliest(candidates)
    if first is None:
        return None

    span_start, span_end = first.span
    start, end = first.value

    prefix = _DATE_PREFIX.search(text, 0, span_start)
    if prefix:
        span_start = prefix.start()

    joiner = _RANGE_JOINER.match(text, span_end)
    if joiner:
        second = _date_at(text, joiner.end(), today, anchor=start)
        if second:
            span_end, (second_start, second_end) = second
            candidate_end = second_end or second_start
            # An end before the start is consumed but ignored
            if candidate_end >= start:
                end = candidate_end

    return Extraction((span_start, span_end), (start, end))


# --- category ----------------------------------------------------------------

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+(?:['\-][a-z0-9]+)*")


def extract_category(text: str, today: date) -> Optional[Extraction]:
    tokens = list(_TOKEN_PATTERN.finditer(text.lower()))
    if not tokens:
        return None
    matches = _CATEGORY_TRIE.search([t.group(0) for t in tokens])
    if not matches:
        return None
    first = matches[0]
    span = (tokens[first["start"]].start(), tokens[first["end"] - 1].end())
    return Extraction(span, first["canonical"])


# --- state -------------------------------------------------------------------

_STATE_PATTERN = re.compile(
    r"(?<!\w)(" + _alternation(vocabulary.STATE_ALIASES) + r")(?!\w)",
    re.IGNORECASE,
)


def extract_state(text: str, today: date) -> Optional[Extraction]:
    for match in _STATE_PATTERN.finditer(text):
        word = match.group(1)
        if word.lower() in vocabulary.CASE_SENSITIVE_STATE_CODES and word != word.upper():
            continue
        code = vocabulary.get_state_code(word)
        if code:
            return Extraction(match.span(), State(code))
    return None


EXTRACTORS: Dict[str, Callable[[str, date], Optional[Extraction]]] = {
    "asset_type": extract_asset_type,
    "budget": extract_budget,
    "size": extract_size,
    "tables": extract_tables,
    "date": extract_date,
    "category": extract_category,
    "state": extract_state,
}


# =============================================================================
# PARSER
# =============================================================================

_PUNCTUATION_TOKEN = re.compile(r"^[^\w#]+$")
_EDGE_PUNCTUATION = " ,.;:!?/&+()[]{}'\"-–—"


def _tidy(text: str) -> str:
    """
    Collapse whitespace, drop punctuation-only tokens and trim connector
    words and punctuation from both ends, until nothing changes.
    """
    previous = None
    while previous != text:
        previous = text
        tokens = [t for t in text.split() if not _PUNCTUATION_TOKEN.match(t)]
        while tokens and tokens[0].lower().strip(_EDGE_PUNCTUATION) in vocabulary.CONNECTOR_WORDS:
            tokens.pop(0)
        while tokens and tokens[-1].lower().strip(_EDGE_PUNCTUATION) in vocabulary.CONNECTOR_WORDS:
            tokens.pop()
        text = " ".join(tokens).strip(_EDGE_PUNCTUATION)
    return text


class SpaceQueryParser:
    """
    Rule-based parser for retail space searches.

    Usage:
        parser = SpaceQueryParser()
        parsed = parser.parse("Eastgate fashion 20sqm next Monday")
        parsed.centre_name_phrase   # "Eastgate"
        parsed.product_category     # "fashion"
    """

    _SANITIZE_PATTERNS = [
        re.compile(r'<[^>]*>'),                          # HTML tags
        re.compile(r'javascript\s*:', re.IGNORECASE),    # JS injection
        re.compile(r'on\w+\s*=', re.IGNORECASE),         # Event handlers
    ]

    def __init__(self, order: Tuple[str, ...] = EXTRACTION_ORDER):
        self.order = order
        self._extractors = [(name, EXTRACTORS[name]) for name in order]

    # ─── Public API ──────────────────────────────────────────────

    def parse(self, query: str, today: Optional[date] = None) -> ParsedFilter:
        """
        Parse a free-text space search. Never raises; text that matches no
        extractor stays in ``centre_name_phrase``.
        """
        today = today or date.today()
        sanitized = self._sanitize(query or "")
        if not sanitized:
            return ParsedFilter(original=sanitized)

        try:
            found, residual = self._extract(sanitized, today)
        except Exception:
            logger.exception(f"Parser failed on {sanitized!r}; treating it as a centre name")
            return ParsedFilter(centre_name_phrase=_tidy(sanitized), original=sanitized)

        result = self._build(found, residual, sanitized)
        logger.debug(f"Parsed {sanitized!r} → phrase={result.centre_name_phrase!r} {result.typed_fields()}")
        return result

    # ─── Core extraction ─────────────────────────────────────────

    def _extract(self, text: str, today: date) -> Tuple[Dict[str, List[object]], str]:
        found: Dict[str, List[object]] = {name: [] for name in self.order}
        text = " ".join(text.split())

        while True:
            matched = False
            for name, extractor in self._extractors:
                while True:
                    extraction = extractor(text, today)
                    if extraction is None:
                        break
                    start, end = extraction.span
                    if not text[start:end].strip():
                        break
                    found[name].append(extraction.value)
                    text = text[:start] + " " * (end - start) + text[end:]
                    matched = True

            tidied = _tidy(text)
            if not matched and tidied == text:
                return found, text
            text = tidied

    def _build(self, found: Dict[str, List[object]], residual: str, original: str) -> ParsedFilter:
        result = ParsedFilter(centre_name_phrase=residual, original=original)

        hints = found.get("asset_type", [])
        if hints:
            result.asset_type = hints[0][0]
            if result.asset_type == AssetType.THIRD_LINE:
                result.third_line_category = next(
                    (category for asset_type, category in hints
                     if asset_type == AssetType.THIRD_LINE and category),
                    None,
                )

        budget = None
        for value in found.get("budget", []):
            budget = value if budget is None else budget.merged_with(value)
        result.budget = budget

        sizes = found.get("size", [])
        if sizes:
            result.min_size_m2, result.max_size_m2 = sizes[0]

        tables = found.get("tables", [])
        if tables:
            result.min_tables = tables[0]

        dates = found.get("date", [])
        if dates:
            result.date_start, result.date_end = dates[0]
            for later_start, later_end in dates[1:]:
                if result.date_end is not None:
                    break
                if later_start >= result.date_start:
                    result.date_end = later_end or later_start

        categories = found.get("category", [])
        if categories:
            result.product_category = categories[0]

        states = found.get("state", [])
        if states:
            result.state_filter = states[0]

        return result

    # ─── Input sanitization ──────────────────────────────────────

    def _sanitize(self, query: str) -> str:
        """
        - Decodes HTML entities and strips tags until stable
        - Removes control characters
        - Normalizes whitespace and enforces max length
        """
        previous = None
        while previous != query:
            previous = query
            query = html.unescape(query)
            for pattern in self._SANITIZE_PATTERNS:
                query = pattern.sub(' ', query)

        query = ''.join(c if c.isprintable() else ' ' for c in query)
        query = re.sub(r'\s+', ' ', query).strip()

        if len(query) > MAX_QUERY_LENGTH:
            query = query[:MAX_QUERY_LENGTH].rstrip()
            logger.warning(f"Query truncated to {MAX_QUERY_LENGTH} chars")

        return query


# =============================================================================
# CACHED PARSE: avoid re-parsing identical queries
# =============================================================================

@lru_cache(maxsize=256)
def _cached_parse(query: str, today: date) -> ParsedFilter:
    return space_query_parser.parse(query, today=today)


def parse_query(query: str, today: Optional[date] = None) -> ParsedFilter:
    """Cached parse; hands back a copy so callers may adjust it freely."""
    return replace(_cached_parse(query or "", today or date.today()))


# Singleton instance for easy import
space_query_parser = SpaceQueryParser()
