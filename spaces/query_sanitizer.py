"""
Query Sanitization: shared by the search and autocomplete views.

Strips dangerous characters, enforces length limits, and normalises
whitespace before a query reaches the search engine.
"""

import re
import html

from .services.query_parser import MAX_QUERY_LENGTH


# ── Limits ────────────────────────────────────────────────
DEFAULT_AUTOCOMPLETE_LIMIT = 8
MAX_AUTOCOMPLETE_LIMIT = 20


def sanitize_query(raw: str) -> str:
    """
    Sanitise a user search query.

    1. Strip leading/trailing whitespace
    2. HTML-unescape (in case `&amp;` etc. sneak in from the frontend)
    3. Remove HTML tags
    4. Remove control characters and null bytes
    5. Collapse multiple spaces
    6. Truncate to MAX_QUERY_LENGTH
    """
    if not raw:
        return ""

    q = html.unescape(raw.strip())
    q = re.sub(r"<[^>]+>", "", q)
    q = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", q)
    q = re.sub(r"\s+", " ", q).strip()
    return q[:MAX_QUERY_LENGTH]


def validate_query(query: str) -> str | None:
    """
    Validate a sanitised search query. Returns an error string or None.

    An empty query is valid and returns an empty result.
    """
    if not query:
        return None

    # Reject queries that are only special characters
    if not re.search(r"[a-zA-Z0-9]", query):
        return "Query must contain at least one letter or number"

    return None

