"""
Intent Fallback Service: LLM gap-filling for conversational space searches.

Rule-based parsing handles "Eastgate 20sqm fashion next monday" well but
misses phrasing like "somewhere busy near the beach in Brisbane for my candle
stall". For those queries GPT-4o-mini extracts a JSON intent, and the result
only fills fields the rules left empty.

Cache: LRU in-memory (500 entries) to avoid redundant API calls.
Timeout: configurable (LLM_INTENT_TIMEOUT); a slow model returns None.
"""

import json
import logging
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Optional

from openai import OpenAI

from core.exceptions import LLMServiceError
from spacefinder.config import config

from . import vocabulary
from .domain import AssetType, Budget, ParsedFilter, State
from .fuzzy_matcher import fuzzy_match

logger = logging.getLogger(__name__)

# Queries this long are conversational enough to be worth a model call
LONG_QUERY_WORDS = 8


@dataclass
class LLMIntent:
    """Fields the model may return; any of them can be missing."""
    location: Optional[str] = None
    state: Optional[str] = None
    product_category: Optional[str] = None
    asset_type: Optional[str] = None
    min_size_m2: Optional[float] = None
    max_price_per_day: Optional[float] = None
    max_price_per_week: Optional[float] = None
    max_budget: Optional[float] = None


SYSTEM_PROMPT = """You extract search intent for an Australian shopping-centre retail space marketplace.
Given a customer's search, return ONLY a JSON object with these keys (null when not mentioned):
- "location": shopping centre name, suburb or city
- "state": Australian state code (NSW, VIC, QLD, SA, WA, TAS, NT, ACT)
- "product_category": what they will sell, one of: """ + ", ".join(vocabulary.CATEGORIES) + """
- "asset_type": one of "casual_leasing", "vacant_shop", "third_line"
- "min_size_m2": number
- "max_price_per_day": number
- "max_price_per_week": number
- "max_budget": total budget, number
Do NOT explain, just return the JSON."""


# Singleton client
_client = None


def _get_client():
    """Lazy-load the OpenAI client; None when no API key is configured."""
    global _client
    if _client is None:
        api_key = config.apis.openai_api_key
        if not api_key:
            logger.warning("OPENAI_API_KEY not set, LLM intent fallback disabled")
            return None
        _client = OpenAI(api_key=api_key)
    return _client


def should_use_llm(parsed: ParsedFilter) -> bool:
    """Rules found nothing to anchor on, or the query reads like a sentence."""
    if not config.search.llm_enabled or not parsed.original:
        return False
    nothing_anchored = (
        not parsed.centre_name_phrase
        and parsed.state_filter is None
        and parsed.product_category is None
    )
    return nothing_anchored or len(parsed.original.split()) >= LONG_QUERY_WORDS


def _number(value) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _text(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _request_intent(client, query: str) -> dict:
    """
    One JSON-mode completion for ``query``.

    Raises:
        LLMServiceError: the call failed or the reply was not a JSON object
    """
    try:
        response = client.chat.completions.create(
            model=config.search.llm_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": query},
            ],
            response_format={"type": "json_object"},
            max_tokens=200,
            temperature=0,
            timeout=config.search.llm_timeout,
        )
    except Exception as e:
        raise LLMServiceError(f"Intent completion failed: {e}") from e

    try:
        data = json.loads(response.choices[0].message.content or "{}")
    except (TypeError, ValueError) as e:
        raise LLMServiceError("Intent completion was not valid JSON") from e
    if not isinstance(data, dict):
        raise LLMServiceError("Intent completion was not a JSON object")
    return data


@lru_cache(maxsize=500)
def parse_intent_with_llm(query: str) -> Optional[LLMIntent]:
    """
    Extract intent from a search query using GPT-4o-mini.

    Returns:
        LLMIntent, or None if the fallback is disabled or the call failed
    """
    if not config.search.llm_enabled:
        return None

    query = query.strip()
    if not query:
        return None

    client = _get_client()
    if not client:
        return None

    try:
        data = _request_intent(client, query)
    except LLMServiceError as e:
        logger.warning(f"LLM intent parsing failed for '{query}': {e.message}")
        return None

    return LLMIntent(
        location=_text(data.get("location")),
        state=_text(data.get("state")),
        product_category=_text(data.get("product_category")),
        asset_type=_text(data.get("asset_type")),
        min_size_m2=_number(data.get("min_size_m2")),
        max_price_per_day=_number(data.get("max_price_per_day")),
        max_price_per_week=_number(data.get("max_price_per_week")),
        max_budget=_number(data.get("max_budget")),
    )


def _canonical_category(term: Optional[str]) -> Optional[str]:
    if not term:
        return None
    canonical = vocabulary.get_category_canonical(term)
    if canonical:
        return canonical
    match = fuzzy_match(term, vocabulary.get_all_category_terms(), max_distance=1)
    return vocabulary.get_category_canonical(match[0]) if match else None


def _canonical_asset_type(term: Optional[str]) -> Optional[AssetType]:
    if not term:
        return None
    try:
        return AssetType(term.lower().strip())
    except ValueError:
        hint = vocabulary.get_asset_type_for_keyword(term)
        return AssetType(hint[0]) if hint else None


def merge_llm_intent(parsed: ParsedFilter, intent: Optional[LLMIntent]) -> ParsedFilter:
    """
    Fill the gaps of a rule-based parse from an LLM intent.
    Rule-based values always win; unknown categories and states are dropped.
    """
    if intent is None:
        return parsed

    merged = replace(parsed)

    if not merged.centre_name_phrase and intent.location:
        merged.centre_name_phrase = intent.location

    if merged.state_filter is None and intent.state:
        code = vocabulary.get_state_code(intent.state)
        merged.state_filter = State(code) if code else None

    if merged.product_category is None:
        merged.product_category = _canonical_category(intent.product_category)

    if merged.asset_type is None:
        merged.asset_type = _canonical_asset_type(intent.asset_type)

    if merged.min_size_m2 is None and intent.min_size_m2 is not None:
        merged.min_size_m2 = intent.min_size_m2

    llm_budget = Budget(
        max_per_day=intent.max_price_per_day,
        max_per_week=intent.max_price_per_week,
        max_total=intent.max_budget,
    )
    if not llm_budget.is_empty:
        merged.budget = merged.budget.merged_with(llm_budget) if merged.budget else llm_budget

    if merged != parsed:
        logger.debug(f"LLM intent filled gaps for {parsed.original!r}: {merged.typed_fields()}")
    return merged
