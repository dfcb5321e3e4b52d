"""
Tests for the LLM intent fallback

The OpenAI client is replaced with a canned-response fake; no network.

Run with: python -m pytest spaces/tests/test_intent_parser.py -v
"""

import json
from types import SimpleNamespace

import pytest

from core.exceptions import LLMServiceError
from spaces.services import intent_parser
from spaces.services.domain import AssetType, Budget, ParsedFilter, State
from spaces.services.intent_parser import (
    LLMIntent,
    merge_llm_intent,
    parse_intent_with_llm,
    should_use_llm,
)
from spaces.services.orchestrator import SearchEngine
from spaces.services.query_parser import parse_query

from .conftest import TODAY

CONVERSATIONAL = "somewhere busy near the beach for my candle stall please"


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_config(enabled=True, api_key="sk-test"):
    return SimpleNamespace(
        search=SimpleNamespace(llm_enabled=enabled, llm_model="gpt-4o-mini", llm_timeout=3.0),
        apis=SimpleNamespace(openai_api_key=api_key),
    )


@pytest.fixture(autouse=True)
def clear_cache():
    parse_intent_with_llm.cache_clear()
    yield
    parse_intent_with_llm.cache_clear()


@pytest.fixture
def llm(monkeypatch):
    """Enable the fallback and install a fake client; returns its completions."""
    completions = FakeCompletions(content="{}")
    monkeypatch.setattr(intent_parser, "config", fake_config())
    monkeypatch.setattr(intent_parser, "_client", SimpleNamespace(chat=SimpleNamespace(completions=completions)))
    return completions


class TestShouldUseLLM:

    def test_disabled(self, monkeypatch):
        monkeypatch.setattr(intent_parser, "config", fake_config(enabled=False))
        assert should_use_llm(parse_query(CONVERSATIONAL, today=TODAY)) is False

    def test_long_conversational_query(self, llm):
        assert should_use_llm(parse_query(CONVERSATIONAL, today=TODAY)) is True

    def test_short_anchored_query(self, llm):
        assert should_use_llm(parse_query("Eastgate fashion", today=TODAY)) is False

    def test_nothing_anchored(self, llm):
        assert should_use_llm(parse_query("20sqm next week", today=TODAY)) is True

    def test_empty_query(self, llm):
        assert should_use_llm(ParsedFilter()) is False


class TestParseIntentWithLLM:

    def test_extracts_fields(self, llm):
        llm.content = json.dumps({
            "location": "Sunshine Coast",
            "state": "QLD",
            "product_category": "homewares",
            "asset_type": None,
            "min_size_m2": "12",
            "max_price_per_day": 90,
        })
        intent = parse_intent_with_llm(CONVERSATIONAL)

        assert intent.location == "Sunshine Coast"
        assert intent.state == "QLD"
        assert intent.product_category == "homewares"
        assert intent.asset_type is None
        assert intent.min_size_m2 == 12.0
        assert intent.max_price_per_day == 90.0
        assert llm.calls[0]["response_format"] == {"type": "json_object"}

    def test_non_positive_numbers_dropped(self, llm):
        llm.content = json.dumps({"min_size_m2": -5, "max_budget": "lots"})
        intent = parse_intent_with_llm(CONVERSATIONAL)
        assert intent.min_size_m2 is None
        assert intent.max_budget is None

    def test_non_object_response(self, llm):
        llm.content = json.dumps(["not", "an", "object"])
        assert parse_intent_with_llm(CONVERSATIONAL) is None

    def test_invalid_json(self, llm):
        llm.content = "Sure! Here is the JSON you asked for"
        assert parse_intent_with_llm(CONVERSATIONAL) is None

    def test_client_error(self, llm):
        llm.error = TimeoutError("model too slow")
        assert parse_intent_with_llm(CONVERSATIONAL) is None

    @pytest.mark.parametrize("content", ["not json", "[1, 2]"])
    def test_bad_replies_raise_llm_service_error(self, llm, content):
        llm.content = content
        with pytest.raises(LLMServiceError) as exc_info:
            intent_parser._request_intent(intent_parser._client, CONVERSATIONAL)
        assert exc_info.value.details == {"service": "openai"}

    def test_client_failure_is_wrapped(self, llm):
        llm.error = ConnectionError("reset by peer")
        with pytest.raises(LLMServiceError, match="reset by peer"):
            intent_parser._request_intent(intent_parser._client, CONVERSATIONAL)

    def test_disabled_never_calls_the_model(self, llm, monkeypatch):
        monkeypatch.setattr(intent_parser, "config", fake_config(enabled=False))
        assert parse_intent_with_llm(CONVERSATIONAL) is None
        assert llm.calls == []

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.setattr(intent_parser, "config", fake_config(api_key=""))
        monkeypatch.setattr(intent_parser, "_client", None)
        assert parse_intent_with_llm(CONVERSATIONAL) is None

    def test_cached_per_query(self, llm):
        parse_intent_with_llm(CONVERSATIONAL)
        parse_intent_with_llm(CONVERSATIONAL)
        assert len(llm.calls) == 1


class TestMergeLLMIntent:

    def test_none_intent_returns_parse_unchanged(self):
        parsed = parse_query("Eastgate", today=TODAY)
        assert merge_llm_intent(parsed, None) is parsed

    def test_rule_values_win(self):
        parsed = ParsedFilter(centre_name_phrase="Eastgate", product_category="fashion", original="x")
        intent = LLMIntent(location="Pacific Square", product_category="food")
        merged = merge_llm_intent(parsed, intent)
        assert merged.centre_name_phrase == "Eastgate"
        assert merged.product_category == "fashion"

    def test_fills_gaps(self):
        parsed = ParsedFilter(original=CONVERSATIONAL)
        intent = LLMIntent(
            location="Sunshine Coast",
            state="Queensland",
            product_category="fashon",
            asset_type="vacant shop",
            min_size_m2=30.0,
        )
        merged = merge_llm_intent(parsed, intent)

        assert merged.centre_name_phrase == "Sunshine Coast"
        assert merged.state_filter == State.QLD
        assert merged.product_category == "fashion"
        assert merged.asset_type == AssetType.VACANT_SHOP
        assert merged.min_size_m2 == 30.0
        assert parsed.centre_name_phrase == ""

    def test_unknown_values_dropped(self):
        intent = LLMIntent(state="Narnia", product_category="spaceships", asset_type="castle")
        merged = merge_llm_intent(ParsedFilter(original="x"), intent)
        assert merged.state_filter is None
        assert merged.product_category is None
        assert merged.asset_type is None

    def test_budget_gaps_filled(self):
        parsed = ParsedFilter(budget=Budget(max_per_day=100.0), original="x")
        merged = merge_llm_intent(parsed, LLMIntent(max_price_per_day=80.0, max_budget=500.0))
        assert merged.budget == Budget(max_per_day=100.0, max_total=500.0)


class TestEngineFallback:

    def test_engine_reports_llm_parse(self, llm, catalog, bookings):
        llm.content = json.dumps({"state": "QLD", "product_category": "food"})
        engine = SearchEngine(catalog, bookings)

        parsed, parser_used = engine._parse(CONVERSATIONAL, TODAY)
        assert parser_used == "llm"
        assert parsed.state_filter == State.QLD
        assert parsed.product_category == "food"

    def test_engine_keeps_rules_when_model_adds_nothing(self, llm, catalog, bookings):
        engine = SearchEngine(catalog, bookings)
        parsed, parser_used = engine._parse(CONVERSATIONAL, TODAY)
        assert parser_used == "rules"
