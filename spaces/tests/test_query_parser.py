"""
Tests for the retail space query parser

Run with: python -m pytest spaces/tests/test_query_parser.py -v
"""

from datetime import date

import pytest

from spaces.services.domain import AssetType, Budget, ParsedFilter, State
from spaces.services.query_parser import (
    MAX_QUERY_LENGTH,
    EntityTrie,
    SpaceQueryParser,
    parse_query,
)

from .conftest import TODAY


class TestSpaceQueryParser:
    """Test cases for the rule-based space query parser."""

    @pytest.fixture
    def parser(self):
        return SpaceQueryParser()

    def parse(self, parser, query):
        return parser.parse(query, today=TODAY)

    # ==========================================================================
    # Combined Queries
    # ==========================================================================

    def test_centre_category_size_and_date(self, parser):
        """Centre name, category, size and a relative date in one query."""
        result = self.parse(parser, "Eastgate fashion 20sqm next Monday")

        assert result.centre_name_phrase == "Eastgate"
        assert result.product_category == "fashion"
        assert result.min_size_m2 == 20.0
        assert result.max_size_m2 is None
        assert result.date_start == date(2026, 10, 19)
        assert result.date_start.weekday() == 0
        assert result.date_start > TODAY

    def test_original_is_kept(self, parser):
        """The sanitized query is preserved as ``original``."""
        result = self.parse(parser, "  Eastgate   fashion  ")
        assert result.original == "Eastgate fashion"

    def test_bare_centre_name(self, parser):
        """A plain centre name carries no typed fields."""
        result = self.parse(parser, "Highlands Marketplace")
        assert result.centre_name_phrase == "Highlands Marketplace"
        assert result.typed_fields() == {}

    def test_home_stays_part_of_centre_name(self, parser):
        """The word home on its own is not read as the homewares category."""
        result = self.parse(parser, "Eastgate Home Co")
        assert result.centre_name_phrase == "Eastgate Home Co"
        assert result.product_category is None

    def test_empty_query(self, parser):
        """Empty input gives an all-empty filter."""
        assert self.parse(parser, "") == ParsedFilter(original="")
        assert self.parse(parser, "   ") == ParsedFilter(original="")

    # ==========================================================================
    # Date Extraction Tests
    # ==========================================================================

    def test_bare_weekday_counts_today(self, parser):
        """A weekday without qualifier may be today."""
        assert self.parse(parser, "Eastgate wednesday").date_start == TODAY
        assert self.parse(parser, "Eastgate monday").date_start == date(2026, 10, 19)

    def test_next_weekday_is_strictly_future(self, parser):
        """"next <weekday>" never resolves to today."""
        assert self.parse(parser, "next wednesday").date_start == date(2026, 10, 21)
        assert self.parse(parser, "next friday").date_start == date(2026, 10, 16)

    def test_this_weekday_stays_in_current_week(self, parser):
        """"this <weekday>" is that day of the current Monday-based week."""
        assert self.parse(parser, "this friday").date_start == date(2026, 10, 16)
        assert self.parse(parser, "this monday").date_start == date(2026, 10, 12)

    def test_tomorrow(self, parser):
        result = self.parse(parser, "Eastgate tomorrow")
        assert result.date_start == date(2026, 10, 15)
        assert result.centre_name_phrase == "Eastgate"

    def test_next_week_is_a_range(self, parser):
        """"next week" spans next Monday to Sunday."""
        result = self.parse(parser, "Pacific Square next week")
        assert result.date_start == date(2026, 10, 19)
        assert result.date_end == date(2026, 10, 25)
        assert result.centre_name_phrase == "Pacific Square"

    def test_numeric_date_is_day_first(self, parser):
        """Numeric dates read as day/month."""
        assert self.parse(parser, "1/11").date_start == date(2026, 11, 1)
        assert self.parse(parser, "1/11/2027").date_start == date(2027, 11, 1)

    def test_numeric_date_range(self, parser):
        """"from X to Y" yields both ends and leaves only the centre."""
        result = self.parse(parser, "Eastgate from 1/11 to 5/11")
        assert result.date_start == date(2026, 11, 1)
        assert result.date_end == date(2026, 11, 5)
        assert result.centre_name_phrase == "Eastgate"

    def test_month_name_date(self, parser):
        result = self.parse(parser, "Highlands 3rd December")
        assert result.date_start == date(2026, 12, 3)
        assert result.centre_name_phrase == "Highlands"

    def test_past_date_is_accepted(self, parser):
        """Dates before today are returned as written."""
        assert self.parse(parser, "1/3/2026").date_start == date(2026, 3, 1)

    # ==========================================================================
    # Budget Extraction Tests
    # ==========================================================================

    def test_daily_budget(self, parser):
        result = self.parse(parser, "Eastgate under $100 per day")
        assert result.budget == Budget(max_per_day=100.0)
        assert result.centre_name_phrase == "Eastgate"

    def test_weekly_budget(self, parser):
        result = self.parse(parser, "Eastgate max $500/week")
        assert result.budget == Budget(max_per_week=500.0)

    def test_total_budget(self, parser):
        result = self.parse(parser, "Eastgate budget $800")
        assert result.budget == Budget(max_total=800.0)
        assert result.centre_name_phrase == "Eastgate"

    def test_budget_range_takes_upper_bound(self, parser):
        result = self.parse(parser, "$100-$150 per day Eastgate")
        assert result.budget == Budget(max_per_day=150.0)
        assert result.centre_name_phrase == "Eastgate"

    def test_size_is_not_money(self, parser):
        """A number with an area unit is never a budget."""
        result = self.parse(parser, "20sqm")
        assert result.budget is None
        assert result.min_size_m2 == 20.0

    # ==========================================================================
    # Size & Table Extraction Tests
    # ==========================================================================

    def test_dimensions_multiply(self, parser):
        result = self.parse(parser, "Eastgate 3x4m")
        assert result.min_size_m2 == 12.0
        assert result.centre_name_phrase == "Eastgate"

    def test_size_range(self, parser):
        result = self.parse(parser, "15-20sqm Eastgate")
        assert result.min_size_m2 == 15.0
        assert result.max_size_m2 == 20.0

    def test_square_metres_spelled_out(self, parser):
        assert self.parse(parser, "30 square metres").min_size_m2 == 30.0

    def test_tables(self, parser):
        result = self.parse(parser, "Eastgate 4 tables")
        assert result.min_tables == 4
        assert result.min_size_m2 is None
        assert result.budget is None

    # ==========================================================================
    # Category Recognition Tests
    # ==========================================================================

    def test_canonical_category(self, parser):
        assert self.parse(parser, "Eastgate electronics").product_category == "electronics"

    def test_category_synonyms(self, parser):
        """Synonyms resolve to the canonical category id."""
        assert self.parse(parser, "shoes Eastgate").product_category == "footwear"
        assert self.parse(parser, "clothes").product_category == "fashion"
        assert self.parse(parser, "cafe").product_category == "coffee"

    def test_multi_word_synonym(self, parser):
        result = self.parse(parser, "ugg boots Pacific Square")
        assert result.product_category == "footwear"
        assert result.centre_name_phrase == "Pacific Square"

    def test_first_category_by_position_wins(self, parser):
        assert self.parse(parser, "coffee and fashion").product_category == "coffee"

    # ==========================================================================
    # State Recognition Tests
    # ==========================================================================

    def test_state_code(self, parser):
        result = self.parse(parser, "Eastgate NSW")
        assert result.state_filter == State.NSW
        assert result.centre_name_phrase == "Eastgate"

    def test_state_code_case_insensitive(self, parser):
        assert self.parse(parser, "fashion vic").state_filter == State.VIC

    def test_full_state_name(self, parser):
        assert self.parse(parser, "coffee in queensland").state_filter == State.QLD

    def test_lowercase_act_is_a_word(self, parser):
        """"act" is only a state when written ACT."""
        assert self.parse(parser, "Canberra ACT").state_filter == State.ACT
        result = self.parse(parser, "act")
        assert result.state_filter is None
        assert result.centre_name_phrase == "act"

    # ==========================================================================
    # Asset Type Tests
    # ==========================================================================

    def test_vacant_shop(self, parser):
        result = self.parse(parser, "vacant shop Eastgate")
        assert result.asset_type == AssetType.VACANT_SHOP
        assert result.centre_name_phrase == "Eastgate"

    def test_third_line_with_category(self, parser):
        result = self.parse(parser, "vending machines Highlands")
        assert result.asset_type == AssetType.THIRD_LINE
        assert result.third_line_category == "vending"
        assert result.centre_name_phrase == "Highlands"

    def test_pop_up_is_casual_leasing(self, parser):
        result = self.parse(parser, "pop up fashion Eastgate")
        assert result.asset_type == AssetType.CASUAL_LEASING
        assert result.product_category == "fashion"
        assert result.centre_name_phrase == "Eastgate"

    # ==========================================================================
    # Residual Phrase Tests
    # ==========================================================================

    def test_connector_words_trimmed(self, parser):
        result = self.parse(parser, "looking for space at Eastgate please")
        assert result.centre_name_phrase == "Eastgate"

    @pytest.mark.parametrize("query", [
        "Eastgate fashion 20sqm next Monday",
        "vending machines at Highlands NSW under $200/week",
        "4 tables coffee Pacific Square from 1/11 to 5/11",
        "ugg boots 3x4m Canberra ACT tomorrow",
    ])
    def test_residual_reparses_to_nothing(self, parser, query):
        """Reparsing the residual phrase yields no typed field."""
        phrase = self.parse(parser, query).centre_name_phrase
        assert self.parse(parser, phrase).typed_fields() == {}

    # ==========================================================================
    # Sanitization Tests
    # ==========================================================================

    def test_html_stripped(self, parser):
        result = self.parse(parser, "<b>Eastgate</b> &amp; fashion")
        assert "<" not in result.original
        assert result.product_category == "fashion"
        assert result.centre_name_phrase == "Eastgate"

    def test_length_limit(self, parser):
        result = self.parse(parser, "eastgate " * 60)
        assert len(result.original) <= MAX_QUERY_LENGTH

    def test_never_raises_on_noise(self, parser):
        """Garbage input still returns a filter."""
        result = self.parse(parser, "!!! ??? 99/99/99 $$$")
        assert isinstance(result, ParsedFilter)
        assert result.date_start is None

    # ==========================================================================
    # Cached Parse
    # ==========================================================================

    def test_parse_query_returns_independent_copies(self):
        first = parse_query("Eastgate fashion", today=TODAY)
        first.centre_name_phrase = "changed"
        second = parse_query("Eastgate fashion", today=TODAY)
        assert second.centre_name_phrase == "Eastgate"


class TestEntityTrie:
    """Test cases for the category trie."""

    def test_longest_match_wins(self):
        trie = EntityTrie()
        trie.insert("coffee", "coffee")
        trie.insert("coffee cart", "coffee")
        trie.insert("cart", "toys")

        matches = trie.search(["coffee", "cart", "hire"])
        assert matches[0]["canonical"] == "coffee"
        assert matches[0]["end"] - matches[0]["start"] == 2
