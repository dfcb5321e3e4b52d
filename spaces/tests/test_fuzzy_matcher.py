"""
Tests for edit-distance matching of centre names

Run with: python -m pytest spaces/tests/test_fuzzy_matcher.py -v
"""

import pytest

from spaces.services.fuzzy_matcher import (
    best_field_distance,
    field_distance,
    fuzzy_match,
    levenshtein_distance,
    max_distance_for,
    rank_by_distance,
)


class TestLevenshtein:

    @pytest.mark.parametrize("a, b, expected", [
        ("eastgate", "eastgate", 0),
        ("eastgte", "eastgate", 1),
        ("kitten", "sitting", 3),
        ("", "abc", 3),
        ("abc", "", 3),
    ])
    def test_distance(self, a, b, expected):
        assert levenshtein_distance(a, b) == expected

    def test_symmetric(self):
        assert levenshtein_distance("pacific", "pacfic") == levenshtein_distance("pacfic", "pacific")


class TestFieldDistance:

    def test_prefix_of_longer_name(self):
        assert field_distance("highlnd", "Highlands Marketplace") == 2

    def test_single_word_of_name(self):
        assert field_distance("marketplce", "Highlands Marketplace") == 1

    def test_case_insensitive(self):
        assert field_distance("EASTGATE", "eastgate bondi junction") == 0

    def test_missing_value(self):
        assert field_distance("east", None) is None
        assert field_distance("east", "") is None

    def test_out_of_budget(self):
        assert field_distance("zzzzzz", "Pacific Square", max_distance=1) is None

    def test_best_across_fields(self):
        values = ["Pacific Square", "Maroochydore", "Sunshine Coast"]
        assert best_field_distance("maroochydor", values, max_distance=3) == 0
        assert best_field_distance("maroochidore", values, max_distance=3) == 1
        assert best_field_distance("qqqqqqqq", values, max_distance=2) is None

    def test_budget_scales_with_length(self):
        assert max_distance_for("eastgte", 0.3) == 2
        assert max_distance_for("abc", 0.3) == 0


class TestFuzzyMatch:

    def test_best_candidate(self):
        assert fuzzy_match("eastgte", {"eastgate", "westfield"}) == ("eastgate", 1)

    def test_exact(self):
        assert fuzzy_match("Pacific", ["pacific", "pacifica"]) == ("pacific", 0)

    def test_short_queries_need_exact_match(self):
        assert fuzzy_match("qd", ["qld"]) is None
        assert fuzzy_match("qld", ["qld"]) == ("qld", 0)

    def test_no_match(self):
        assert fuzzy_match("brisbane", ["sydney", "hobart"]) is None


def test_rank_by_distance_breaks_ties_by_name():
    items = [(1, "Pacific Square", "p"), (0, "Eastgate", "e"), (1, "Highlands", "h")]
    assert rank_by_distance(items) == ["e", "h", "p"]
