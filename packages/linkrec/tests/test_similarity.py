"""Tests for field-level similarity scoring."""

import pytest

from linkrec.similarity import similarity, word_similarity


class TestExact:
    def test_identical(self):
        assert similarity("Jon Smith", "Jon Smith", "exact") == 1.0

    def test_case_and_whitespace_insensitive(self):
        assert similarity("  JON@x.com ", "jon@X.COM", "exact") == 1.0

    def test_no_partial_credit(self):
        assert similarity("Jon Smith", "Jon Smyth", "exact") == 0.0


class TestEmptyInput:
    @pytest.mark.parametrize("mode", ["exact", "fuzzy", "word", "contains"])
    def test_empty_side_scores_zero(self, mode):
        assert similarity("abc", "", mode) == 0.0
        assert similarity("", "abc", mode) == 0.0

    def test_none_and_blank(self):
        assert similarity(None, "abc", "fuzzy") == 0.0
        assert similarity("   ", "abc", "fuzzy") == 0.0


class TestFuzzy:
    def test_levenshtein_ratio(self):
        # kitten -> sitting is 3 edits over 7 chars
        assert similarity("kitten", "sitting", "fuzzy") == pytest.approx(4 / 7)

    def test_symmetric(self):
        a, b = "Jonathon Smith", "Jonathan Smyth"
        assert similarity(a, b, "fuzzy") == similarity(b, a, "fuzzy")

    def test_trims_before_comparing(self):
        assert similarity("  abc ", "abc", "fuzzy") == 1.0

    def test_case_sensitive(self):
        assert similarity("ABC", "abc", "fuzzy") == 0.0

    def test_unknown_mode_falls_back_to_fuzzy(self):
        assert similarity("kitten", "sitting", "soundex") == similarity("kitten", "sitting", "fuzzy")


class TestWord:
    def test_order_irrelevant(self):
        assert similarity("Jon Smith", "smith jon", "word") == 1.0

    def test_shared_over_larger_set(self):
        assert similarity("a b c d e", "a b c d x", "word") == pytest.approx(0.8)
        assert similarity("jon smith", "jon", "word") == pytest.approx(0.5)

    def test_duplicates_ignored(self):
        assert word_similarity("jon jon smith", "jon smith") == 1.0

    def test_near_miss_tokens_do_not_count(self):
        assert similarity("Jonathon Smyth", "Jon Smith", "word") == 0.0


class TestContains:
    def test_equal(self):
        assert similarity("abc", "abc", "contains") == 1.0

    def test_one_contains_other(self):
        assert similarity("abc", "abcd", "contains") == 0.9
        assert similarity("ABCD", "bc", "contains") == 0.9

    def test_disjoint(self):
        assert similarity("abc", "xyz", "contains") == 0.0
