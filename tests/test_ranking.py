"""
Pinboard API: Search Ranking and Autocomplete Tests
=====================================================

What:  Pure-function tests for services/ranking.py.
How:   Pins are SimpleNamespace stand-ins; no database involved.
"""

from types import SimpleNamespace

from pinboard.services.ranking import (
    MAX_SUGGESTIONS,
    build_suggestions,
    clean_word,
    extract_keywords,
    generate_variants,
    like_pattern,
    rank_pins,
    rank_suggestions,
    score_pin,
    search_terms,
)


def _pin(title="", description="", category="general", tags=None, likes=0, comments=0):
    return SimpleNamespace(
        title=title,
        description=description,
        category=category,
        tags=tags or [],
        likes_count=likes,
        comments_count=comments,
    )


class TestSearchTerms:

    def test_like_pattern_escapes_wildcards(self):
        assert like_pattern("50%_off") == "%50\\%\\_off%"
        assert like_pattern("a\\b") == "%a\\\\b%"
        assert like_pattern("nike") == "%nike%"

    def test_plural_es_and_s_forms(self):
        assert search_terms("Dresses") == ["dresses", "dress", "dresse"]

    def test_plain_s_plural(self):
        assert search_terms("cats") == ["cats", "cat"]

    def test_singular_query_is_unchanged(self):
        assert search_terms("nike") == ["nike"]

    def test_blank_query(self):
        assert search_terms("   ") == []


class TestScorePin:

    def test_exact_title_outranks_prefix_and_substring(self):
        exact = score_pin(_pin(title="nike"), "nike")
        prefix = score_pin(_pin(title="nike shoes"), "nike")
        contains = score_pin(_pin(title="red nike shoes"), "nike")
        assert exact == 105
        assert prefix == 70
        assert contains == 50
        assert exact > prefix > contains

    def test_title_beats_tag_beats_description_beats_category(self):
        title = score_pin(_pin(title="sunset"), "sunset")
        tag = score_pin(_pin(title="x", tags=["sunset"]), "sunset")
        description = score_pin(_pin(title="x", description="a sunset at sea"), "sunset")
        category = score_pin(_pin(title="x", category="sunsets"), "sunset")
        assert title > tag > description > category

    def test_exact_tag_bonus(self):
        assert score_pin(_pin(tags=["nike"]), "nike") == 45
        assert score_pin(_pin(tags=["nike air"]), "nike") == 40

    def test_engagement_breaks_ties(self):
        quiet = _pin(title="red car")
        popular = _pin(title="red car", likes=2, comments=1)
        assert score_pin(popular, "car") - score_pin(quiet, "car") == 8

    def test_case_insensitive(self):
        assert score_pin(_pin(title="NIKE"), "Nike") == 105


class TestRankPins:

    def test_orders_by_score(self):
        weak = _pin(title="x", category="art")
        strong = _pin(title="art")
        middle = _pin(title="x", tags=["art"])
        assert rank_pins([weak, strong, middle], "art") == [strong, middle, weak]

    def test_equal_scores_keep_input_order(self):
        first = _pin(title="blue sky")
        second = _pin(title="blue sea")
        assert rank_pins([first, second], "blue") == [first, second]


class TestKeywords:

    def test_clean_word_strips_punctuation(self):
        assert clean_word("  Nike's AIR-max! ") == "nikes airmax"

    def test_extract_keywords_skips_stopwords(self):
        pin = _pin(title="The art of tea", category="Food", tags=["green tea"])
        keywords = extract_keywords(pin)
        assert "the" not in keywords
        assert "of" not in keywords
        assert "art" in keywords
        assert "food" in keywords
        assert "green tea" in keywords
        # Bigrams touching a stop word are dropped
        assert "art of" not in keywords

    def test_generate_variants(self):
        variants = generate_variants("Nike")
        assert variants[0] == "nike"
        assert "nike aesthetic" in variants
        assert "nike wallpaper" in variants


class TestRankSuggestions:

    def test_prefix_then_contains_then_suffix(self):
        candidates = ["air nike", "nike air", "my nike shoes"]
        assert rank_suggestions(candidates, "nike") == ["nike air", "my nike shoes", "air nike"]

    def test_deduplicates_and_limits(self):
        candidates = [f"cat {i}" for i in range(20)] + ["cat 1"]
        result = rank_suggestions(candidates, "cat")
        assert len(result) == MAX_SUGGESTIONS
        assert len(set(result)) == len(result)

    def test_empty_query(self):
        assert rank_suggestions(["anything"], "!!!") == []


class TestBuildSuggestions:

    def test_suggestions_start_with_query(self):
        pins = [
            _pin(title="Nike Air Max", tags=["sneakers"]),
            _pin(title="Nike running", tags=["nike"]),
        ]
        suggestions = build_suggestions(pins, "nik")
        assert suggestions
        assert len(suggestions) <= MAX_SUGGESTIONS
        assert all(s.startswith("nik") for s in suggestions)
        assert suggestions[0] == "nike"

    def test_multi_word_query_uses_variants(self):
        pins = [_pin(title="Nike", tags=["nike"])]
        assert build_suggestions(pins, "nike aes") == ["nike aesthetic"]

    def test_no_pins_no_suggestions(self):
        assert build_suggestions([], "nike") == []
