"""Tests for the text-scanning rule levels."""

import pytest

from content_intel.errors import InvalidInputError
from content_intel.matching.rules import (
    RuleLevel,
    build_article_text,
    coerce_rule_level,
    extract_context,
    find_basic_matches,
    find_context_aware_matches,
    find_matches,
    headline_end,
)


class TestBuildArticleText:
    def test_headline_block(self) -> None:
        assert build_article_text("Title", "Body") == "HEADLINE: Title\n\nBody"

    def test_body_only(self) -> None:
        assert build_article_text(None, "Body") == "Body"

    def test_sample_limit_truncates_body(self) -> None:
        assert build_article_text("T", "abcdef", sample_limit=3) == "HEADLINE: T\n\nabc"

    def test_headline_end(self) -> None:
        text = build_article_text("Fire in Lyon", "Crews arrived.")
        assert text[: headline_end(text)] == "HEADLINE: Fire in Lyon"
        assert headline_end("No headline here") == 0


class TestBasicMatches:
    def test_word_boundary_and_case(self) -> None:
        text = "Paris is big. PARIS again. Parisian food. paris."
        [match] = find_basic_matches(text, ["Paris"])
        assert match.count == 3
        assert match.positions == [0, 14, 42]
        assert match.score is None
        assert match.weight == 3.0

    def test_regex_metacharacters_are_literal(self) -> None:
        assert find_basic_matches("St. Louis and StX Louis", ["St. Louis"])[0].count == 1

    def test_no_hits_and_blank_names(self) -> None:
        assert find_basic_matches("Nothing here", ["Paris", "", "  "]) == []


class TestContextAwareMatches:
    def test_headline_and_early_position_boost(self) -> None:
        text = build_article_text("Lyon floods", "x" * 200 + " Lyon")
        [match] = find_context_aware_matches(text, ["Lyon"])
        # headline x2, first hit in first 10% x1.5
        assert match.score == pytest.approx(2 * 2 * 1.5)

    def test_late_body_hit_unboosted(self) -> None:
        text = "x" * 200 + " Lyon"
        [match] = find_context_aware_matches(text, ["Lyon"])
        assert match.score == 1.0


class TestDispatch:
    def test_level_zero_yields_nothing(self) -> None:
        assert find_matches("Paris", ["Paris"], RuleLevel.NONE) == []

    @pytest.mark.parametrize("level", [RuleLevel.ENTITY_DISAMBIGUATION, RuleLevel.NLP_ENHANCED])
    def test_higher_levels_use_context_rule(self, level) -> None:
        text = "x" * 100 + " Paris"
        assert find_matches(text, ["Paris"], level)[0].score == 1.0

    @pytest.mark.parametrize("bad", [5, -1, "two", None])
    def test_unknown_level_rejected(self, bad) -> None:
        with pytest.raises(InvalidInputError):
            coerce_rule_level(bad)


def test_extract_context_window() -> None:
    text = "a" * 60 + "Paris" + "b" * 60
    matches = find_basic_matches(text, ["Paris"])
    [snippet] = extract_context(text, matches, window=10)
    assert snippet == "a" * 10 + "Paris" + "b" * 10
