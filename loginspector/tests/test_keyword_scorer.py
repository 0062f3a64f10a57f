"""Tests for deterministic keyword scoring."""

import pytest

from loginspector.retriever.keyword_scorer import (
    KeywordFallbackScorer,
    QueryKeywordScorer,
    normalize_tags,
)


@pytest.fixture
def scorer():
    return KeywordFallbackScorer()


class TestKeywordFallbackScorer:
    def test_structured_field_match_scores_high(self, scorer):
        content = "2024-01-15 14:20:15 ERROR request_id: req_12345 failed with timeout"
        assert scorer.score(content, "req_12345") >= 0.9

    def test_absent_identifier_scores_zero(self, scorer):
        assert scorer.score("user logged in", "req_12345") == 0.0

    def test_empty_inputs_score_zero(self, scorer):
        assert scorer.score("", "req_1") == 0.0
        assert scorer.score("req_1", "") == 0.0
        assert scorer.score("req_1", "   ") == 0.0

    def test_components_add_up(self, scorer):
        # one occurrence at offset 0, whole word, no field marker
        assert scorer.score("abc def", "abc") == pytest.approx(0.3 + 0.2 + 0.3)

    def test_partial_word_gets_no_boundary_bonus(self, scorer):
        # "abc" inside "xabcx": occurrence + position only
        content = "xabcx"
        expected = 0.3 + 0.2 * (1 - 1 / len(content))
        assert scorer.score(content, "abc") == pytest.approx(expected)

    def test_earlier_mentions_score_higher(self, scorer):
        early = scorer.score("zzz happened in the payment service", "zzz")
        late = scorer.score("in the payment service happened zzz", "zzz")
        assert early > late

    def test_case_insensitive(self, scorer):
        assert scorer.score("TRACE_ID=ABC-1 done", "abc-1") == pytest.approx(1.0)

    @pytest.mark.parametrize("content", [
        'request_id=req_9 accepted',
        '{"trace_id": "req_9", "msg": "ok"}',
        'session_id req_9 opened',
        'Transaction_ID:req_9 settled',
    ])
    def test_field_marker_variants(self, scorer, content):
        without_marker = scorer.score(content.replace("_id", "_key").replace("_ID", "_KEY"), "req_9")
        assert scorer.score(content, "req_9") > without_marker

    def test_score_is_capped(self, scorer):
        content = "request_id: r1 r1 r1 r1 r1 r1"
        assert scorer.score(content, "r1") == 1.0

    def test_regex_characters_in_identifier(self, scorer):
        assert 0.0 < scorer.score("order (a+b)* failed", "(a+b)*") <= 1.0


class TestQueryKeywordScorer:
    def test_literal_match_and_words(self):
        scorer = QueryKeywordScorer()
        metadata = {"content": "Payment failed at gateway", "category": "", "level": "info"}
        # +10 literal, +2 "payment", +2 "failed", +3 synonym "gateway"
        assert scorer.score(metadata, "payment failed") == pytest.approx(17 / 20)

    def test_category_level_and_tags(self):
        scorer = QueryKeywordScorer()
        metadata = {"content": "x", "category": "security", "level": "error", "tags": ["security", "auth"]}
        # +8 category, +5 level, +6 tag "security"
        assert scorer.score(metadata, "security error") == pytest.approx(19 / 20)

    def test_score_is_capped(self):
        scorer = QueryKeywordScorer()
        metadata = {
            "content": "database connection failed: sql db postgres query timeout",
            "category": "database",
            "tags": ["database"],
        }
        assert scorer.score(metadata, "database") == 1.0

    def test_empty_category_does_not_match_everything(self):
        scorer = QueryKeywordScorer()
        assert scorer.score({"content": "nothing relevant"}, "payment") == 0.0

    def test_string_tag_is_accepted(self):
        scorer = QueryKeywordScorer()
        assert scorer.score({"content": "", "tags": "payment"}, "payment") == pytest.approx(6 / 20)

    def test_blank_query(self):
        assert QueryKeywordScorer().score({"content": "anything"}, "  ") == 0.0


class TestNormalizeTags:
    def test_shapes(self):
        assert normalize_tags(None) == []
        assert normalize_tags("a") == ["a"]
        assert normalize_tags("") == []
        assert normalize_tags(["a", None, "b"]) == ["a", "b"]
        assert normalize_tags(42) == []
