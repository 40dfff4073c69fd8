"""Tests for fingerprints and the similarity oracle."""
from __future__ import annotations

import pytest

from criticdiff.diff.similarity import (
    WEIGHT_SCALE,
    SimilarityScorer,
    affix_ratio,
    text_similarity,
    word_overlap,
)
from criticdiff.document.parser import DocumentParser
from criticdiff.document.serializer import MarkdownSerializer
from criticdiff.models import Node


def _first_block(parser: DocumentParser, text: str) -> Node:
    return parser.parse(text).children[0]


@pytest.fixture
def scorer(serializer: MarkdownSerializer) -> SimilarityScorer:
    return SimilarityScorer(serializer, min_similarity=0.3, kind_weight=0.5)


class TestTextMeasures:
    def test_affix_ratio_identical(self):
        assert affix_ratio("abc", "abc") == 1.0

    def test_affix_ratio_empty_side(self):
        assert affix_ratio("", "abc") == 0.0

    def test_affix_ratio_counts_prefix_and_suffix(self):
        assert affix_ratio("abcd", "abxd") == pytest.approx(0.75)

    def test_affix_ratio_on_tuples(self):
        assert affix_ratio(("a", "b"), ("a", "c")) == pytest.approx(0.5)

    def test_affix_ratio_does_not_double_count_overlap(self):
        # "aaa" vs "aa": prefix covers the shorter side completely.
        assert affix_ratio("aaa", "aa") == pytest.approx(2 / 3)

    def test_word_overlap(self):
        assert word_overlap("a b", "b c") == pytest.approx(1 / 3)

    def test_word_overlap_blank(self):
        assert word_overlap("", "") == 1.0
        assert word_overlap(" ", "") == 0.0

    def test_text_similarity_takes_the_larger_measure(self):
        # Reordered words share no affix but every word.
        assert text_similarity("red green blue", "blue green red") == 1.0


class TestScorer:
    def test_same_across_parses(self, scorer: SimilarityScorer, parser: DocumentParser):
        a = _first_block(parser, "Some *text* here.")
        b = _first_block(parser, "Some *text* here.")
        assert a is not b
        assert scorer.same(a, b)

    def test_different_content_not_same(self, scorer: SimilarityScorer, parser: DocumentParser):
        assert not scorer.same(
            _first_block(parser, "One."), _first_block(parser, "Two."),
        )

    def test_fingerprint_is_memoised(self, scorer: SimilarityScorer, parser: DocumentParser):
        node = _first_block(parser, "Paragraph.")
        assert scorer.fingerprint(node) is scorer.fingerprint(node)

    def test_identical_weight(self, scorer: SimilarityScorer, parser: DocumentParser):
        a = _first_block(parser, "Same.")
        b = _first_block(parser, "Same.")
        assert scorer.weight(a, b) == WEIGHT_SCALE // 2 + WEIGHT_SCALE

    def test_kind_mismatch_has_no_weight(self, scorer: SimilarityScorer, parser: DocumentParser):
        heading = _first_block(parser, "# Same")
        para = _first_block(parser, "Same")
        assert scorer.weight(heading, para) == 0

    def test_unrelated_leaves_have_no_weight(self, scorer: SimilarityScorer):
        assert scorer.weight(Node("text", literal="alpha"), Node("text", literal="zulu")) == 0

    def test_similar_leaves_have_weight(self, scorer: SimilarityScorer):
        a = Node("text", literal="The quick brown fox.")
        b = Node("text", literal="The slow brown fox.")
        assert scorer.weight(a, b) > WEIGHT_SCALE // 2

    def test_containers_blend_structure(self, scorer: SimilarityScorer, parser: DocumentParser):
        # Same child kinds, unrelated text: structure alone keeps the pair.
        a = _first_block(parser, "Beta.")
        b = _first_block(parser, "Gamma delta.")
        assert 0.5 <= scorer.similarity(a, b) < 1.0

    def test_min_similarity_threshold(self, serializer: MarkdownSerializer):
        strict = SimilarityScorer(serializer, min_similarity=1.0, kind_weight=0.5)
        a = Node("text", literal="The quick brown fox.")
        b = Node("text", literal="The slow brown fox.")
        assert strict.weight(a, b) == 0

    def test_zero_kind_weight_still_positive(self, serializer: MarkdownSerializer):
        scorer = SimilarityScorer(serializer, min_similarity=0.0, kind_weight=0.0)
        assert scorer.weight(Node("text", literal="a"), Node("text", literal="b")) >= 1
