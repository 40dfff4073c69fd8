"""Tests for markup/syntax.py: delimiters, span matching, tokenization."""
from __future__ import annotations

from criticdiff.markup.syntax import (
    SpanScanner,
    count_spans,
    deletion,
    has_deletion,
    has_insertion,
    has_substitution,
    insertion,
    substitution,
    tokenize,
)
from criticdiff.models import SpanKind


class TestBuilders:
    def test_insertion(self):
        assert insertion("x") == "{++x++}"

    def test_deletion(self):
        assert deletion("x") == "{--x--}"

    def test_substitution(self):
        assert substitution("a", "b") == "{~~a~>b~~}"


class TestSpanScanner:
    def test_insertion_match(self):
        found = SpanScanner("ab {++new++} cd").match(3)
        assert found is not None
        assert found.kind is SpanKind.INSERT
        assert (found.start, found.end) == (3, 12)
        assert found.new == "new"
        assert found.payloads == ("new",)

    def test_no_opener(self):
        assert SpanScanner("{x}").match(0) is None

    def test_unclosed(self):
        assert SpanScanner("{--never closed").match(0) is None

    def test_first_closer_wins(self):
        found = SpanScanner("{++a++}b++}").match(0)
        assert found.new == "a"

    def test_substitution_needs_arrow(self):
        assert SpanScanner("{~~no arrow~~}").match(0) is None

    def test_substitution_splits_at_first_arrow(self):
        found = SpanScanner("{~~a~>b~>c~~}").match(0)
        assert (found.old, found.new) == ("a", "b~>c")
        assert found.payloads == ("a", "b~>c")

    def test_arrow_beyond_closer_is_rejected(self):
        scanner = SpanScanner("{~~a~~} {~~b~>c~~}")
        assert scanner.match(0) is None
        found = scanner.match(8)
        assert (found.old, found.new) == ("b", "c")

    def test_empty_payload(self):
        found = SpanScanner("{++++}").match(0)
        assert found.new == ""


class TestTokenize:
    def test_plain_only(self):
        spans = tokenize("no markup here")
        assert [s.kind for s in spans] == [SpanKind.PLAIN]

    def test_mixed_segments(self):
        text = "Keep {++new++} and {--old--} or {~~a~>b~~}."
        spans = tokenize(text)
        assert [s.kind for s in spans] == [
            SpanKind.PLAIN, SpanKind.INSERT, SpanKind.PLAIN,
            SpanKind.DELETE, SpanKind.PLAIN, SpanKind.SUBSTITUTE, SpanKind.PLAIN,
        ]
        assert "".join(s.text for s in spans) == text

    def test_braces_in_payload(self):
        spans = tokenize("{++a {b} c++}")
        assert len(spans) == 1
        assert spans[0].new == "a {b} c"

    def test_unmatched_substitution_stays_plain(self):
        spans = tokenize("{~~a~~} {~~b~>c~~}")
        assert [s.kind for s in spans] == [SpanKind.PLAIN, SpanKind.SUBSTITUTE]

    def test_empty(self):
        assert tokenize("") == []


class TestPredicates:
    def test_count_spans(self):
        assert count_spans("{++a++} b {--c--}") == 2
        assert count_spans("{++unclosed") == 0

    def test_has_kind(self):
        text = "{++a++} and {~~b~>c~~}"
        assert has_insertion(text)
        assert has_substitution(text)
        assert not has_deletion(text)
