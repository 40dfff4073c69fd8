"""Tests for accept-all / reject-all resolution of annotated text."""
from __future__ import annotations

from criticdiff.markup.resolve import accept_all, reject_all

ANNOTATED = "Keep {++new ++}text {--old --}here {~~a~>b~~}."


class TestResolve:
    def test_accept_all(self):
        assert accept_all(ANNOTATED) == "Keep new text here b."

    def test_reject_all(self):
        assert reject_all(ANNOTATED) == "Keep text old here a."

    def test_plain_text_untouched(self):
        assert accept_all("no spans") == "no spans"
        assert reject_all("no spans") == "no spans"

    def test_line_break_tokens_restored_inside_spans(self):
        assert accept_all("{++a<br>b++}") == "a\nb"
        assert reject_all("{~~x<br>y~>z~~}") == "x\ny"

    def test_line_break_tokens_outside_spans_kept(self):
        assert accept_all("a<br>b {++c++}") == "a<br>b c"

    def test_custom_token(self):
        assert accept_all("{++a<br/>b++}", line_break_token="<br/>") == "a\nb"
