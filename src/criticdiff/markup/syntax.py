"""CriticMarkup delimiters, span matching, and tokenization.

Three span kinds are recognised::

    {++inserted++}
    {--deleted--}
    {~~old~>new~~}

A span runs from its opener to the *first* matching closer after it, so
payloads may contain braces and other delimiters' characters but never
their own closer.  Substitutions split at the first ``~>``.

:class:`SpanScanner` caches the next closer position per span kind, which
keeps repeated matching over one text linear: an opener with no closer
left is rejected in constant time.
"""

from __future__ import annotations

from dataclasses import dataclass

from criticdiff.models import Span, SpanKind

INSERT_OPEN = "{++"
INSERT_CLOSE = "++}"
DELETE_OPEN = "{--"
DELETE_CLOSE = "--}"
SUBSTITUTE_OPEN = "{~~"
SUBSTITUTE_CLOSE = "~~}"
SUBSTITUTE_ARROW = "~>"

_CLOSERS: dict[str, tuple[SpanKind, str]] = {
    INSERT_OPEN: (SpanKind.INSERT, INSERT_CLOSE),
    DELETE_OPEN: (SpanKind.DELETE, DELETE_CLOSE),
    SUBSTITUTE_OPEN: (SpanKind.SUBSTITUTE, SUBSTITUTE_CLOSE),
}

_DELIMITER_WIDTH = 3


def insertion(text: str) -> str:
    return f"{INSERT_OPEN}{text}{INSERT_CLOSE}"


def deletion(text: str) -> str:
    return f"{DELETE_OPEN}{text}{DELETE_CLOSE}"


def substitution(old: str, new: str) -> str:
    return f"{SUBSTITUTE_OPEN}{old}{SUBSTITUTE_ARROW}{new}{SUBSTITUTE_CLOSE}"


@dataclass(frozen=True)
class SpanMatch:
    """A span found by :meth:`SpanScanner.match`.

    ``start`` is the offset of ``{`` and ``end`` the offset just past the
    closing ``}``.
    """

    kind: SpanKind
    start: int
    end: int
    old: str = ""
    new: str = ""

    @property
    def payloads(self) -> tuple[str, ...]:
        if self.kind is SpanKind.INSERT:
            return (self.new,)
        if self.kind is SpanKind.DELETE:
            return (self.old,)
        return (self.old, self.new)


class SpanScanner:
    """Find CriticMarkup spans in one text, in amortised linear time.

    Callers must query openers at non-decreasing offsets.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        # Next known position per closer / arrow; -1 once none is left.
        self._next: dict[str, int] = {}

    def _find(self, needle: str, start: int) -> int:
        known = self._next.get(needle)
        if known is not None and (known == -1 or known >= start):
            return known
        found = self._text.find(needle, start)
        self._next[needle] = found
        return found

    def match(self, pos: int) -> SpanMatch | None:
        """Return the span opening at *pos*, or ``None``."""
        opener = self._text[pos:pos + _DELIMITER_WIDTH]
        entry = _CLOSERS.get(opener)
        if entry is None:
            return None
        kind, closer = entry
        body_start = pos + _DELIMITER_WIDTH
        close = self._find(closer, body_start)
        if close == -1:
            return None
        end = close + _DELIMITER_WIDTH

        if kind is SpanKind.INSERT:
            return SpanMatch(kind, pos, end, new=self._text[body_start:close])
        if kind is SpanKind.DELETE:
            return SpanMatch(kind, pos, end, old=self._text[body_start:close])

        arrow = self._find(SUBSTITUTE_ARROW, body_start)
        if arrow == -1 or arrow + len(SUBSTITUTE_ARROW) > close:
            return None
        return SpanMatch(
            kind,
            pos,
            end,
            old=self._text[body_start:arrow],
            new=self._text[arrow + len(SUBSTITUTE_ARROW):close],
        )


def tokenize(text: str) -> list[Span]:
    """Split *text* into plain and marked :class:`Span` segments.

    Concatenating the ``text`` of every segment reproduces the input.
    Fenced code is not treated specially.
    """
    spans: list[Span] = []
    scanner = SpanScanner(text)
    plain_start = 0
    i = 0
    n = len(text)
    while i < n:
        brace = text.find("{", i)
        if brace == -1:
            break
        found = scanner.match(brace)
        if found is None:
            i = brace + 1
            continue
        if plain_start < brace:
            spans.append(Span(SpanKind.PLAIN, text[plain_start:brace]))
        spans.append(Span(found.kind, text[found.start:found.end], found.old, found.new))
        i = plain_start = found.end
    if plain_start < n:
        spans.append(Span(SpanKind.PLAIN, text[plain_start:]))
    return spans


def count_spans(text: str) -> int:
    """Number of CriticMarkup spans in *text*."""
    return sum(1 for span in tokenize(text) if span.is_marked)


def has_insertion(text: str) -> bool:
    return any(span.kind is SpanKind.INSERT for span in tokenize(text))


def has_deletion(text: str) -> bool:
    return any(span.kind is SpanKind.DELETE for span in tokenize(text))


def has_substitution(text: str) -> bool:
    return any(span.kind is SpanKind.SUBSTITUTE for span in tokenize(text))
