"""Accept or reject every change in an annotated text.

These mirror the editor's "accept all" / "reject all" actions: each span is
replaced by one of its sides, and line-break tokens that the normalizer put
inside spans become newlines again.  Text outside spans is kept as is.
"""

from __future__ import annotations

from criticdiff.config import DEFAULT_LINE_BREAK_TOKEN
from criticdiff.models import SpanKind

from .syntax import tokenize


def _restore(payload: str, line_break_token: str) -> str:
    return payload.replace(line_break_token, "\n")


def accept_all(text: str, line_break_token: str = DEFAULT_LINE_BREAK_TOKEN) -> str:
    """Keep insertions and the new side of substitutions; drop deletions."""
    parts: list[str] = []
    for span in tokenize(text):
        if span.kind is SpanKind.PLAIN:
            parts.append(span.text)
        elif span.kind is not SpanKind.DELETE:
            parts.append(_restore(span.new, line_break_token))
    return "".join(parts)


def reject_all(text: str, line_break_token: str = DEFAULT_LINE_BREAK_TOKEN) -> str:
    """Keep deletions and the old side of substitutions; drop insertions."""
    parts: list[str] = []
    for span in tokenize(text):
        if span.kind is SpanKind.PLAIN:
            parts.append(span.text)
        elif span.kind is not SpanKind.INSERT:
            parts.append(_restore(span.old, line_break_token))
    return "".join(parts)
