"""Prepare annotated Markdown for a block-structured rich-text importer.

The importer parses block syntax line by line, so two constructs in a
rendered annotation stream would be misread:

* **Newlines inside a span.**  A blank line inside ``{++ ... ++}`` ends the
  enclosing block and orphans the closing delimiter.  Every newline
  (``\\r\\n``, ``\\r``, ``\\n``) strictly inside a span is replaced with the
  configured line-break token (``<br>`` by default).
* **Headings that do not start a line.**  A heading marker (one to six
  ``#`` followed by a space or tab) that follows whitespace on a line that
  already has content is moved to a new line.  A span whose payload starts
  with a heading marker is moved onto its own line.

The pass is a single left-to-right scan with no regular-expression
backtracking, so it runs in time linear in the input.  Fenced code blocks
are copied verbatim.  The pass is idempotent: its output is a fixed point.

Usage::

    from criticdiff.markup.normalizer import normalize

    normalize("Text # Heading")   # 'Text \\n# Heading'
"""

from __future__ import annotations

import re

from criticdiff.config import CriticDiffConfig

from .syntax import SpanMatch, SpanScanner

_HEADING_MAX = 6

# Opening fence after optional indentation, quote markers and list marker.
_FENCE_OPEN_RE = re.compile(r"[ \t>]*(?:(?:[-*+]|\d{1,9}[.)])[ \t]+)?(`{3,}|~{3,})")
_FENCE_CLOSE_RE = re.compile(r"[ \t>]*(`{3,}|~{3,})[ \t]*$")


def _heading_run(text: str, pos: int) -> int:
    """Length of the heading marker at *pos*, or 0 if there is none."""
    end = pos
    limit = len(text)
    while end < limit and text[end] == "#":
        end += 1
    run = end - pos
    if 1 <= run <= _HEADING_MAX and end < limit and text[end] in " \t":
        return run
    return 0


def _starts_with_heading(payload: str) -> bool:
    return bool(payload) and payload[0] == "#" and _heading_run(payload, 0) > 0


def _line_end(text: str, pos: int) -> int:
    """Offset just past the line starting at *pos* (newline included)."""
    newline = text.find("\n", pos)
    return len(text) if newline == -1 else newline + 1


class CriticMarkupNormalizer:
    """Single-pass normalizer for CriticMarkup-annotated Markdown.

    Parameters
    ----------
    config:
        Supplies ``line_break_token``.
    """

    def __init__(self, config: CriticDiffConfig | None = None) -> None:
        self._config = config or CriticDiffConfig()

    def normalize(self, text: str) -> str:
        """Return the normalized form of *text*."""
        if not text:
            return text

        out: list[str] = []
        scanner = SpanScanner(text)
        n = len(text)
        i = 0
        at_line_start = True
        line_begin = True
        fence: str | None = None

        while i < n:
            if fence is not None:
                end = _line_end(text, i)
                line = text[i:end]
                out.append(line)
                closer = _FENCE_CLOSE_RE.match(line.rstrip("\r\n"))
                if closer and closer.group(1)[0] == fence[0] and len(closer.group(1)) >= len(fence):
                    fence = None
                i = end
                at_line_start = line_begin = True
                continue

            if line_begin:
                line_begin = False
                opener = _FENCE_OPEN_RE.match(text, i)
                end = _line_end(text, i)
                if opener is not None and not (
                    opener.group(1)[0] == "`" and "`" in text[opener.end():end]
                ):
                    fence = opener.group(1)
                    out.append(text[i:end])
                    i = end
                    continue

            ch = text[i]

            if ch == "\n" or ch == "\r":
                out.append(ch)
                i += 1
                at_line_start = line_begin = True
                continue

            if ch == "{":
                span = scanner.match(i)
                if span is not None:
                    i, at_line_start = self._emit_span(text, span, out, at_line_start)
                    line_begin = at_line_start
                    continue

            if ch == "#" and not at_line_start and i > 0 and text[i - 1] in " \t":
                run = _heading_run(text, i)
                if run:
                    out.append("\n")
                    out.append(text[i:i + run])
                    i += run
                    continue

            if ch == "#":
                # Copy the whole run so its tail is never read as a new marker.
                end = i
                while end < n and text[end] == "#":
                    end += 1
                out.append(text[i:end])
                i = end
                at_line_start = False
                continue

            out.append(ch)
            if ch not in " \t":
                at_line_start = False
            i += 1

        return "".join(out)

    def _emit_span(
        self,
        text: str,
        span: SpanMatch,
        out: list[str],
        at_line_start: bool,
    ) -> tuple[int, bool]:
        """Append *span* with neutralized payload; return (next offset, line start)."""
        token = self._config.line_break_token
        raw = text[span.start:span.end]
        neutral = raw.replace("\r\n", token).replace("\r", token).replace("\n", token)
        heading = any(_starts_with_heading(payload) for payload in span.payloads)

        if heading and not at_line_start:
            out.append("\n")
        out.append(neutral)

        end = span.end
        if heading and end < len(text) and text[end] not in "\r\n":
            out.append("\n")
            return end, True
        return end, False


_default = CriticMarkupNormalizer()


def normalize(text: str, config: CriticDiffConfig | None = None) -> str:
    """Normalize *text* with *config* (or the default configuration)."""
    if config is None:
        return _default.normalize(text)
    return CriticMarkupNormalizer(config).normalize(text)
