"""Parse Markdown into a canonical document tree.

This module wraps mistune v3's AST renderer, normalises the raw token
stream into a well-defined set of canonical types, and builds the
:class:`~criticdiff.models.Node` tree consumed by the differencer.

Canonical block kinds:
    document, heading, paragraph, block_quote, list, list_item,
    task_list_item, block_code, block_math, html_block, thematic_break,
    table, table_head, table_body, table_row, table_cell, footnotes,
    footnote_item

Canonical inline kinds:
    text, strong, emphasis, strikethrough, link, image, codespan,
    inline_math, html_inline, softbreak, linebreak, footnote_ref
"""

from __future__ import annotations

import re

import mistune
from mistune.util import unikey

from criticdiff.errors import DocumentParseError
from criticdiff.models import Node

# ---------------------------------------------------------------------------
# Mistune-to-canonical type mapping
# ---------------------------------------------------------------------------

_BLOCK_TYPE_MAP: dict[str, str] = {
    "heading": "heading",
    "paragraph": "paragraph",
    "block_quote": "block_quote",
    "list": "list",
    "list_item": "list_item",
    "task_list_item": "task_list_item",
    "block_code": "block_code",
    "table": "table",
    "thematic_break": "thematic_break",
    "block_math": "block_math",
    "block_html": "html_block",
    "footnotes": "footnotes",
    "footnote_item": "footnote_item",
    # Internal mistune types that should be normalized
    "block_text": "paragraph",
}

_INLINE_TYPE_MAP: dict[str, str] = {
    "text": "text",
    "strong": "strong",
    "emphasis": "emphasis",
    "codespan": "codespan",
    "strikethrough": "strikethrough",
    "link": "link",
    "image": "image",
    "inline_math": "inline_math",
    "softbreak": "softbreak",
    "linebreak": "linebreak",
    "inline_html": "html_inline",
    "footnote_ref": "footnote_ref",
}

_TABLE_PARTS: frozenset[str] = frozenset({
    "table_head", "table_body", "table_row", "table_cell",
})

# Types that should be silently skipped during normalization
_SKIP_TYPES: frozenset[str] = frozenset({
    "blank_line",
})

# Kinds whose value lives in ``literal`` rather than in children.
LEAF_TYPES: frozenset[str] = frozenset({
    "text",
    "codespan",
    "inline_math",
    "html_inline",
    "softbreak",
    "linebreak",
    "block_code",
    "block_math",
    "html_block",
    "thematic_break",
    "footnote_ref",
})

# Footnote definition label at the start of a line, as mistune matches it.
_FOOTNOTE_DEF_RE = re.compile(r"^ {0,4}\[\^((?:[^\\\[\]\s]|\\.){1,500})\]:", re.MULTILINE)

BLOCK_TYPES: frozenset[str] = frozenset(_BLOCK_TYPE_MAP.values()) | _TABLE_PARTS | {"document"}

INLINE_TYPES: frozenset[str] = frozenset(_INLINE_TYPE_MAP.values())


class DocumentParser:
    """Parse Markdown and normalize it to a canonical document tree."""

    def __init__(self) -> None:
        self._parser = mistune.create_markdown(
            renderer="ast",
            plugins=[
                "strikethrough",
                "table",
                "task_lists",
                "url",
                "math",
                "footnotes",
            ],
        )

    def parse(self, markdown: str) -> Node:
        """Parse *markdown* into a ``document`` node.

        Raises
        ------
        DocumentParseError
            If *markdown* is not a string or the parser fails on it.
        """
        tokens = self.parse_tokens(markdown)
        doc = Node(type="document", children=build_nodes(tokens))
        _restore_footnote_labels(doc, markdown)
        return doc

    def parse_tokens(self, markdown: str) -> list[dict]:
        """Parse markdown and return the normalized AST token list."""
        if not isinstance(markdown, str):
            raise DocumentParseError(
                f"Document source must be str, got {type(markdown).__name__}",
                context={"source_type": type(markdown).__name__},
            )
        try:
            raw_tokens = self._parser(markdown)
        except Exception as exc:
            raise DocumentParseError(
                f"Markdown parser failed: {exc}",
                context={"source_length": len(markdown)},
                cause=exc,
            ) from exc
        if isinstance(raw_tokens, str):
            return []
        return self._normalize_tokens(raw_tokens)

    def _normalize_tokens(self, tokens: list[dict]) -> list[dict]:
        """Walk the token tree and normalize every node."""
        result: list[dict] = []
        for token in tokens:
            normalized = self._normalize_token(token)
            if normalized is not None:
                result.append(normalized)
        return result

    def _normalize_token(self, token: dict) -> dict | None:
        """Normalize a single token, returning None if it should be skipped."""
        raw_type = token.get("type", "")

        if raw_type in _SKIP_TYPES:
            return None

        if raw_type in _BLOCK_TYPE_MAP:
            return self._normalize_block(token, _BLOCK_TYPE_MAP[raw_type])

        if raw_type in _INLINE_TYPE_MAP:
            return self._normalize_inline(token, _INLINE_TYPE_MAP[raw_type])

        if raw_type in _TABLE_PARTS:
            return self._normalize_table_part(token)

        # "raw" type used inside codespan children, block_code etc.
        if raw_type == "raw":
            return {"type": "text", "raw": token.get("raw", "")}

        # Unknown token: skip silently
        return None

    def _normalize_block(self, token: dict, canonical_type: str) -> dict:
        """Normalize a block-level token."""
        result: dict = {"type": canonical_type}

        attrs = token.get("attrs")
        if attrs:
            result["attrs"] = dict(attrs)

        if canonical_type == "list":
            result.setdefault("attrs", {})["tight"] = bool(token.get("tight", True))

        # mistune v3 stores code in "raw" with a trailing newline
        if canonical_type == "block_code":
            raw_code = token.get("raw", "")
            if raw_code.endswith("\n"):
                raw_code = raw_code[:-1]
            result["raw"] = raw_code
            return result

        if canonical_type in ("block_math", "html_block"):
            result["raw"] = token.get("raw", "").rstrip("\n")
            return result

        if canonical_type == "thematic_break":
            return result

        children = token.get("children")
        if children:
            result["children"] = self._normalize_tokens(children)

        return result

    def _normalize_inline(self, token: dict, canonical_type: str) -> dict:
        """Normalize an inline-level token."""
        result: dict = {"type": canonical_type}

        if canonical_type in ("text", "softbreak", "linebreak"):
            if "raw" in token:
                result["raw"] = token["raw"]
            return result

        if canonical_type in ("html_inline", "codespan", "inline_math"):
            result["raw"] = token.get("raw", "")
            return result

        if canonical_type == "footnote_ref":
            result["raw"] = token.get("raw", "")
            result["attrs"] = dict(token.get("attrs") or {})
            return result

        # Copy attrs (url, title for link/image)
        attrs = token.get("attrs")
        if attrs:
            result["attrs"] = dict(attrs)

        children = token.get("children")
        if children:
            result["children"] = self._normalize_tokens(children)

        return result

    def _normalize_table_part(self, token: dict) -> dict:
        """Normalize table sub-structure tokens (head, body, row, cell)."""
        result: dict = {"type": token["type"]}

        attrs = token.get("attrs")
        if attrs:
            result["attrs"] = dict(attrs)

        children = token.get("children")
        if children:
            result["children"] = self._normalize_tokens(children)

        return result


# ---------------------------------------------------------------------------
# Token -> Node
# ---------------------------------------------------------------------------

def build_nodes(tokens: list[dict]) -> list[Node]:
    """Convert normalized tokens to :class:`Node` objects.

    Adjacent ``text`` tokens are merged; mistune splits text runs around
    punctuation it had to inspect, which would otherwise produce spurious
    alignment positions.
    """
    nodes: list[Node] = []
    for token in tokens:
        node = build_node(token)
        if node.type == "text" and nodes and nodes[-1].type == "text":
            nodes[-1].literal += node.literal
            continue
        nodes.append(node)
    return nodes


def build_node(token: dict) -> Node:
    """Convert one normalized token (and its subtree) to a :class:`Node`."""
    node_type = token["type"]
    attrs = dict(token.get("attrs") or {})
    if node_type in LEAF_TYPES:
        return Node(type=node_type, literal=token.get("raw", ""), attrs=attrs)
    return Node(
        type=node_type,
        children=build_nodes(token.get("children") or []),
        attrs=attrs,
    )


def _restore_footnote_labels(doc: Node, markdown: str) -> None:
    """Record each footnote's label as first written in *markdown*.

    mistune folds footnote keys to upper case.  The first definition of a
    key decides its label, matching which definition mistune keeps.
    """
    labels: dict[str, str] = {}
    for match in _FOOTNOTE_DEF_RE.finditer(markdown):
        labels.setdefault(unikey(match.group(1)), match.group(1))
    for node in doc.walk():
        if node.type == "footnote_ref":
            node.attrs["label"] = labels.get(node.literal, node.literal)
        elif node.type == "footnote_item":
            key = str(node.attrs.get("key", ""))
            node.attrs["label"] = labels.get(key, key)
