"""Document tree to Markdown serializer.

Converts :class:`~criticdiff.models.Node` trees back into Markdown source.
The output is the "plain serialized form" used for unchanged regions of
an annotated document and for the payload of every markup span, so the
annotation renderer reuses the same shell helpers (:meth:`heading_shell`,
:meth:`quote_shell`, :meth:`item_shell`, :meth:`inline_shell`,
:meth:`join_blocks`) to guarantee that an all-``EQUAL`` diff renders to
exactly :meth:`MarkdownSerializer.serialize` of the document.

Usage::

    from criticdiff.document.serializer import MarkdownSerializer

    md = MarkdownSerializer().serialize(tree)
"""

from __future__ import annotations

import re
from collections.abc import Callable as _Callable
from collections.abc import Iterable

from criticdiff.models import Node

from .parser import INLINE_TYPES

BLOCK_SEPARATOR = "\n\n"
TIGHT_ITEM_SEPARATOR = "\n"

# Continuation indent of a footnote body; mistune accepts one to four spaces.
FOOTNOTE_INDENT = "    "

# Characters escaped in text runs so a re-parse sees the same inline structure.
_ESCAPE_RE = re.compile(r"([\\`*_\[\]{}])")

_BACKTICK_RUN_RE = re.compile(r"`+")

_INLINE_DELIMITERS: dict[str, str] = {
    "emphasis": "*",
    "strong": "**",
    "strikethrough": "~~",
}


def markdown_escape(text: str) -> str:
    """Escape the characters that would otherwise start inline markup."""
    return _ESCAPE_RE.sub(r"\\\1", text)


def plain_text(node: Node) -> str:
    """Concatenate every literal in *node*'s subtree."""
    if not node.children:
        return node.literal
    return "".join(plain_text(child) for child in node.children)


def footnote_label(node: Node) -> str:
    """Label of a ``footnote_ref`` or ``footnote_item`` as written in the source."""
    label = node.attrs.get("label")
    if label:
        return str(label)
    if node.type == "footnote_ref":
        return node.literal
    return str(node.attrs.get("key", ""))


def opens_with_paragraph(node: Node) -> bool:
    return not node.children or node.children[0].type == "paragraph"


def _longest_backtick_run(text: str) -> int:
    return max((len(m) for m in _BACKTICK_RUN_RE.findall(text)), default=0)


class MarkdownSerializer:
    """Stateless Markdown serializer for document trees."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def serialize(self, node: Node) -> str:
        """Serialize any node (document, block, or inline) to Markdown."""
        if node.type == "document":
            return self.join_blocks(self.block(child) for child in node.children)
        if node.type in INLINE_TYPES:
            return self.inline(node)
        return self.block(node)

    def serialize_nodes(self, nodes: Iterable[Node]) -> str:
        """Serialize a run of sibling nodes.

        Inline siblings are concatenated; block siblings are joined with a
        blank line.
        """
        nodes = list(nodes)
        if nodes and all(n.type in INLINE_TYPES for n in nodes):
            return "".join(self.inline(n) for n in nodes)
        return self.join_blocks(self.serialize(n) for n in nodes)

    def block(self, node: Node) -> str:
        """Serialize a block node without its trailing separator."""
        renderer = _BLOCK_RENDERERS.get(node.type)
        if renderer is not None:
            return renderer(self, node)
        if node.type in INLINE_TYPES:
            return self.inline(node)
        return self.join_blocks(self.serialize(child) for child in node.children)

    def inline(self, node: Node) -> str:
        """Serialize an inline node."""
        renderer = _INLINE_RENDERERS.get(node.type)
        if renderer is not None:
            return renderer(self, node)
        return self.inline_shell(node, self.inlines(node.children))

    def inlines(self, nodes: Iterable[Node]) -> str:
        return "".join(self.inline(n) for n in nodes)

    def list_item(self, node: Node, marker: str = "-", tight: bool = True) -> str:
        """Serialize a list item with an explicit bullet or number marker."""
        body = self.join_blocks(
            (self.serialize(child) for child in node.children),
            TIGHT_ITEM_SEPARATOR if tight else BLOCK_SEPARATOR,
        )
        return self.item_shell(marker, body, node)

    # ------------------------------------------------------------------
    # Shell helpers (shared with the annotation renderer)
    # ------------------------------------------------------------------

    @staticmethod
    def join_blocks(parts: Iterable[str], separator: str = BLOCK_SEPARATOR) -> str:
        return separator.join(parts)

    @staticmethod
    def heading_shell(node: Node, inner: str) -> str:
        level = int(node.attrs.get("level", 1))
        return f"{'#' * level} {inner}"

    @staticmethod
    def quote_shell(inner: str) -> str:
        return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))

    @staticmethod
    def item_shell(marker: str, inner: str, node: Node) -> str:
        """Prefix *inner* with the item marker and indent continuation lines."""
        head = f"{marker} "
        if node.type == "task_list_item":
            head += "[x] " if node.attrs.get("checked") else "[ ] "
        indent = " " * (len(marker) + 1)
        first, *rest = inner.split("\n")
        lines = [head + first]
        lines.extend(f"{indent}{line}" if line else "" for line in rest)
        return "\n".join(lines)

    @staticmethod
    def list_marker(list_node: Node, index: int) -> str:
        """Bullet or number for the *index*-th item of *list_node*."""
        if not list_node.attrs.get("ordered"):
            return "-"
        start = list_node.attrs.get("start")
        start = 1 if start is None else int(start)
        return f"{start + index}."

    @staticmethod
    def item_separator(list_node: Node) -> str:
        return TIGHT_ITEM_SEPARATOR if list_node.attrs.get("tight", True) else BLOCK_SEPARATOR

    @staticmethod
    def footnote_shell(node: Node, inner: str, inline_start: bool | None = None) -> str:
        """Prefix *inner* with the definition label and indent the body.

        A body that does not open with a paragraph starts after a blank
        line; mistune only block-parses footnote bodies that span several
        lines.
        *inline_start* overrides the choice made from *node*'s first child.
        """
        head = f"[^{footnote_label(node)}]:"
        if inline_start is None:
            inline_start = opens_with_paragraph(node)
        lines = inner.split("\n")
        if inline_start:
            first, *rest = lines
            out = [f"{head} {first}"]
        else:
            # A blank line keeps a one-line body on the block-parsing path.
            rest = lines
            out = [head, ""]
        out.extend(f"{FOOTNOTE_INDENT}{line}" if line else "" for line in rest)
        return "\n".join(out)

    @staticmethod
    def inline_shell(node: Node, inner: str) -> str:
        """Wrap already-rendered inline content in *node*'s delimiters."""
        delimiter = _INLINE_DELIMITERS.get(node.type)
        if delimiter is not None:
            return f"{delimiter}{inner}{delimiter}"
        if node.type == "link":
            return f"[{inner}]({_destination(node)})"
        return inner

    # ------------------------------------------------------------------
    # Block renderers
    # ------------------------------------------------------------------

    def _render_heading(self, node: Node) -> str:
        return self.heading_shell(node, self.inlines(node.children))

    def _render_paragraph(self, node: Node) -> str:
        return self.inlines(node.children)

    def _render_block_quote(self, node: Node) -> str:
        inner = self.join_blocks(self.serialize(child) for child in node.children)
        return self.quote_shell(inner)

    def _render_list(self, node: Node) -> str:
        tight = bool(node.attrs.get("tight", True))
        return self.join_blocks(
            (
                self.list_item(item, self.list_marker(node, index), tight)
                for index, item in enumerate(node.children)
            ),
            self.item_separator(node),
        )

    def _render_list_item(self, node: Node) -> str:
        return self.list_item(node)

    def _render_footnotes(self, node: Node) -> str:
        return self.join_blocks(self.block(item) for item in node.children)

    def _render_footnote_item(self, node: Node) -> str:
        inner = self.join_blocks(self.serialize(child) for child in node.children)
        return self.footnote_shell(node, inner)

    def _render_block_code(self, node: Node) -> str:
        fence = "`" * max(3, _longest_backtick_run(node.literal) + 1)
        info = node.attrs.get("info") or ""
        return f"{fence}{info}\n{node.literal}\n{fence}"

    def _render_block_math(self, node: Node) -> str:
        return f"$$\n{node.literal}\n$$"

    def _render_html_block(self, node: Node) -> str:
        return node.literal

    def _render_thematic_break(self, node: Node) -> str:
        return "---"

    def _render_table(self, node: Node) -> str:
        """Render a table to GFM pipe syntax."""
        rows: list[list[Node]] = []
        for part in node.children:
            if part.type == "table_head":
                rows.append(part.children)
            else:
                rows.extend(row.children for row in part.children)
        if not rows:
            return ""

        width = max(len(row) for row in rows)
        lines: list[str] = []
        for index, cells in enumerate(rows):
            rendered = [self.inlines(cell.children) for cell in cells]
            rendered.extend([""] * (width - len(rendered)))
            lines.append("| " + " | ".join(rendered) + " |")
            if index == 0:
                aligns = [cell.attrs.get("align") for cell in cells]
                aligns.extend([None] * (width - len(aligns)))
                lines.append("| " + " | ".join(_ALIGN_RULES.get(a, "---") for a in aligns) + " |")
        return "\n".join(lines)

    def _render_table_part(self, node: Node) -> str:
        return "\n".join(self.inlines(cell.children) for cell in node.children)

    # ------------------------------------------------------------------
    # Inline renderers
    # ------------------------------------------------------------------

    def _render_text(self, node: Node) -> str:
        return markdown_escape(node.literal)

    def _render_codespan(self, node: Node) -> str:
        ticks = "`" * (_longest_backtick_run(node.literal) + 1)
        literal = node.literal
        if literal.startswith("`") or literal.endswith("`"):
            literal = f" {literal} "
        return f"{ticks}{literal}{ticks}"

    def _render_inline_math(self, node: Node) -> str:
        return f"${node.literal}$"

    def _render_html_inline(self, node: Node) -> str:
        return node.literal

    def _render_softbreak(self, node: Node) -> str:
        return "\n"

    def _render_linebreak(self, node: Node) -> str:
        return "  \n"

    def _render_footnote_ref(self, node: Node) -> str:
        return f"[^{footnote_label(node)}]"

    def _render_image(self, node: Node) -> str:
        alt = markdown_escape(plain_text(node))
        return f"![{alt}]({_destination(node)})"


# ------------------------------------------------------------------
# Renderer dispatch tables
# ------------------------------------------------------------------

_NodeRenderer = _Callable[["MarkdownSerializer", Node], str]

_BLOCK_RENDERERS: dict[str, _NodeRenderer] = {
    "heading": MarkdownSerializer._render_heading,
    "paragraph": MarkdownSerializer._render_paragraph,
    "block_quote": MarkdownSerializer._render_block_quote,
    "list": MarkdownSerializer._render_list,
    "list_item": MarkdownSerializer._render_list_item,
    "task_list_item": MarkdownSerializer._render_list_item,
    "block_code": MarkdownSerializer._render_block_code,
    "block_math": MarkdownSerializer._render_block_math,
    "html_block": MarkdownSerializer._render_html_block,
    "thematic_break": MarkdownSerializer._render_thematic_break,
    "table": MarkdownSerializer._render_table,
    "table_head": MarkdownSerializer._render_table_part,
    "table_body": MarkdownSerializer._render_table_part,
    "table_row": MarkdownSerializer._render_table_part,
    "footnotes": MarkdownSerializer._render_footnotes,
    "footnote_item": MarkdownSerializer._render_footnote_item,
}

_INLINE_RENDERERS: dict[str, _NodeRenderer] = {
    "text": MarkdownSerializer._render_text,
    "codespan": MarkdownSerializer._render_codespan,
    "inline_math": MarkdownSerializer._render_inline_math,
    "html_inline": MarkdownSerializer._render_html_inline,
    "softbreak": MarkdownSerializer._render_softbreak,
    "linebreak": MarkdownSerializer._render_linebreak,
    "image": MarkdownSerializer._render_image,
    "footnote_ref": MarkdownSerializer._render_footnote_ref,
}

_ALIGN_RULES: dict[str | None, str] = {
    "left": ":---",
    "center": ":---:",
    "right": "---:",
}


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _destination(node: Node) -> str:
    """Link or image destination with optional title."""
    url = str(node.attrs.get("url", "")).replace("(", "%28").replace(")", "%29")
    title = node.attrs.get("title")
    if title:
        escaped = str(title).replace('"', '\\"')
        return f'{url} "{escaped}"'
    return url
