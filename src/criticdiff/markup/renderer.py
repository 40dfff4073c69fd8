"""Render diff operations as one CriticMarkup-annotated Markdown stream.

Walks the operation tree produced by :class:`~criticdiff.diff.TreeDiffer`
in document order:

* ``EQUAL`` renders the node's plain Markdown.
* ``INSERT`` / ``DELETE`` wrap the serialized node(s) in ``{++ ++}`` /
  ``{-- --}``.
* ``UPDATE`` renders ``{~~old~>new~~}`` (or ``{--old--}{++new++}`` with
  ``update_style="split"``).
* ``DESCEND`` renders the container's own shell (heading hashes, list
  marker, quote prefix, emphasis delimiters, ...) around its rendered
  child operations.

Block markers live inside spans; the separators between blocks and list
items stay outside, so two spans are never adjacent.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from criticdiff.config import CriticDiffConfig
from criticdiff.document.parser import INLINE_TYPES
from criticdiff.document.serializer import (
    BLOCK_SEPARATOR,
    TIGHT_ITEM_SEPARATOR,
    MarkdownSerializer,
    opens_with_paragraph,
)
from criticdiff.errors import InternalInvariantError
from criticdiff.models import DiffOp, DiffOpType, Node
from criticdiff.observability.logger import get_logger

from .syntax import deletion, insertion, substitution

logger = get_logger("criticdiff.markup")

_LIST_ITEM_TYPES = frozenset({"list_item", "task_list_item"})


@dataclass
class _ListCursor:
    """Numbering state while rendering the items of one list."""

    old_list: Node
    new_list: Node
    old_index: int = 0
    new_index: int = 0


class CriticMarkupRenderer:
    """Serialize an operation tree into annotated Markdown.

    Parameters
    ----------
    config:
        Pipeline configuration; only ``update_style`` is read.
    serializer:
        Serializer for unchanged content and span payloads.
    """

    def __init__(
        self,
        config: CriticDiffConfig | None = None,
        serializer: MarkdownSerializer | None = None,
    ) -> None:
        self._config = config or CriticDiffConfig()
        self._serializer = serializer or MarkdownSerializer()

    def render(self, ops: Sequence[DiffOp]) -> str:
        """Render top-level operations (as returned by ``TreeDiffer.diff``)."""
        return self._join(ops, BLOCK_SEPARATOR, None, inline=False)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _render_op(self, op: DiffOp, cursor: _ListCursor | None, separator: str) -> str:
        if op.op_type is DiffOpType.DESCEND:
            return self._render_descend(op, cursor)
        if op.children:
            self._nested_span(op)

        if op.op_type is DiffOpType.EQUAL:
            text = self._side(op.new_nodes, cursor, "new", separator)
            self._advance(cursor, old=1, new=1)
            return text
        if op.op_type is DiffOpType.INSERT:
            text = insertion(self._side(op.new_nodes, cursor, "new", separator))
            self._advance(cursor, new=len(op.new_nodes))
            return text
        if op.op_type is DiffOpType.DELETE:
            text = deletion(self._side(op.old_nodes, cursor, "old", separator))
            self._advance(cursor, old=len(op.old_nodes))
            return text

        old = self._side(op.old_nodes, cursor, "old", separator)
        new = self._side(op.new_nodes, cursor, "new", separator)
        self._advance(cursor, old=len(op.old_nodes), new=len(op.new_nodes))
        if self._config.update_style == "split":
            return deletion(old) + insertion(new)
        return substitution(old, new)

    def _render_descend(self, op: DiffOp, cursor: _ListCursor | None) -> str:
        old, new = op.old_nodes[0], op.new_nodes[0]
        ser = self._serializer
        kind = new.type

        if kind in ("document", "block_quote", "footnotes"):
            inner = self._join(op.children, BLOCK_SEPARATOR, None, inline=False)
            text = ser.quote_shell(inner) if kind == "block_quote" else inner
        elif kind == "list":
            item_cursor = _ListCursor(old_list=old, new_list=new)
            text = self._join(op.children, ser.item_separator(new), item_cursor, inline=False)
        elif kind in _LIST_ITEM_TYPES:
            tight = True if cursor is None else bool(cursor.new_list.attrs.get("tight", True))
            separator = TIGHT_ITEM_SEPARATOR if tight else BLOCK_SEPARATOR
            inner = self._join(op.children, separator, None, inline=False)
            marker = "-" if cursor is None else ser.list_marker(cursor.new_list, cursor.new_index)
            text = ser.item_shell(marker, inner, new)
        elif kind == "footnote_item":
            inner = self._join(op.children, BLOCK_SEPARATOR, None, inline=False)
            inline_start = opens_with_paragraph(old) and opens_with_paragraph(new)
            text = ser.footnote_shell(new, inner, inline_start)
        else:
            inner = self._join(op.children, "", None, inline=True)
            text = ser.heading_shell(new, inner) if kind == "heading" else ser.inline_shell(new, inner)

        self._advance(cursor, old=1, new=1)
        return text

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _join(
        self,
        ops: Sequence[DiffOp],
        separator: str,
        cursor: _ListCursor | None,
        *,
        inline: bool,
    ) -> str:
        parts = [self._render_op(op, cursor, separator) for op in ops]
        return "".join(parts) if inline else separator.join(parts)

    def _side(
        self,
        nodes: Sequence[Node],
        cursor: _ListCursor | None,
        side: str,
        separator: str,
    ) -> str:
        """Serialize one side of an operation, numbering list items."""
        ser = self._serializer
        if cursor is not None and nodes and nodes[0].type in _LIST_ITEM_TYPES:
            list_node = cursor.new_list if side == "new" else cursor.old_list
            start = cursor.new_index if side == "new" else cursor.old_index
            item_tight = bool(list_node.attrs.get("tight", True))
            return ser.item_separator(list_node).join(
                ser.list_item(node, ser.list_marker(list_node, start + offset), item_tight)
                for offset, node in enumerate(nodes)
            )
        if nodes and all(node.type in INLINE_TYPES for node in nodes):
            return ser.inlines(nodes)
        return ser.join_blocks((ser.serialize(node) for node in nodes), separator or BLOCK_SEPARATOR)

    @staticmethod
    def _advance(cursor: _ListCursor | None, old: int = 0, new: int = 0) -> None:
        if cursor is not None:
            cursor.old_index += old
            cursor.new_index += new

    @staticmethod
    def _nested_span(op: DiffOp) -> None:
        """Refuse to wrap an operation that would nest spans."""
        logger.error(
            "Nested annotation span",
            extra={"extra_fields": {"op": op.to_dict()}},
        )
        raise InternalInvariantError(
            f"{op.op_type.value} operation carries child operations; spans cannot nest",
            context={"invariant": "span_nesting", "detail": op.to_dict()},
        )
