"""Public data models for criticdiff.

This module contains the document tree node, the diff operation, the
annotation span, and the result types referenced by the public API
surface.  All types are plain dataclasses with no behaviour beyond small
convenience accessors; every value is request-scoped.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class DiffOpType(str, Enum):
    """Operation types emitted by the structural differencer."""

    EQUAL = "equal"
    """Old and new subtrees are identical; rendered as plain text."""

    INSERT = "insert"
    """Node(s) present only in the new document."""

    DELETE = "delete"
    """Node(s) present only in the old document."""

    UPDATE = "update"
    """Aligned node(s) whose content changed; one substitution span."""

    DESCEND = "descend"
    """Aligned container with an unchanged shell whose children changed.
    The child operations live in :attr:`DiffOp.children`."""


class SpanKind(str, Enum):
    """Segment kinds produced by the markup tokenizer."""

    PLAIN = "plain"
    INSERT = "insert"
    DELETE = "delete"
    SUBSTITUTE = "substitute"


# ---------------------------------------------------------------------------
# Document tree
# ---------------------------------------------------------------------------

@dataclass
class Node:
    """A node of a parsed markdown document.

    Attributes
    ----------
    type:
        Canonical kind (``"document"``, ``"heading"``, ``"paragraph"``,
        ``"text"``, ``"list"``, ...).  See
        :mod:`criticdiff.document.parser` for the full set.
    children:
        Ordered child nodes.  Empty for leaf kinds.
    literal:
        Literal string value of leaf kinds (text, code, math, html).
    attrs:
        Kind-specific attributes (``level``, ``ordered``, ``url``, ...).
    """

    type: str
    children: list[Node] = field(default_factory=list)
    literal: str = ""
    attrs: dict[str, Any] = field(default_factory=dict)

    def walk(self) -> Iterator[Node]:
        """Yield this node and all descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def count(self) -> int:
        """Return the number of nodes in this subtree."""
        return sum(1 for _ in self.walk())


# ---------------------------------------------------------------------------
# Diff engine types
# ---------------------------------------------------------------------------

@dataclass
class DiffOp:
    """A single operation in a structural diff.

    Attributes
    ----------
    op_type:
        The kind of operation.
    old_nodes:
        Nodes of the old tree covered by this operation (empty for
        ``INSERT``).  Usually a single node; grouped inline changes may
        carry several consecutive siblings.
    new_nodes:
        Nodes of the new tree covered by this operation (empty for
        ``DELETE``).
    children:
        Child operations of a ``DESCEND`` container, in document order.
    """

    op_type: DiffOpType
    old_nodes: tuple[Node, ...] = ()
    new_nodes: tuple[Node, ...] = ()
    children: list[DiffOp] = field(default_factory=list)

    @property
    def old_node(self) -> Node | None:
        """The first old node, or ``None`` for insertions."""
        return self.old_nodes[0] if self.old_nodes else None

    @property
    def new_node(self) -> Node | None:
        """The first new node, or ``None`` for deletions."""
        return self.new_nodes[0] if self.new_nodes else None

    @property
    def is_change(self) -> bool:
        """``True`` for operations rendered as an annotation span."""
        return self.op_type in (DiffOpType.INSERT, DiffOpType.DELETE, DiffOpType.UPDATE)

    def to_dict(self) -> dict[str, Any]:
        """Compact, JSON-friendly summary used by debug dumps."""
        result: dict[str, Any] = {"op": self.op_type.value}
        if self.old_nodes:
            result["old"] = [n.type for n in self.old_nodes]
        if self.new_nodes:
            result["new"] = [n.type for n in self.new_nodes]
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


# ---------------------------------------------------------------------------
# Markup types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Span:
    """One segment of an annotated text stream.

    Attributes
    ----------
    kind:
        Plain text or one of the three markup kinds.
    text:
        The exact source text of the segment, delimiters included.
    old:
        Old-side payload (``DELETE`` and ``SUBSTITUTE``), else ``""``.
    new:
        New-side payload (``INSERT`` and ``SUBSTITUTE``), else ``""``.
    """

    kind: SpanKind
    text: str
    old: str = ""
    new: str = ""

    @property
    def is_marked(self) -> bool:
        return self.kind is not SpanKind.PLAIN


# ---------------------------------------------------------------------------
# Edit scripts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidatedScript:
    """An edit script that passed the alternation checks.

    Only :func:`criticdiff.edit_script.validate` should construct these.

    Attributes
    ----------
    edits:
        The validated elements, in order.
    sentinel:
        The sentinel value the script was validated against.
    """

    edits: tuple[str, ...]
    sentinel: str

    @property
    def content_count(self) -> int:
        """Number of literal-content elements."""
        return sum(1 for edit in self.edits if edit != self.sentinel)


# ---------------------------------------------------------------------------
# Public result types
# ---------------------------------------------------------------------------

@dataclass
class AnnotationResult:
    """Result of :meth:`CriticDiffPipeline.annotate`.

    Attributes
    ----------
    text:
        The normalized annotated text, ready for the rich-text importer.
    rendered:
        The annotated text before normalization.
    ops:
        The diff operations the text was rendered from.
    inserted:
        Number of ``INSERT`` operations.
    deleted:
        Number of ``DELETE`` operations.
    updated:
        Number of ``UPDATE`` operations.
    """

    text: str
    rendered: str
    ops: list[DiffOp] = field(default_factory=list)
    inserted: int = 0
    deleted: int = 0
    updated: int = 0

    @property
    def changes(self) -> int:
        """Total number of change operations (one span each)."""
        return self.inserted + self.deleted + self.updated

    @property
    def unchanged(self) -> bool:
        return self.changes == 0
