"""Structural differencer: compute diff operations between two document trees.

Given the parsed old and new documents, :class:`TreeDiffer` produces the
operation tree that the annotation renderer walks.  The alignment is a
heuristic (similarity-scored LCS over siblings, recursing into aligned
containers), not an optimal tree edit distance: it aims for few, readable
annotation spans rather than a provably minimal script.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from criticdiff.config import CriticDiffConfig
from criticdiff.document.parser import INLINE_TYPES, LEAF_TYPES
from criticdiff.document.serializer import MarkdownSerializer
from criticdiff.errors import DiffInputTooLargeError
from criticdiff.models import DiffOp, DiffOpType, Node
from criticdiff.utils.hashing import hash_dict

from .coverage import check_coverage, check_text_hunks
from .lcs_matcher import lcs_match
from .similarity import SimilarityScorer
from .text_hunks import split_text_pair

# Compared by serialized form only; never descended into.
ATOMIC_TYPES: frozenset[str] = LEAF_TYPES | {"table", "image"}

# Kinds whose children are inline nodes.
INLINE_CONTAINER_TYPES: frozenset[str] = frozenset({
    "paragraph", "heading", "table_cell",
    "emphasis", "strong", "strikethrough", "link",
})

# Kinds that can never be substituted in place by a different kind.
STRUCTURAL_TYPES: frozenset[str] = frozenset({
    "document", "list", "list_item", "task_list_item",
    "table", "table_head", "table_body", "table_row", "table_cell",
    "footnotes", "footnote_item",
})

# Attributes that make up a container's shell; a change replaces the node.
_SHELL_ATTRS: dict[str, tuple[str, ...]] = {
    "heading": ("level",),
    "list": ("ordered", "start", "tight"),
    "task_list_item": ("checked",),
    "block_code": ("info",),
    "link": ("url", "title"),
    "image": ("url", "title"),
    "table_cell": ("align", "head"),
    "footnote_item": ("key", "label"),
}


def _shell_key(node: Node) -> str:
    keys = _SHELL_ATTRS.get(node.type, ())
    return hash_dict({key: node.attrs.get(key) for key in keys})


def compatible_kinds(a: str, b: str) -> bool:
    """``True`` when a node of kind *a* may be shown as replaced by *b*."""
    if a in STRUCTURAL_TYPES or b in STRUCTURAL_TYPES:
        return False
    return (a in INLINE_TYPES) == (b in INLINE_TYPES)


class TreeDiffer:
    """Plans diff operations between two document trees.

    Parameters
    ----------
    config:
        Pipeline configuration (alignment thresholds and size guards).
    """

    def __init__(self, config: CriticDiffConfig | None = None) -> None:
        self._config = config or CriticDiffConfig()
        self._serializer = MarkdownSerializer()

    def diff(self, old: Node, new: Node) -> list[DiffOp]:
        """Compute the operations that turn *old* into *new*.

        Operation types:

        - **EQUAL**: subtree unchanged.
        - **INSERT** / **DELETE**: node(s) present on one side only.
        - **UPDATE**: aligned node(s) whose content changed.
        - **DESCEND**: aligned container with an unchanged shell whose
          children changed; the child operations are nested in it.

        Returns
        -------
        list[DiffOp]
            The top-level operations in document order.  For two documents
            this is a single EQUAL or DESCEND operation for the root.

        Raises
        ------
        DiffInputTooLargeError
            If either tree exceeds ``max_nodes`` or an alignment matrix
            would exceed ``max_alignment_cells``.
        InternalInvariantError
            If the produced operations fail the coverage check.
        """
        self._check_size(old, "old")
        self._check_size(new, "new")

        scorer = SimilarityScorer(
            self._serializer,
            min_similarity=self._config.min_similarity,
            kind_weight=self._config.kind_weight,
        )

        if old.type != new.type:
            if compatible_kinds(old.type, new.type):
                ops = [DiffOp(DiffOpType.UPDATE, (old,), (new,))]
            else:
                ops = [
                    DiffOp(DiffOpType.DELETE, old_nodes=(old,)),
                    DiffOp(DiffOpType.INSERT, new_nodes=(new,)),
                ]
        else:
            ops = [self._diff_aligned(old, new, scorer)]

        check_coverage(ops, [old], [new], "root")
        return ops

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_size(self, tree: Node, side: str) -> None:
        nodes = tree.count()
        if nodes > self._config.max_nodes:
            raise DiffInputTooLargeError(
                f"{side} document has {nodes} nodes, limit is {self._config.max_nodes}",
                context={"side": side, "nodes": nodes, "max_nodes": self._config.max_nodes},
            )

    def _diff_aligned(self, a: Node, b: Node, scorer: SimilarityScorer) -> DiffOp:
        """Diff two aligned nodes of the same kind."""
        if scorer.same(a, b):
            return DiffOp(DiffOpType.EQUAL, (a,), (b,))
        if a.type in ATOMIC_TYPES or _shell_key(a) != _shell_key(b):
            return DiffOp(DiffOpType.UPDATE, (a,), (b,))

        children = self._align_children(a, b, scorer)
        if all(op.op_type is DiffOpType.EQUAL for op in children):
            return DiffOp(DiffOpType.EQUAL, (a,), (b,))
        return DiffOp(DiffOpType.DESCEND, (a,), (b,), children)

    def _align_children(self, a: Node, b: Node, scorer: SimilarityScorer) -> list[DiffOp]:
        """Align the children of *a* and *b* and build the child operations."""
        old, new = a.children, b.children
        m, n = len(old), len(new)

        prefix = 0
        while prefix < m and prefix < n and scorer.same(old[prefix], new[prefix]):
            prefix += 1
        suffix = 0
        while (
            suffix < m - prefix
            and suffix < n - prefix
            and scorer.same(old[m - 1 - suffix], new[n - 1 - suffix])
        ):
            suffix += 1

        mid_old = old[prefix:m - suffix]
        mid_new = new[prefix:n - suffix]
        cells = len(mid_old) * len(mid_new)
        if cells > self._config.max_alignment_cells:
            raise DiffInputTooLargeError(
                f"Aligning {len(mid_old)} x {len(mid_new)} {a.type} children exceeds "
                f"max_alignment_cells={self._config.max_alignment_cells}",
                context={
                    "parent_type": a.type,
                    "cells": cells,
                    "max_alignment_cells": self._config.max_alignment_cells,
                },
            )

        pairs = lcs_match(
            len(mid_old),
            len(mid_new),
            lambda i, j: scorer.weight(mid_old[i], mid_new[j]),
        )

        ops: list[DiffOp] = [
            DiffOp(DiffOpType.EQUAL, (old[k],), (new[k],)) for k in range(prefix)
        ]

        # Check match ratio at the document level; fall back to a rewrite.
        max_len = max(m, n)
        match_ratio = (prefix + suffix + len(pairs)) / max_len if max_len else 1.0
        if a.type == "document" and match_ratio < self._config.min_match_ratio:
            ops = self._full_rewrite(old, new)
        else:
            ops.extend(self._build_ops(mid_old, mid_new, pairs, scorer))
            ops.extend(
                DiffOp(DiffOpType.EQUAL, (old[m - suffix + k],), (new[n - suffix + k],))
                for k in range(suffix)
            )

        if a.type in INLINE_CONTAINER_TYPES:
            ops = _group_inline_changes(ops)

        check_coverage(ops, old, new, a.type)
        if a.type in INLINE_CONTAINER_TYPES and self._config.text_granularity != "node":
            ops = self._split_text_runs(ops)
        return ops

    def _split_text_runs(self, ops: list[DiffOp]) -> list[DiffOp]:
        """Replace each one-to-one text UPDATE with its word or character hunks."""
        result: list[DiffOp] = []
        for op in ops:
            old, new = op.old_node, op.new_node
            hunks = None
            if (
                op.op_type is DiffOpType.UPDATE
                and len(op.old_nodes) == 1
                and len(op.new_nodes) == 1
                and old.type == "text"
                and new.type == "text"
            ):
                hunks = split_text_pair(
                    old, new, self._config.text_granularity, self._config.max_text_hunks
                )
            if hunks is None:
                result.append(op)
                continue
            check_text_hunks(hunks, old, new)
            result.extend(hunks)
        return result

    @staticmethod
    def _full_rewrite(old: Sequence[Node], new: Sequence[Node]) -> list[DiffOp]:
        """Delete all old children and insert all new children."""
        ops = [DiffOp(DiffOpType.DELETE, old_nodes=(node,)) for node in old]
        ops.extend(DiffOp(DiffOpType.INSERT, new_nodes=(node,)) for node in new)
        return ops

    def _build_ops(
        self,
        old: Sequence[Node],
        new: Sequence[Node],
        pairs: list[tuple[int, int]],
        scorer: SimilarityScorer,
    ) -> list[DiffOp]:
        """Walk the LCS anchors, emitting deletes then inserts for each gap."""
        ops: list[DiffOp] = []
        old_ptr = 0
        new_ptr = 0

        for old_anchor, new_anchor in [*pairs, (len(old), len(new))]:
            while old_ptr < old_anchor:
                ops.append(DiffOp(DiffOpType.DELETE, old_nodes=(old[old_ptr],)))
                old_ptr += 1
            while new_ptr < new_anchor:
                ops.append(DiffOp(DiffOpType.INSERT, new_nodes=(new[new_ptr],)))
                new_ptr += 1
            if old_anchor < len(old) and new_anchor < len(new):
                ops.append(self._diff_aligned(old[old_anchor], new[new_anchor], scorer))
                old_ptr = old_anchor + 1
                new_ptr = new_anchor + 1

        return ops


def _group_inline_changes(ops: list[DiffOp]) -> list[DiffOp]:
    """Merge each run of consecutive change operations into one operation.

    A run of inserts stays an INSERT and a run of deletes stays a DELETE;
    any mixture becomes a single UPDATE carrying all nodes of both sides.
    """
    result: list[DiffOp] = []
    run: list[DiffOp] = []

    def flush() -> None:
        if not run:
            return
        if len(run) == 1:
            result.append(run[0])
        else:
            kinds = {op.op_type for op in run}
            op_type = kinds.pop() if len(kinds) == 1 else DiffOpType.UPDATE
            result.append(DiffOp(
                op_type,
                old_nodes=tuple(node for op in run for node in op.old_nodes),
                new_nodes=tuple(node for op in run for node in op.new_nodes),
            ))
        run.clear()

    for op in ops:
        if op.is_change:
            run.append(op)
        else:
            flush()
            result.append(op)
    flush()
    return result


# ---------------------------------------------------------------------------
# Operation tree helpers
# ---------------------------------------------------------------------------

def iter_changes(ops: Sequence[DiffOp]) -> Iterator[DiffOp]:
    """Yield every INSERT, DELETE, and UPDATE operation in document order."""
    for op in ops:
        if op.op_type is DiffOpType.DESCEND:
            yield from iter_changes(op.children)
        elif op.is_change:
            yield op


def count_changes(ops: Sequence[DiffOp]) -> dict[DiffOpType, int]:
    """Count change operations by type across the whole operation tree."""
    counts = {DiffOpType.INSERT: 0, DiffOpType.DELETE: 0, DiffOpType.UPDATE: 0}
    for op in iter_changes(ops):
        counts[op.op_type] += 1
    return counts
