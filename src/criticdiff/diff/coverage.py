"""Coverage check for diff operation sequences.

At every tree level the operations must account for each old and each new
child exactly once, in document order:

* the ``old_nodes`` of EQUAL / DELETE / UPDATE / DESCEND operations,
  concatenated, are the old child sequence;
* the ``new_nodes`` of EQUAL / INSERT / UPDATE / DESCEND operations,
  concatenated, are the new child sequence.

Nodes are compared by identity, not equality; the word-level hunks of a
text run are checked by :func:`check_text_hunks` instead.  A violation is
a defect in the differencer, so it is logged at ERROR and raised as
:class:`~criticdiff.errors.InternalInvariantError`.
"""

from __future__ import annotations

from collections.abc import Sequence

from criticdiff.errors import InternalInvariantError
from criticdiff.models import DiffOp, DiffOpType, Node
from criticdiff.observability.logger import get_logger

logger = get_logger("criticdiff.diff.coverage")

_OLD_SIDE = frozenset({DiffOpType.EQUAL, DiffOpType.DELETE, DiffOpType.UPDATE, DiffOpType.DESCEND})
_NEW_SIDE = frozenset({DiffOpType.EQUAL, DiffOpType.INSERT, DiffOpType.UPDATE, DiffOpType.DESCEND})


def _shape_error(op: DiffOp) -> str | None:
    """Describe why *op* is malformed, or return ``None``."""
    if op.op_type not in _OLD_SIDE and op.old_nodes:
        return f"{op.op_type.value} operation carries old nodes"
    if op.op_type not in _NEW_SIDE and op.new_nodes:
        return f"{op.op_type.value} operation carries new nodes"
    if op.op_type in _OLD_SIDE and not op.old_nodes:
        return f"{op.op_type.value} operation has no old node"
    if op.op_type in _NEW_SIDE and not op.new_nodes:
        return f"{op.op_type.value} operation has no new node"
    if op.op_type is DiffOpType.DESCEND and not op.children:
        return "descend operation has no child operations"
    if op.op_type is not DiffOpType.DESCEND and op.children:
        return f"{op.op_type.value} operation has child operations"
    return None


def check_coverage(
    ops: Sequence[DiffOp],
    old_children: Sequence[Node],
    new_children: Sequence[Node],
    parent_type: str,
) -> None:
    """Raise :class:`InternalInvariantError` unless *ops* cover both sides.

    Parameters
    ----------
    ops:
        The operations emitted for one tree level.
    old_children:
        The old sibling sequence at that level.
    new_children:
        The new sibling sequence at that level.
    parent_type:
        Kind of the parent node, for diagnostics.
    """
    detail: str | None = None
    for op in ops:
        detail = _shape_error(op)
        if detail is not None:
            break

    if detail is None:
        old_ids = [id(n) for op in ops for n in op.old_nodes]
        new_ids = [id(n) for op in ops for n in op.new_nodes]
        if old_ids != [id(n) for n in old_children]:
            detail = f"old side covers {len(old_ids)} of {len(old_children)} nodes or is out of order"
        elif new_ids != [id(n) for n in new_children]:
            detail = f"new side covers {len(new_ids)} of {len(new_children)} nodes or is out of order"

    if detail is None:
        return
    _violation(ops, parent_type, detail)


def check_text_hunks(ops: Sequence[DiffOp], old: Node, new: Node) -> None:
    """Raise :class:`InternalInvariantError` unless the text fragments of
    *ops* concatenate back to the literals of *old* and *new*."""
    old_text = "".join(n.literal for op in ops for n in op.old_nodes)
    new_text = "".join(n.literal for op in ops for n in op.new_nodes)
    if old_text != old.literal:
        _violation(ops, "text", "old fragments do not rebuild the old run")
    if new_text != new.literal:
        _violation(ops, "text", "new fragments do not rebuild the new run")


def _violation(ops: Sequence[DiffOp], parent_type: str, detail: str) -> None:
    logger.error(
        "Diff coverage invariant violated",
        extra={"extra_fields": {
            "parent_type": parent_type,
            "detail": detail,
            "ops": [op.to_dict() for op in ops],
        }},
    )
    raise InternalInvariantError(
        f"Diff coverage invariant violated under {parent_type!r}: {detail}",
        context={"invariant": "coverage", "parent_type": parent_type, "detail": detail},
    )
