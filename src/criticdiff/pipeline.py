"""End-to-end annotation pipeline.

:class:`CriticDiffPipeline` chains the stages::

    parse(old), parse(new) -> diff -> render -> normalize

and returns an :class:`~criticdiff.models.AnnotationResult` only when every
stage succeeded, so a caller can overwrite its live document with
``result.text`` and know nothing partial slipped through.

Edit scripts from a generative model take one extra hop: the script is
validated and merged, then handed to a caller-supplied ``expand`` callable
(the model round-trip that rewrites the merged script into a complete
document), and the expansion is annotated against the original.

Usage::

    from criticdiff import CriticDiffPipeline

    pipeline = CriticDiffPipeline()
    result = pipeline.annotate(old_markdown, new_markdown)
    print(result.text)
"""

from __future__ import annotations

import json
import sys
import time
from collections import Counter
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum
from typing import Any

from criticdiff.config import CriticDiffConfig
from criticdiff.diff.planner import TreeDiffer, count_changes, iter_changes
from criticdiff.document.parser import DocumentParser
from criticdiff.document.serializer import MarkdownSerializer
from criticdiff.edit_script import merge, validate
from criticdiff.errors import CriticDiffError, DocumentParseError, EditScriptValidationError
from criticdiff.markup.normalizer import CriticMarkupNormalizer
from criticdiff.markup.renderer import CriticMarkupRenderer
from criticdiff.models import AnnotationResult, DiffOp, DiffOpType, Node, ValidatedScript
from criticdiff.observability.logger import get_logger
from criticdiff.observability.metrics import MetricsHook, resolve_metrics

logger = get_logger("criticdiff")

ExpandFn = Callable[[str, str], str]
"""``expand(merged_script, original_text) -> revised_text``."""

AsyncExpandFn = Callable[[str, str], Awaitable[str]]


class CriticDiffPipeline:
    """Parse, diff, render, and normalize two versions of a document.

    Parameters
    ----------
    config:
        Pipeline configuration.  Defaults to ``CriticDiffConfig()``.

    The pipeline holds no per-request state; one instance may serve
    concurrent requests.
    """

    def __init__(self, config: CriticDiffConfig | None = None) -> None:
        self._config = config or CriticDiffConfig()
        self._metrics: MetricsHook = resolve_metrics(self._config.metrics)
        serializer = MarkdownSerializer()
        self._parser = DocumentParser()
        self._differ = TreeDiffer(self._config)
        self._renderer = CriticMarkupRenderer(self._config, serializer)
        self._normalizer = CriticMarkupNormalizer(self._config)

    @property
    def config(self) -> CriticDiffConfig:
        return self._config

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def parse(self, text: str) -> Node:
        """Parse Markdown *text* into a document tree."""
        return self._parser.parse(text)

    def diff(self, old_text: str, new_text: str) -> list[DiffOp]:
        """Parse both texts and return the diff operation tree."""
        old_tree = self._parse_side(old_text, "old")
        new_tree = self._parse_side(new_text, "new")
        return self._differ.diff(old_tree, new_tree)

    def annotate(self, old_text: str, new_text: str) -> AnnotationResult:
        """Annotate the changes from *old_text* to *new_text*.

        Returns
        -------
        AnnotationResult
            The normalized annotated text plus the operations and counts it
            was built from.

        Raises
        ------
        DocumentParseError
            If either text cannot be parsed.
        DiffInputTooLargeError
            If either document exceeds the configured size guards.
        InternalInvariantError
            If the differencer or renderer broke an invariant.
        """
        t0 = time.monotonic()
        stage = "parse"
        try:
            old_tree = self._parse_side(old_text, "old")
            new_tree = self._parse_side(new_text, "new")
            self._dump_ast(old_tree, new_tree)

            stage = "diff"
            ops = self._differ.diff(old_tree, new_tree)
            self._dump_diff(ops)

            stage = "render"
            rendered = self._renderer.render(ops)

            stage = "normalize"
            text = self._normalizer.normalize(rendered)
        except CriticDiffError as exc:
            self._metrics.increment(
                "criticdiff.pipeline_failures_total", tags={"stage": stage, "code": _code_tag(exc)},
            )
            logger.warning(
                "annotate failed",
                extra={"extra_fields": {"op": "annotate", "stage": stage, "code": _code_tag(exc)}},
            )
            raise

        counts = count_changes(ops)
        result = AnnotationResult(
            text=text,
            rendered=rendered,
            ops=ops,
            inserted=counts[DiffOpType.INSERT],
            deleted=counts[DiffOpType.DELETE],
            updated=counts[DiffOpType.UPDATE],
        )

        elapsed_ms = (time.monotonic() - t0) * 1000
        _emit_diff_metrics(self._metrics, ops)
        self._metrics.increment("criticdiff.spans_total", result.changes)
        self._metrics.timing("criticdiff.annotate_duration_ms", elapsed_ms)
        logger.info(
            "annotate complete",
            extra={"extra_fields": {
                "op": "annotate",
                "inserted": result.inserted,
                "deleted": result.deleted,
                "updated": result.updated,
                "duration_ms": round(elapsed_ms, 3),
            }},
        )
        return result

    # ------------------------------------------------------------------
    # Edit scripts
    # ------------------------------------------------------------------

    def validate_edit_script(self, edits: Sequence[Any]) -> ValidatedScript:
        """Validate *edits* with the configured sentinel, counting failures."""
        try:
            return validate(
                edits,
                sentinel=self._config.sentinel,
                allow_leading_sentinel=self._config.allow_leading_sentinel,
            )
        except EditScriptValidationError as exc:
            self._metrics.increment(
                "criticdiff.validation_failures_total", tags={"code": _code_tag(exc)},
            )
            logger.warning(
                "edit script rejected",
                extra={"extra_fields": {"code": _code_tag(exc), **exc.context}},
            )
            raise

    def annotate_edit_script(
        self,
        original_text: str,
        edits: Sequence[Any],
        expand: ExpandFn,
    ) -> AnnotationResult:
        """Validate, merge, and expand an edit script, then annotate it.

        Parameters
        ----------
        original_text:
            The current document.
        edits:
            The model's sparse edit script.
        expand:
            ``expand(merged_script, original_text)`` returns the complete
            revised document.  Its exceptions propagate unchanged.
        """
        script = self.validate_edit_script(edits)
        revised = expand(merge(script), original_text)
        return self.annotate(original_text, revised)

    async def annotate_edit_script_async(
        self,
        original_text: str,
        edits: Sequence[Any],
        expand: AsyncExpandFn,
    ) -> AnnotationResult:
        """Async variant of :meth:`annotate_edit_script`.

        Only *expand* is awaited; the annotation stages run synchronously.
        """
        script = self.validate_edit_script(edits)
        revised = await expand(merge(script), original_text)
        return self.annotate(original_text, revised)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _parse_side(self, text: str, side: str) -> Node:
        try:
            return self._parser.parse(text)
        except DocumentParseError as exc:
            exc.context.setdefault("side", side)
            raise

    def _dump_ast(self, old_tree: Node, new_tree: Node) -> None:
        if self._config.debug_dump_ast:
            print(
                "[criticdiff] Document trees:",
                json.dumps(
                    {"old": _node_to_dict(old_tree), "new": _node_to_dict(new_tree)},
                    indent=2,
                    ensure_ascii=False,
                ),
                file=sys.stderr,
            )

    def _dump_diff(self, ops: list[DiffOp]) -> None:
        if self._config.debug_dump_diff:
            print(
                "[criticdiff] Diff operations:",
                json.dumps([op.to_dict() for op in ops], indent=2, ensure_ascii=False),
                file=sys.stderr,
            )


def _node_to_dict(node: Node) -> dict[str, Any]:
    result: dict[str, Any] = {"type": node.type}
    if node.attrs:
        result["attrs"] = node.attrs
    if node.literal:
        result["literal"] = node.literal
    if node.children:
        result["children"] = [_node_to_dict(child) for child in node.children]
    return result


def _emit_diff_metrics(metrics: MetricsHook, ops: list[DiffOp]) -> None:
    """Emit ``diff_ops_total`` counters grouped by change type."""
    op_counts: Counter[str] = Counter(op.op_type.value for op in iter_changes(ops))
    for op_type, count in op_counts.items():
        metrics.increment("criticdiff.diff_ops_total", count, tags={"op": op_type})


def _code_tag(exc: CriticDiffError) -> str:
    code = exc.code
    return code.value if isinstance(code, Enum) else str(code)
