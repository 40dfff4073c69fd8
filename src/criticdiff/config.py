"""Configuration for criticdiff.

:class:`CriticDiffConfig` is a plain dataclass that captures every tuneable
knob of the diff / render / normalize pipeline.  Instances are passed to
:class:`~criticdiff.pipeline.CriticDiffPipeline` and to each stage.

Two module-level constants define the wire tokens shared with the
generative-model client and the rich-text importer:

* :data:`EXISTING_TEXT_SENTINEL`: the unchanged-span marker in edit scripts.
* :data:`DEFAULT_LINE_BREAK_TOKEN`: replaces newlines inside markup spans.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Wire constants
# ---------------------------------------------------------------------------

EXISTING_TEXT_SENTINEL: str = "... existing text ..."
"""Edit-script element meaning "unchanged text from the original continues
here"."""

DEFAULT_LINE_BREAK_TOKEN: str = "<br>"
"""Inline line break understood by the downstream block-structured editor."""


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class CriticDiffConfig:
    """Complete configuration for a criticdiff pipeline.

    Every parameter has a sensible default, so ``CriticDiffConfig()`` is a
    valid configuration.

    Parameters
    ----------
    sentinel:
        Exact string that marks an unchanged span in an edit script.
    allow_leading_sentinel:
        Accept edit scripts whose first element is the sentinel.  By default
        the first element must be content.
    line_break_token:
        Token substituted for newlines found inside markup spans by the
        normalizer.  Must not contain a newline.
    update_style:
        How an ``UPDATE`` operation is rendered.

        * ``"substitute"``: one ``{~~old~>new~~}`` span.
        * ``"split"``: a ``{--old--}{++new++}`` pair.
    min_similarity:
        Minimum content similarity (0 to 1) for two same-kind sibling nodes to
        be aligned.  Pairs below it become a delete plus an insert.
    kind_weight:
        Score granted to every aligned same-kind pair on top of its content
        similarity.  Higher values favour aligning more nodes.
    min_match_ratio:
        If the fraction of aligned top-level blocks falls below this ratio,
        the differencer emits a full rewrite (delete all, insert all).
        ``0.0`` disables the fallback.
    text_granularity:
        How an aligned pair of changed text runs is annotated.

        * ``"node"``: one span for the whole run.
        * ``"word"``: one span per changed hunk of words, whitespace and
          punctuation; the unchanged words between hunks stay plain.
        * ``"char"``: one span per changed hunk of characters.
    max_text_hunks:
        A text pair needing more hunks than this is annotated as one span
        for the whole run instead.
    max_nodes:
        Maximum node count per document tree accepted by the differencer.
    max_alignment_cells:
        Maximum size of a single alignment matrix (old children x new
        children, after trimming the identical prefix and suffix).
    metrics:
        Optional :class:`~criticdiff.observability.MetricsHook` backend.
    debug_dump_ast:
        Write both parsed document trees to *stderr* on each annotation.
    debug_dump_diff:
        Write the diff operation list to *stderr* on each annotation.
    """

    # ── Edit scripts ────────────────────────────────────────────────────
    sentinel: str = EXISTING_TEXT_SENTINEL

    allow_leading_sentinel: bool = False

    # ── Markup ──────────────────────────────────────────────────────────
    line_break_token: str = DEFAULT_LINE_BREAK_TOKEN

    update_style: Literal["substitute", "split"] = "substitute"

    # ── Alignment ───────────────────────────────────────────────────────
    min_similarity: float = 0.3

    kind_weight: float = 0.5

    min_match_ratio: float = 0.0

    text_granularity: Literal["node", "word", "char"] = "node"

    max_text_hunks: int = 8

    # ── Resource guards ─────────────────────────────────────────────────
    max_nodes: int = 20_000

    max_alignment_cells: int = 250_000

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_ast: bool = False

    debug_dump_diff: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.sentinel:
            raise ValueError("sentinel must be a non-empty string")
        if not self.line_break_token or "\n" in self.line_break_token or "\r" in self.line_break_token:
            raise ValueError(
                f"line_break_token must be non-empty and contain no newline, got {self.line_break_token!r}"
            )
        if self.update_style not in ("substitute", "split"):
            raise ValueError(f"update_style must be 'substitute' or 'split', got {self.update_style!r}")
        if self.text_granularity not in ("node", "word", "char"):
            raise ValueError(
                f"text_granularity must be 'node', 'word' or 'char', got {self.text_granularity!r}"
            )

        # Numeric ranges.
        if not 0.0 <= self.min_similarity <= 1.0:
            raise ValueError(f"min_similarity must be within [0, 1], got {self.min_similarity}")
        if self.kind_weight < 0:
            raise ValueError(f"kind_weight must be >= 0, got {self.kind_weight}")
        if not 0.0 <= self.min_match_ratio <= 1.0:
            raise ValueError(f"min_match_ratio must be within [0, 1], got {self.min_match_ratio}")
        if self.max_nodes < 1:
            raise ValueError(f"max_nodes must be >= 1, got {self.max_nodes}")
        if self.max_alignment_cells < 1:
            raise ValueError(f"max_alignment_cells must be >= 1, got {self.max_alignment_cells}")
        if self.max_text_hunks < 1:
            raise ValueError(f"max_text_hunks must be >= 1, got {self.max_text_hunks}")
