"""criticdiff: structural Markdown diffs as CriticMarkup annotations.

Public re-exports
-----------------

* **Pipeline:** :class:`CriticDiffPipeline`
* **Stages:** :class:`DocumentParser`, :class:`MarkdownSerializer`,
  :class:`TreeDiffer`, :class:`CriticMarkupRenderer`,
  :class:`CriticMarkupNormalizer`
* **Edit scripts:** :func:`validate`, :func:`merge`,
  :func:`parse_edit_script`
* **Configuration:** :class:`CriticDiffConfig`
* **Errors:** Every :class:`CriticDiffError` subclass and :class:`ErrorCode`
* **Models:** Result dataclasses and enums

Usage::

    from criticdiff import CriticDiffPipeline

    result = CriticDiffPipeline().annotate(
        "# Notes\\n\\nShip on Friday.",
        "# Notes\\n\\nShip on Monday.\\n\\nTell the team.",
    )
    print(result.text)
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from criticdiff.config import (
    DEFAULT_LINE_BREAK_TOKEN,
    EXISTING_TEXT_SENTINEL,
    CriticDiffConfig,
)

# ── Stages ──────────────────────────────────────────────────────────────
from criticdiff.diff import TreeDiffer, count_changes, iter_changes
from criticdiff.document import DocumentParser, MarkdownSerializer

# ── Edit scripts ────────────────────────────────────────────────────────
from criticdiff.edit_script import is_sentinel, merge, parse_edit_script, validate

# ── Errors ──────────────────────────────────────────────────────────────
from criticdiff.errors import (
    CriticDiffError,
    DiffInputTooLargeError,
    DocumentParseError,
    EditScriptAlternationError,
    EditScriptEmptyError,
    EditScriptFormatError,
    EditScriptValidationError,
    ErrorCode,
    InternalInvariantError,
)
from criticdiff.markup import (
    CriticMarkupNormalizer,
    CriticMarkupRenderer,
    accept_all,
    count_spans,
    normalize,
    reject_all,
    tokenize,
)

# ── Models ──────────────────────────────────────────────────────────────
from criticdiff.models import (
    AnnotationResult,
    DiffOp,
    DiffOpType,
    Node,
    Span,
    SpanKind,
    ValidatedScript,
)

# ── Pipeline ────────────────────────────────────────────────────────────
from criticdiff.pipeline import CriticDiffPipeline

__all__ = [
    # Pipeline
    "CriticDiffPipeline",
    # Stages
    "CriticMarkupNormalizer",
    "CriticMarkupRenderer",
    "DocumentParser",
    "MarkdownSerializer",
    "TreeDiffer",
    "accept_all",
    "count_changes",
    "count_spans",
    "iter_changes",
    "normalize",
    "reject_all",
    "tokenize",
    # Edit scripts
    "is_sentinel",
    "merge",
    "parse_edit_script",
    "validate",
    # Configuration
    "CriticDiffConfig",
    "DEFAULT_LINE_BREAK_TOKEN",
    "EXISTING_TEXT_SENTINEL",
    # Errors
    "CriticDiffError",
    "DiffInputTooLargeError",
    "DocumentParseError",
    "EditScriptAlternationError",
    "EditScriptEmptyError",
    "EditScriptFormatError",
    "EditScriptValidationError",
    "ErrorCode",
    "InternalInvariantError",
    # Models
    "AnnotationResult",
    "DiffOp",
    "DiffOpType",
    "Node",
    "Span",
    "SpanKind",
    "ValidatedScript",
]

__version__ = "0.1.0"
