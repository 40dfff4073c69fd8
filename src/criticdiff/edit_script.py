"""Validate and merge sparse edit scripts.

An edit script is what the generative model returns instead of a whole
revised document: literal content chunks alternating with a sentinel
(``"... existing text ..."``) that stands for unchanged original text::

    ["# New title", "... existing text ...", "A rewritten closing line."]

Two adjacent elements must never be of the same category (content,
content) or (sentinel, sentinel).  By default the script must also begin
with content.

The model is asked for structured output, so scripts usually arrive as the
JSON object ``{"edits": [...]}``; :func:`parse_edit_script` accepts that
form directly.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from criticdiff.config import EXISTING_TEXT_SENTINEL
from criticdiff.errors import (
    EditScriptAlternationError,
    EditScriptEmptyError,
    EditScriptFormatError,
)
from criticdiff.models import ValidatedScript


def is_sentinel(value: str, sentinel: str = EXISTING_TEXT_SENTINEL) -> bool:
    """``True`` when *value* is exactly the sentinel."""
    return value == sentinel


def validate(
    edits: Sequence[Any],
    *,
    sentinel: str = EXISTING_TEXT_SENTINEL,
    allow_leading_sentinel: bool = False,
) -> ValidatedScript:
    """Check the alternation contract of *edits*.

    Parameters
    ----------
    edits:
        The edit-script elements, in order.
    sentinel:
        The unchanged-text marker.
    allow_leading_sentinel:
        Accept a script whose first element is the sentinel.

    Returns
    -------
    ValidatedScript
        The elements as an immutable tuple.

    Raises
    ------
    EditScriptFormatError
        If *edits* is a bare string or an element is not a string.
    EditScriptEmptyError
        If *edits* has no elements.
    EditScriptAlternationError
        At the first index *i* where elements ``i - 1`` and ``i`` share a
        category, or at index ``0`` for a rejected leading sentinel.
    """
    if isinstance(edits, (str, bytes)):
        raise EditScriptFormatError(
            "Edit script must be a sequence of strings, not a single string",
            context={"reason": "not_a_sequence"},
        )
    elements = tuple(edits)
    if not elements:
        raise EditScriptEmptyError()

    for index, element in enumerate(elements):
        if not isinstance(element, str):
            raise EditScriptFormatError(
                f"Edit script element {index} must be a string, got {type(element).__name__}",
                context={"reason": "non_string_element", "index": index},
            )

    if not allow_leading_sentinel and is_sentinel(elements[0], sentinel):
        raise EditScriptAlternationError(
            "Edit script must begin with content, not the sentinel",
            index=0,
            context={"length": len(elements)},
        )

    for index in range(1, len(elements)):
        if is_sentinel(elements[index - 1], sentinel) == is_sentinel(elements[index], sentinel):
            category = "sentinel" if is_sentinel(elements[index], sentinel) else "content"
            raise EditScriptAlternationError(
                f"Edit script elements {index - 1} and {index} are both {category}",
                index=index,
                context={"length": len(elements)},
            )

    return ValidatedScript(edits=elements, sentinel=sentinel)


def merge(script: ValidatedScript) -> str:
    """Join the script's elements with single newlines.

    The sentinel stays in the text verbatim; expanding it into the original
    content is the model's job.
    """
    return "\n".join(script.edits)


def parse_edit_script(
    raw: str | bytes,
    *,
    sentinel: str = EXISTING_TEXT_SENTINEL,
    allow_leading_sentinel: bool = False,
) -> ValidatedScript:
    """Parse a JSON ``{"edits": [...]}`` payload and validate it.

    Raises
    ------
    EditScriptFormatError
        If *raw* is not valid JSON or lacks an ``edits`` array.
    EditScriptValidationError
        Any error raised by :func:`validate`.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise EditScriptFormatError(
            f"Edit script is not valid JSON: {exc}",
            context={"reason": "invalid_json"},
            cause=exc,
        ) from exc

    if not isinstance(payload, dict) or not isinstance(payload.get("edits"), list):
        raise EditScriptFormatError(
            'Edit script must be a JSON object with an "edits" array',
            context={"reason": "missing_edits"},
        )

    return validate(
        payload["edits"],
        sentinel=sentinel,
        allow_leading_sentinel=allow_leading_sentinel,
    )
