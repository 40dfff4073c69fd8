"""Word- and character-level hunks between two changed text runs.

With ``text_granularity`` set to ``"word"`` or ``"char"``, an aligned pair
of ``text`` leaves is split into the stretches both runs share and the
hunks between them.  Each hunk becomes one change operation, so only the
words that differ end up inside an annotation span::

    Hello world, this is a {~~long~>short~~} sentence.

The fragments are fresh ``text`` nodes; their literals concatenate back to
the original runs.
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher

from criticdiff.models import DiffOp, DiffOpType, Node

# Whitespace runs, words (keeping inner hyphens and apostrophes) and single
# punctuation characters.
_TOKEN_RE = re.compile(r"(\s+|\w+(?:['’‘\-]\w+)*|[^\w\s])")

_HUNK_TYPES: dict[str, DiffOpType] = {
    "delete": DiffOpType.DELETE,
    "insert": DiffOpType.INSERT,
    "replace": DiffOpType.UPDATE,
}


def tokenize_text(text: str, granularity: str = "word") -> list[str]:
    """Split *text* into diff tokens; joined, they give *text* back.

    Examples
    --------
    >>> tokenize_text("non-disclosure, party's  term")
    ['non-disclosure', ',', ' ', "party's", '  ', 'term']
    >>> tokenize_text("ab", "char")
    ['a', 'b']
    """
    if granularity == "char":
        return list(text)
    return _TOKEN_RE.findall(text)


def split_text_pair(
    old: Node,
    new: Node,
    granularity: str = "word",
    max_hunks: int = 8,
) -> list[DiffOp] | None:
    """Hunk operations that turn text leaf *old* into text leaf *new*.

    Shared stretches become ``EQUAL`` operations; each changed hunk becomes
    one ``DELETE``, ``INSERT`` or ``UPDATE``.

    Returns
    -------
    list[DiffOp] | None
        ``None`` when the pair is better shown as one whole-run update:
        the runs share nothing but whitespace, a hunk starts with ``#``
        (it would read as a heading marker), or more than *max_hunks*
        hunks are needed.
    """
    old_tokens = tokenize_text(old.literal, granularity)
    new_tokens = tokenize_text(new.literal, granularity)
    opcodes = SequenceMatcher(None, old_tokens, new_tokens, autojunk=False).get_opcodes()

    hunks = [op for op in opcodes if op[0] != "equal"]
    if len(hunks) > max_hunks:
        return None
    if not any(
        tag == "equal" and "".join(old_tokens[i1:i2]).strip()
        for tag, i1, i2, _, _ in opcodes
    ):
        return None

    ops: list[DiffOp] = []
    for tag, i1, i2, j1, j2 in opcodes:
        old_part = "".join(old_tokens[i1:i2])
        new_part = "".join(new_tokens[j1:j2])
        if tag == "equal":
            ops.append(DiffOp(DiffOpType.EQUAL, (_fragment(old_part),), (_fragment(new_part),)))
            continue
        if old_part.startswith("#") or new_part.startswith("#"):
            return None
        ops.append(DiffOp(
            _HUNK_TYPES[tag],
            old_nodes=(_fragment(old_part),) if old_part else (),
            new_nodes=(_fragment(new_part),) if new_part else (),
        ))
    return ops


def _fragment(text: str) -> Node:
    return Node(type="text", literal=text)
