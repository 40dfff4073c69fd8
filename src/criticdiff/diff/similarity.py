"""Node fingerprints and pairwise similarity scores.

The differencer needs two questions answered many times per alignment:

* *Are these two subtrees identical?*  Answered by comparing the MD5 of
  their serialized Markdown (:attr:`NodeFingerprint.digest`).
* *How alike are they?*  Answered by :meth:`SimilarityScorer.similarity`,
  a heuristic in ``[0, 1]``:

  - leaves score the larger of the common prefix + suffix ratio and the
    word-set overlap of their serialized text;
  - containers blend the same text ratio over their plain text with the
    prefix + suffix ratio of their child-kind sequences.

Fingerprints are memoised per :class:`SimilarityScorer` instance, which
lives for exactly one :meth:`TreeDiffer.diff` call.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from criticdiff.document.parser import LEAF_TYPES
from criticdiff.document.serializer import MarkdownSerializer, plain_text
from criticdiff.models import Node
from criticdiff.utils.hashing import md5_hash

# Share of the container score that comes from child-kind structure.
_STRUCTURE_SHARE = 0.5

# Scale factor for integer alignment weights.
WEIGHT_SCALE = 1000


@dataclass(frozen=True)
class NodeFingerprint:
    """Memoised facts about one subtree."""

    kind: str
    digest: str
    text: str
    child_kinds: tuple[str, ...]


def affix_ratio(a: Sequence, b: Sequence) -> float:
    """Common prefix + common suffix length over the longer length.

    Runs in ``O(min(len(a), len(b)))``.

    Examples
    --------
    >>> affix_ratio("The quick fox.", "The slow fox.")
    0.6428571428571429
    """
    if a == b:
        return 1.0
    longest = max(len(a), len(b))
    shortest = min(len(a), len(b))
    if shortest == 0:
        return 0.0
    prefix = 0
    while prefix < shortest and a[prefix] == b[prefix]:
        prefix += 1
    suffix = 0
    while suffix < shortest - prefix and a[-1 - suffix] == b[-1 - suffix]:
        suffix += 1
    return (prefix + suffix) / longest


def word_overlap(a: str, b: str) -> float:
    """Jaccard index of the whitespace-separated word sets of *a* and *b*."""
    words_a = set(a.split())
    words_b = set(b.split())
    if not words_a and not words_b:
        return 1.0 if a == b else 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def text_similarity(a: str, b: str) -> float:
    return max(affix_ratio(a, b), word_overlap(a, b))


class SimilarityScorer:
    """Fingerprint cache and similarity oracle for one diff run.

    Parameters
    ----------
    serializer:
        Serializer used to compute the canonical text of each subtree.
    min_similarity:
        Pairs scoring below this are not alignment candidates.
    kind_weight:
        Bonus added to the weight of every candidate pair.
    """

    def __init__(
        self,
        serializer: MarkdownSerializer,
        min_similarity: float = 0.3,
        kind_weight: float = 0.5,
    ) -> None:
        self._serializer = serializer
        self._min_similarity = min_similarity
        self._kind_bonus = round(WEIGHT_SCALE * kind_weight)
        self._cache: dict[int, NodeFingerprint] = {}
        # Nodes are kept alive so their ids stay unique for this run.
        self._pinned: list[Node] = []

    def fingerprint(self, node: Node) -> NodeFingerprint:
        """Return (and memoise) the fingerprint of *node*."""
        cached = self._cache.get(id(node))
        if cached is not None:
            return cached
        serialized = self._serializer.serialize(node)
        fp = NodeFingerprint(
            kind=node.type,
            digest=md5_hash(f"{node.type}\x00{serialized}"),
            text=serialized if node.type in LEAF_TYPES else plain_text(node),
            child_kinds=tuple(child.type for child in node.children),
        )
        self._cache[id(node)] = fp
        self._pinned.append(node)
        return fp

    def same(self, a: Node, b: Node) -> bool:
        """``True`` when *a* and *b* serialize identically."""
        return self.fingerprint(a).digest == self.fingerprint(b).digest

    def similarity(self, a: Node, b: Node) -> float:
        """Content similarity of two same-kind nodes, in ``[0, 1]``."""
        fa = self.fingerprint(a)
        fb = self.fingerprint(b)
        if fa.digest == fb.digest:
            return 1.0
        text_score = text_similarity(fa.text, fb.text)
        if a.type in LEAF_TYPES or not (fa.child_kinds or fb.child_kinds):
            return text_score
        structure = affix_ratio(fa.child_kinds, fb.child_kinds)
        return _STRUCTURE_SHARE * structure + (1 - _STRUCTURE_SHARE) * text_score

    def weight(self, a: Node, b: Node) -> int:
        """Integer alignment weight, or ``0`` when the pair is no candidate."""
        if a.type != b.type:
            return 0
        score = self.similarity(a, b)
        if score < self._min_similarity:
            return 0
        return self._kind_bonus + round(WEIGHT_SCALE * score) or 1
