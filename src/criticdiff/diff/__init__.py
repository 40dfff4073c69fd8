"""Structural diff engine for document trees.

Exports
-------
TreeDiffer
    Computes the operation tree between an old and a new document.
SimilarityScorer
    Fingerprint cache and pairwise similarity oracle used for alignment.
lcs_match
    Weighted, order-preserving sibling alignment.
check_coverage
    Verify that an operation sequence covers both child sequences.
split_text_pair
    Word- or character-level hunks between two changed text runs.
count_changes / iter_changes
    Walk the change operations of an operation tree.
"""

from .coverage import check_coverage
from .lcs_matcher import lcs_match
from .planner import TreeDiffer, count_changes, iter_changes
from .similarity import SimilarityScorer
from .text_hunks import split_text_pair

__all__ = [
    "SimilarityScorer",
    "TreeDiffer",
    "check_coverage",
    "count_changes",
    "iter_changes",
    "lcs_match",
    "split_text_pair",
]
