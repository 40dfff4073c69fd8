"""CriticMarkup rendering, normalization, and resolution."""

from .normalizer import CriticMarkupNormalizer, normalize
from .renderer import CriticMarkupRenderer
from .resolve import accept_all, reject_all
from .syntax import (
    SpanScanner,
    count_spans,
    has_deletion,
    has_insertion,
    has_substitution,
    tokenize,
)

__all__ = [
    "CriticMarkupNormalizer",
    "CriticMarkupRenderer",
    "SpanScanner",
    "accept_all",
    "count_spans",
    "has_deletion",
    "has_insertion",
    "has_substitution",
    "normalize",
    "reject_all",
    "tokenize",
]
