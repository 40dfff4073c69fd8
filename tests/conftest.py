"""Shared test fixtures for the criticdiff test suite."""

from __future__ import annotations

import pytest

from criticdiff.config import CriticDiffConfig
from criticdiff.diff.planner import TreeDiffer
from criticdiff.document.parser import DocumentParser
from criticdiff.document.serializer import MarkdownSerializer
from criticdiff.markup.normalizer import CriticMarkupNormalizer
from criticdiff.markup.renderer import CriticMarkupRenderer
from criticdiff.pipeline import CriticDiffPipeline


@pytest.fixture
def config() -> CriticDiffConfig:
    """Default configuration."""
    return CriticDiffConfig()


@pytest.fixture
def parser() -> DocumentParser:
    return DocumentParser()


@pytest.fixture
def serializer() -> MarkdownSerializer:
    return MarkdownSerializer()


@pytest.fixture
def differ(config: CriticDiffConfig) -> TreeDiffer:
    return TreeDiffer(config)


@pytest.fixture
def renderer(config: CriticDiffConfig) -> CriticMarkupRenderer:
    return CriticMarkupRenderer(config)


@pytest.fixture
def normalizer(config: CriticDiffConfig) -> CriticMarkupNormalizer:
    return CriticMarkupNormalizer(config)


@pytest.fixture
def pipeline(config: CriticDiffConfig) -> CriticDiffPipeline:
    """Annotation pipeline using the default config."""
    return CriticDiffPipeline(config)
