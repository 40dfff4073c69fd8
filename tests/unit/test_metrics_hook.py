"""Tests for the MetricsHook protocol and its wiring through the pipeline.

Covers:
  - Protocol conformance (isinstance, structural subtyping)
  - NoopMetricsHook behaviour
  - resolve_metrics defaulting and type checking
  - Every documented metric name is emitted by the pipeline
"""
from __future__ import annotations

from typing import Any

import pytest

from criticdiff.config import CriticDiffConfig
from criticdiff.config import EXISTING_TEXT_SENTINEL as S
from criticdiff.errors import DiffInputTooLargeError, DocumentParseError, EditScriptAlternationError
from criticdiff.observability.metrics import MetricsHook, NoopMetricsHook, resolve_metrics
from criticdiff.pipeline import CriticDiffPipeline

# ---------------------------------------------------------------------------
# Recording hook for integration tests
# ---------------------------------------------------------------------------


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def names(self) -> set[str]:
        return {call["name"] for call in self.increments + self.timings}


@pytest.fixture
def hook() -> RecordingMetricsHook:
    return RecordingMetricsHook()


@pytest.fixture
def recording_pipeline(hook: RecordingMetricsHook) -> CriticDiffPipeline:
    return CriticDiffPipeline(CriticDiffConfig(metrics=hook))


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class TestMetricsHookProtocol:
    def test_noop_is_instance_of_protocol(self):
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_recording_hook_is_instance_of_protocol(self):
        assert isinstance(RecordingMetricsHook(), MetricsHook)

    def test_class_missing_timing_is_not_instance(self):
        """A class missing 'timing' does not satisfy the protocol."""

        class PartialHook:
            def increment(self, name, value=1, tags=None):
                pass

        assert not isinstance(PartialHook(), MetricsHook)

    def test_empty_class_is_not_instance(self):
        class EmptyHook:
            pass

        assert not isinstance(EmptyHook(), MetricsHook)


class TestNoopMetricsHook:
    def test_calls_return_none(self):
        hook = NoopMetricsHook()
        assert hook.increment("criticdiff.spans_total") is None
        assert hook.timing("criticdiff.annotate_duration_ms", 1.5, tags={"a": "b"}) is None

    def test_noop_has_slots(self):
        assert NoopMetricsHook.__slots__ == ()
        with pytest.raises(AttributeError):
            NoopMetricsHook().extra = 1  # type: ignore[attr-defined]


class TestResolveMetrics:
    def test_none_gives_noop(self):
        assert isinstance(resolve_metrics(None), NoopMetricsHook)

    def test_valid_hook_returned_as_is(self, hook):
        assert resolve_metrics(hook) is hook

    def test_invalid_hook_rejected(self):
        with pytest.raises(TypeError):
            resolve_metrics(object())

    def test_pipeline_rejects_invalid_hook(self):
        with pytest.raises(TypeError):
            CriticDiffPipeline(CriticDiffConfig(metrics="statsd"))


# ---------------------------------------------------------------------------
# Pipeline wiring
# ---------------------------------------------------------------------------


class TestPipelineMetrics:
    def test_annotate_emits_counts_and_timing(self, recording_pipeline, hook):
        recording_pipeline.annotate("A\n\nB", "A\n\nB\n\nC")
        ops = [c for c in hook.increments if c["name"] == "criticdiff.diff_ops_total"]
        assert ops == [{"name": "criticdiff.diff_ops_total", "value": 1, "tags": {"op": "insert"}}]
        spans = [c for c in hook.increments if c["name"] == "criticdiff.spans_total"]
        assert spans[0]["value"] == 1
        assert hook.timings[0]["name"] == "criticdiff.annotate_duration_ms"
        assert hook.timings[0]["ms"] >= 0

    def test_no_op_annotation_emits_zero_spans(self, recording_pipeline, hook):
        recording_pipeline.annotate("Same.", "Same.")
        assert not [c for c in hook.increments if c["name"] == "criticdiff.diff_ops_total"]
        spans = [c for c in hook.increments if c["name"] == "criticdiff.spans_total"]
        assert spans[0]["value"] == 0

    def test_validation_failure_counted(self, recording_pipeline, hook):
        with pytest.raises(EditScriptAlternationError):
            recording_pipeline.validate_edit_script([S, "x"])
        assert hook.increments == [{
            "name": "criticdiff.validation_failures_total",
            "value": 1,
            "tags": {"code": "EDIT_SCRIPT_ALTERNATION"},
        }]

    def test_stage_failure_counted(self, hook):
        pipeline = CriticDiffPipeline(CriticDiffConfig(metrics=hook, max_nodes=2))
        with pytest.raises(DiffInputTooLargeError):
            pipeline.annotate("a\n\nb", "a")
        failures = [c for c in hook.increments if c["name"] == "criticdiff.pipeline_failures_total"]
        assert failures[0]["tags"] == {"stage": "diff", "code": "INPUT_TOO_LARGE"}
        assert not hook.timings

    def test_documented_metric_names(self, recording_pipeline, hook):
        recording_pipeline.annotate("Old.", "New.")
        with pytest.raises(EditScriptAlternationError):
            recording_pipeline.validate_edit_script(["a", "b"])
        with pytest.raises(DocumentParseError):
            recording_pipeline.annotate(None, "x")  # type: ignore[arg-type]
        assert {
            "criticdiff.diff_ops_total",
            "criticdiff.spans_total",
            "criticdiff.annotate_duration_ms",
            "criticdiff.validation_failures_total",
            "criticdiff.pipeline_failures_total",
        } <= hook.names()
