"""Metrics hook protocol and no-op default implementation.

criticdiff emits counters and timings at the end of every pipeline stage.
By default a :class:`NoopMetricsHook` is used so there is zero overhead.
Callers can plug in any object that satisfies the :class:`MetricsHook`
protocol (StatsD, Prometheus, Datadog, ...) through
:attr:`CriticDiffConfig.metrics <criticdiff.config.CriticDiffConfig.metrics>`.

Usage::

    from criticdiff.observability.metrics import MetricsHook

    assert isinstance(my_backend, MetricsHook)

Emitted metric names:

* ``criticdiff.diff_ops_total``            -- counter, tag ``op``
* ``criticdiff.spans_total``               -- counter
* ``criticdiff.annotate_duration_ms``      -- timing
* ``criticdiff.validation_failures_total`` -- counter, tag ``code``
* ``criticdiff.pipeline_failures_total``   -- counter, tags ``stage``, ``code``
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values,
    which implementations translate into their own labelling scheme.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric.

        Parameters
        ----------
        name:
            Dot-delimited metric name, e.g. ``"criticdiff.spans_total"``.
        value:
            Amount to increment by.  Defaults to ``1``.
        tags:
            Optional key-value tags for the data point.
        """
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Metrics backend that silently discards every data point.

    Lets pipeline call-sites emit unconditionally, without
    ``if metrics is not None`` guards.
    """

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass


def resolve_metrics(metrics: Any | None) -> MetricsHook:
    """Return *metrics*, or a :class:`NoopMetricsHook` when it is ``None``.

    Raises
    ------
    TypeError
        If *metrics* does not satisfy :class:`MetricsHook`.
    """
    if metrics is None:
        return NoopMetricsHook()
    if not isinstance(metrics, MetricsHook):
        raise TypeError(
            f"metrics must implement increment/timing, got {type(metrics).__name__}"
        )
    return metrics
