"""Structured JSON logger for criticdiff.

Every log record is emitted as a single-line JSON object so that the
annotation pipeline's diagnostics can be shipped to a log aggregator
without extra parsing.

Typical structured output::

    {"ts": "2026-03-02T09:14:07.512301+00:00", "level": "INFO",
     "logger": "criticdiff", "message": "annotate complete",
     "op": "annotate", "inserted": 2, "deleted": 0, "updated": 1,
     "duration_ms": 3.8}

Usage::

    from criticdiff.observability import get_logger

    log = get_logger()
    log.info("annotate complete", extra={"extra_fields": {"inserted": 2}})

    # Per-stage loggers
    log = get_logger("criticdiff.diff")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts`` (ISO-8601 UTC), ``level``, ``logger`` and
    ``message``.  Structured fields passed with
    ``extra={"extra_fields": {...}}`` are merged into the top-level object;
    exception information is serialised when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


# One handler per logger name so repeated ``get_logger`` calls are idempotent.
_configured_loggers: set[str] = set()


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def get_logger(
    name: str = "criticdiff",
    *,
    level: int | str = logging.WARNING,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"criticdiff"``.
    level:
        Minimum log level, as an ``int`` or a case-insensitive name.  Only
        applied the first time *name* is configured.  The library is quiet
        by default; raise the verbosity with ``logger.setLevel`` after
        retrieval.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        A logger with a :class:`StructuredFormatter` handler attached.
        Repeated calls with the same *name* return the same logger and do
        **not** add duplicate handlers.

    Raises
    ------
    ValueError
        If *level* is a string that names no logging level.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        logger.setLevel(_resolve_level(level))

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        # Avoid duplicate lines when the root logger also has handlers.
        logger.propagate = False

        _configured_loggers.add(name)

    return logger
