"""Full error hierarchy for criticdiff.

Every public error class inherits from CriticDiffError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.

Recoverability
--------------
* :class:`EditScriptValidationError` and its subclasses are recoverable:
  the caller may retry the upstream generation step.
* :class:`DocumentParseError` and :class:`InternalInvariantError` abort the
  whole request.  No partial annotation is ever returned alongside them.
* :class:`DiffInputTooLargeError` is a resource-protection refusal; the
  caller may retry with smaller documents.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    EDIT_SCRIPT_EMPTY = "EDIT_SCRIPT_EMPTY"
    EDIT_SCRIPT_ALTERNATION = "EDIT_SCRIPT_ALTERNATION"
    EDIT_SCRIPT_FORMAT = "EDIT_SCRIPT_FORMAT"
    PARSE_ERROR = "PARSE_ERROR"
    INPUT_TOO_LARGE = "INPUT_TOO_LARGE"
    INTERNAL_INVARIANT = "INTERNAL_INVARIANT"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class CriticDiffError(Exception):
    """Base exception for all criticdiff errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Edit-script validation errors
# ---------------------------------------------------------------------------

class EditScriptValidationError(CriticDiffError):
    """Base class for edit scripts that break the alternation contract.

    Context varies by subclass.
    """

    def __init__(
        self,
        code: str = ErrorCode.VALIDATION_ERROR,
        message: str = "Invalid edit script",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class EditScriptEmptyError(EditScriptValidationError):
    """The edit script has zero elements."""

    def __init__(
        self,
        message: str = "Edit script must contain at least one element",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.EDIT_SCRIPT_EMPTY,
            message=message,
            context=context,
            cause=cause,
        )


class EditScriptAlternationError(EditScriptValidationError):
    """Two adjacent elements are both content or both the sentinel.

    Context keys: ``index``, ``length``.

    The offending position is also exposed as :attr:`index`: the index of
    the *second* element of the first same-category pair (``0`` when a
    leading sentinel is rejected).
    """

    def __init__(
        self,
        message: str,
        index: int,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.index: int = index
        ctx = {"index": index}
        if context:
            ctx.update(context)
        super().__init__(
            code=ErrorCode.EDIT_SCRIPT_ALTERNATION,
            message=message,
            context=ctx,
            cause=cause,
        )


class EditScriptFormatError(EditScriptValidationError):
    """The edit script payload is not an array of strings.

    Context keys: ``reason``, ``index`` (for non-string elements).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.EDIT_SCRIPT_FORMAT,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Pipeline errors
# ---------------------------------------------------------------------------

class DocumentParseError(CriticDiffError):
    """The markdown parser rejected the document source.

    Context keys: ``source_length``, ``side`` (``"old"`` / ``"new"`` when
    raised from the pipeline).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PARSE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class DiffInputTooLargeError(CriticDiffError):
    """A document exceeds the configured size guard for tree alignment.

    Context keys: ``nodes`` / ``max_nodes`` or ``cells`` /
    ``max_alignment_cells``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INPUT_TOO_LARGE,
            message=message,
            context=context,
            cause=cause,
        )


class InternalInvariantError(CriticDiffError):
    """A diff-coverage or span-nesting invariant was broken.

    This always indicates a defect in the differencer or renderer, never
    bad user input.

    Context keys: ``invariant``, ``parent_type``, ``detail``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INTERNAL_INVARIANT,
            message=message,
            context=context,
            cause=cause,
        )
