from __future__ import annotations

"""Error kinds and exception classes for the dependency fixer.

Every fatal condition maps onto one member of :class:`ErrorKind`. Lower
layers (loader, line buffer) raise the typed exceptions below; the fix
service catches them and reports the carried kind through ``FixResult``
so callers never have to inspect exception types.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

__all__ = [
    "ErrorKind",
    "FixError",
    "MissingSectionError",
    "MissingEndMarkerError",
    "PomParseError",
    "DocumentIOError",
    "FailedOnWarningError",
]


class ErrorKind(str, Enum):
    """Closed set of reasons a fix run can fail."""

    MISSING_SECTION = "missing_section"
    MISSING_END_MARKER = "missing_end_marker"
    PARSE_ERROR = "parse_error"
    IO_ERROR = "io_error"
    FAILED_ON_WARNING = "failed_on_warning"


class FixError(Exception):
    """Base exception for all fatal fixer errors.

    Attributes
    ----------
    kind
        The :class:`ErrorKind` reported to callers.
    path
        Document the error relates to, when known.
    cause
        Underlying exception, if any.
    """

    kind: ErrorKind = ErrorKind.PARSE_ERROR

    def __init__(self, message: str, path: Optional[Path] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        if self.path is not None:
            return f"[{self.path}] {super().__str__()}"
        return super().__str__()


class MissingSectionError(FixError):
    """Raised when the document has no project-level dependencies block."""

    kind = ErrorKind.MISSING_SECTION


class MissingEndMarkerError(FixError):
    """Raised when a start marker has no matching end marker line."""

    kind = ErrorKind.MISSING_END_MARKER

    def __init__(self, marker: str, line_index: int, path: Optional[Path] = None) -> None:
        self.marker = marker
        self.line_index = line_index
        super().__init__(
            f"Couldn't find end of <{marker}> started at line {line_index + 1}", path
        )


class PomParseError(FixError):
    """Raised when the document is not well-formed enough to derive positions."""

    kind = ErrorKind.PARSE_ERROR


class DocumentIOError(FixError):
    """Raised when reading or writing a document fails."""

    kind = ErrorKind.IO_ERROR


class FailedOnWarningError(FixError):
    """Raised when warnings occurred and the run treats them as fatal."""

    kind = ErrorKind.FAILED_ON_WARNING

    def __init__(self, warnings: list, path: Optional[Path] = None) -> None:
        self.warnings = list(warnings)
        super().__init__(f"{len(self.warnings)} warning(s) raised with fail_on_warning enabled", path)
