from __future__ import annotations

"""Mutable line buffer holding the document being fixed.

Each entry keeps its own line terminator so that joining the buffer gives
back the exact source text for every line that was not edited. Lines are
split on ``\\r\\n``, ``\\r`` and ``\\n``; libxml2 numbers lines on ``\\n``
only, so the loader normalises breaks before parsing.
"""

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from pom_fixer.core.exceptions import DocumentIOError

__all__ = ["LineBuffer", "ENCODING"]

logger = logging.getLogger(__name__)

ENCODING = "utf-8"

_LINE_RE = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+\Z")
_TERMINATOR_RE = re.compile(r"\r\n|\r|\n")


class LineBuffer:
    """Ordered, in-place editable sequence of document lines."""

    def __init__(self, lines: Optional[Iterable[str]] = None, path: Optional[Path] = None) -> None:
        self._lines: List[str] = list(lines or [])
        self.path = path

    # ------------------------------------------------------------------
    # Construction and persistence
    # ------------------------------------------------------------------
    @classmethod
    def from_text(cls, text: str, path: Optional[Path] = None) -> "LineBuffer":
        return cls(_LINE_RE.findall(text), path)

    @classmethod
    def read(cls, path: Union[str, Path]) -> "LineBuffer":
        """Read *path* as UTF-8 into a new buffer.

        Raises
        ------
        DocumentIOError
            If the file cannot be read or is not valid UTF-8.
        """
        path = Path(path)
        try:
            text = path.read_bytes().decode(ENCODING)
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentIOError(f"Unable to read document: {exc}", path, exc) from exc
        logger.debug("Read %s", path)
        return cls.from_text(text, path)

    def write(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write the buffer to *path* (default: the path it was read from).

        The text goes to a temporary file in the target directory which is
        then renamed over the target, so a failed write never leaves a
        truncated document behind.
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise DocumentIOError("No target path to write the document to")
        tmp_name: Optional[str] = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent or Path("."))
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(self.to_bytes())
            if target.exists():
                shutil.copymode(target, tmp_name)
            os.replace(tmp_name, target)
            tmp_name = None
        except OSError as exc:
            raise DocumentIOError(f"Unable to write document: {exc}", target, exc) from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.debug("Wrote %d lines to %s", len(self._lines), target)
        return target

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    @property
    def text(self) -> str:
        return "".join(self._lines)

    def to_bytes(self) -> bytes:
        return self.text.encode(ENCODING)

    @property
    def newline(self) -> str:
        """Terminator used by the document, ``\\n`` when it has none."""
        for line in self._lines:
            match = _TERMINATOR_RE.search(line)
            if match:
                return match.group(0)
        return "\n"

    @property
    def lines(self) -> List[str]:
        """Copy of the current lines."""
        return list(self._lines)

    def content(self, index: int) -> str:
        """Line at *index* without its terminator."""
        return self._lines[index].rstrip("\r\n")

    def find(self, marker: str, start: int = 0) -> int:
        """Index of the first line at or after *start* containing *marker*, or -1."""
        for i in range(max(start, 0), len(self._lines)):
            if marker in self._lines[i]:
                return i
        return -1

    def __len__(self) -> int:
        return len(self._lines)

    def __getitem__(self, index: int) -> str:
        return self._lines[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def delete(self, start: int, end: int) -> List[str]:
        """Remove lines ``[start, end)`` and return them."""
        if not 0 <= start < end <= len(self._lines):
            raise IndexError(f"Invalid span [{start}, {end}) for buffer of {len(self._lines)} lines")
        removed = self._lines[start:end]
        del self._lines[start:end]
        return removed

    def insert(self, index: int, new_lines: Iterable[str]) -> int:
        """Insert *new_lines* before *index*; return the number inserted."""
        if not 0 <= index <= len(self._lines):
            raise IndexError(f"Invalid insertion index {index} for buffer of {len(self._lines)} lines")
        block = list(new_lines)
        self._lines[index:index] = block
        return len(block)
