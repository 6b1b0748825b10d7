from __future__ import annotations

"""Apply planned line edits to a :class:`LineBuffer`.

Pure buffer operation: the service neither parses nor reorders anything.
Callers pass edits already sequenced so that each index is valid for the
buffer state at the moment that edit is applied.
"""

import logging
from typing import Iterable

from pom_fixer.core.buffer import LineBuffer
from pom_fixer.core.models.edit_plan import Deletion, Edit, Insertion

__all__ = ["PatchService"]

logger = logging.getLogger(__name__)


class PatchService:
    """Executes deletions and insertions against a line buffer."""

    def apply(self, buffer: LineBuffer, edits: Iterable[Edit]) -> int:
        """Apply *edits* in the given order and return the net line delta.

        Raises
        ------
        IndexError
            If an edit's index is out of range for the current buffer.
        TypeError
            If an element is neither a :class:`Deletion` nor an :class:`Insertion`.
        """
        delta = 0
        for edit in edits:
            if isinstance(edit, Deletion):
                removed = buffer.delete(edit.start, edit.end)
                for line in removed:
                    logger.debug("Removing line %s", line.rstrip("\r\n"))
                delta -= len(removed)
            elif isinstance(edit, Insertion):
                count = buffer.insert(edit.index, edit.lines)
                logger.debug("Inserted %d lines for %s at index %d", count, edit.key, edit.index)
                delta += count
            else:
                raise TypeError(f"Unsupported edit {edit!r}")
        return delta
