"""Line edits produced by the planners and consumed by the patch service.

Indices refer to the buffer state at the moment the edit is applied; the
planners emit edits in an order that keeps that true without recomputing
pending indices.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class Deletion:
    """Remove buffer lines ``[start, end)``."""

    start: int
    end: int
    key: Optional[str] = None

    def __post_init__(self) -> None:
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"Invalid deletion span [{self.start}, {self.end})")

    @property
    def delta(self) -> int:
        return self.start - self.end


@dataclass(frozen=True)
class Insertion:
    """Insert ``lines`` before buffer index ``index``."""

    index: int
    lines: Tuple[str, ...]
    key: Optional[str] = None

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Invalid insertion index {self.index}")

    @property
    def delta(self) -> int:
        return len(self.lines)


Edit = Union[Deletion, Insertion]
