from __future__ import annotations

"""Document parser helpers.

Currently provides the lxml-based ``pom.xml`` loader used by the fix
pipeline to derive declaration line spans.
"""

from .pom_loader import PomLoader, end_marker_pattern  # noqa: F401

__all__: list[str] = [
    "PomLoader",
    "end_marker_pattern",
]
