from __future__ import annotations

"""Simple reusable helper functions.

Ordering helpers used by the planners and the generator for new
``<dependency>`` blocks. These helpers are side-effect-free and contain no
disk I/O.
"""

import logging
from typing import AbstractSet, Iterable, List, Optional, Tuple
from xml.sax.saxutils import escape

from pom_fixer.core.models import Addition, Declaration
from pom_fixer.core.models.fix_options import LayoutConfig

__all__ = [
    "sort_by_line_descending",
    "sort_by_key_descending",
    "split_test_scope_first",
    "render_declaration",
]

logger = logging.getLogger(__name__)


def sort_by_line_descending(declarations: Iterable[Declaration]) -> List[Declaration]:
    """Return *declarations* bottom-up so deleting one never shifts the rest."""
    return sorted(declarations, key=lambda d: d.start, reverse=True)


def sort_by_key_descending(additions: Iterable[Addition]) -> List[Addition]:
    """Return *additions* in descending identity order."""
    return sorted(additions, key=lambda a: a.identity, reverse=True)


def split_test_scope_first(additions: Iterable[Addition]) -> Tuple[List[Addition], List[Addition]]:
    """Split *additions* into ``(test, non_test)``.

    Test-scoped entries go at the bottom of the block, so they are handled
    first to keep the line numbers at the top valid.
    """
    test: List[Addition] = []
    other: List[Addition] = []
    for addition in additions:
        (test if addition.is_test else other).append(addition)
    return test, other


def render_declaration(
    addition: Addition,
    managed_keys: AbstractSet[str] = frozenset(),
    layout: Optional[LayoutConfig] = None,
    newline: str = "\n",
) -> List[str]:
    """Return the lines of a new ``<dependency>`` block for *addition*.

    The version is left out when the conflict key is managed, the type when
    it is ``jar``, the classifier when blank and the scope when it is the
    default ``compile``.
    """
    layout = layout or LayoutConfig()
    outer = " " * layout.marker_indent
    inner = " " * layout.field_indent
    identity = addition.identity

    def field(name: str, value: str) -> str:
        return f"{inner}<{name}>{escape(value)}</{name}>{newline}"

    lines = [f"{outer}<dependency>{newline}"]
    lines.append(field("groupId", identity.group_id))
    lines.append(field("artifactId", identity.artifact_id))
    if addition.conflict_key not in managed_keys:
        if addition.version:
            lines.append(field("version", addition.version))
        else:
            logger.warning("No version known for unmanaged dependency %s", addition.conflict_key)
    if identity.type != "jar":
        lines.append(field("type", identity.type))
    if identity.classifier.strip():
        lines.append(field("classifier", identity.classifier))
    if not addition.scope.is_default:
        lines.append(field("scope", addition.scope.value))
    lines.append(f"{outer}</dependency>{newline}")
    return lines
