from __future__ import annotations

"""Structural model loader for ``pom.xml`` documents.

Parses the current text of a :class:`LineBuffer` with lxml in strict mode
and turns the project-level ``<dependencies>`` block into
:class:`Declaration` records carrying 0-based line spans. lxml only reports
the line of an element's start tag; the end of each span is found by
scanning the buffer forward for the matching end marker.

Optionally follows ``<parent><relativePath>`` so that dependencies declared
in a parent document show up as ``INHERITED`` declarations.
"""

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Set, Tuple

from lxml import etree as ET

from pom_fixer.core.buffer import ENCODING, LineBuffer
from pom_fixer.core.exceptions import MissingEndMarkerError, PomParseError
from pom_fixer.core.models import (
    Declaration,
    DependencySection,
    Identity,
    Origin,
    PomModel,
    Scope,
)

__all__ = ["PomLoader", "end_marker_pattern"]

logger = logging.getLogger(__name__)

_MAX_PARENT_DEPTH = 16


def end_marker_pattern(tag: str) -> "re.Pattern[str]":
    """Regex matching the closing tag of *tag*, with or without a prefix."""
    return re.compile(r"</(?:[\w.-]+:)?" + re.escape(tag) + r"\s*>")


_END_DEPENDENCY = end_marker_pattern("dependency")
_END_DEPENDENCIES = end_marker_pattern("dependencies")
_EMPTY_DEPENDENCIES = re.compile(r"<(?:[\w.-]+:)?dependencies\s*/>")
_LINE_BREAK = re.compile(r"\r\n?")


def _local(el) -> str:
    return ET.QName(el).localname


def _children(el, name: str) -> Iterator:
    for child in el:
        # Skip comments and processing instructions
        if isinstance(child.tag, str) and _local(child) == name:
            yield child


def _child(el, name: str):
    return next(_children(el, name), None)


def _child_text(el, name: str) -> Optional[str]:
    child = _child(el, name)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


class PomLoader:
    """Load :class:`PomModel` instances from buffers or files.

    Parameters
    ----------
    resolve_parents
        Follow ``<parent><relativePath>`` and include the parent's
        dependencies as inherited declarations.
    """

    def __init__(self, resolve_parents: bool = False) -> None:
        self.resolve_parents = resolve_parents
        self._parser = ET.XMLParser(
            recover=False,
            resolve_entities=False,
            no_network=True,
            remove_blank_text=False,
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def load(self, buffer: LineBuffer, path: Optional[Path] = None) -> PomModel:
        """Parse *buffer* and return its declarations in ascending line order.

        Raises
        ------
        PomParseError
            If the text is not well-formed XML, is not a ``<project>``, or a
            dependency lacks its identity fields or has an unknown scope.
        MissingEndMarkerError
            If a start marker has no matching end marker line.
        """
        path = path if path is not None else buffer.path
        source = str(path) if path is not None else None
        root = self._parse(buffer, path)

        declarations: List[Declaration] = []
        section: Optional[DependencySection] = None
        deps_el = _child(root, "dependencies")
        if deps_el is not None:
            section = self._section_bounds(buffer, deps_el, path)
            declarations.extend(self._declarations(buffer, deps_el, Origin.LOCAL, source, path))

        managed = set(self._managed_keys(root))

        if self.resolve_parents and path is not None:
            visited: Set[Path] = {Path(path).resolve()}
            for parent_decls, parent_managed in self._parent_chain(root, Path(path), visited, 1):
                declarations.extend(parent_decls)
                managed.update(parent_managed)

        logger.debug(
            "Loaded %s: %d declarations, section=%s, managed=%d",
            source or "<buffer>", len(declarations), section, len(managed),
        )
        return PomModel(
            path=source,
            declarations=declarations,
            section=section,
            managed_keys=frozenset(managed),
        )

    def load_path(self, path: Path) -> PomModel:
        """Read *path* and load it."""
        return self.load(LineBuffer.read(path), Path(path))

    def refresh(self, buffer: LineBuffer) -> PomModel:
        """Reload the model from the buffer's current text.

        Must be called after any mutation of *buffer* before positions are
        used again; declarations from earlier loads are stale.
        """
        logger.debug("Refreshing model from buffer (%d lines)", len(buffer))
        return self.load(buffer)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _parse(self, buffer: LineBuffer, path: Optional[Path]):
        # libxml2 only counts \n when numbering lines; the buffer also splits on \r
        data = _LINE_BREAK.sub("\n", buffer.text).encode(ENCODING)
        if not data.strip():
            raise PomParseError("Document is empty", path)
        try:
            root = ET.fromstring(data, self._parser)
        except ET.XMLSyntaxError as exc:
            raise PomParseError(f"Malformed document: {exc}", path, exc) from exc
        if _local(root) != "project":
            raise PomParseError(f"Unexpected root element <{_local(root)}>", path)
        return root

    def _section_bounds(self, buffer: LineBuffer, deps_el, path: Optional[Path]) -> Optional[DependencySection]:
        start = deps_el.sourceline - 1
        if len(deps_el) == 0 and _EMPTY_DEPENDENCIES.search(buffer[start]):
            logger.warning("Self-closing <dependencies/> at line %d treated as missing", start + 1)
            return None
        end = _find_end(buffer, _END_DEPENDENCIES, start)
        if end <= start:
            # A one-line block has no line to insert before
            if len(deps_el) == 0:
                logger.warning("Empty one-line <dependencies> at line %d treated as missing", start + 1)
                return None
            raise MissingEndMarkerError("dependencies", start, path)
        return DependencySection(start=start, end=end)

    def _declarations(self, buffer: LineBuffer, deps_el, origin: Origin,
                      source: Optional[str], path: Optional[Path]) -> List[Declaration]:
        result: List[Declaration] = []
        for dep in _children(deps_el, "dependency"):
            identity, scope, version = self._read_dependency(dep, path)
            start = dep.sourceline - 1
            end_line = _find_end(buffer, _END_DEPENDENCY, start)
            if end_line < 0:
                raise MissingEndMarkerError("dependency", start, path)
            result.append(Declaration(
                identity=identity,
                scope=scope,
                start=start,
                end=end_line + 1,
                origin=origin,
                source=source,
                version=version,
            ))
        return result

    def _read_dependency(self, dep, path: Optional[Path]) -> Tuple[Identity, Scope, Optional[str]]:
        line = dep.sourceline
        try:
            identity = Identity(
                _child_text(dep, "groupId") or "",
                _child_text(dep, "artifactId") or "",
                _child_text(dep, "type") or "jar",
                _child_text(dep, "classifier") or "",
            )
        except ValueError as exc:
            raise PomParseError(f"Dependency at line {line}: {exc}", path, exc) from exc
        try:
            scope = Scope.parse(_child_text(dep, "scope"))
        except ValueError as exc:
            raise PomParseError(
                f"Dependency {identity} at line {line} has unknown scope '{_child_text(dep, 'scope')}'",
                path, exc,
            ) from exc
        return identity, scope, _child_text(dep, "version")

    def _managed_keys(self, root) -> Iterator[str]:
        management = _child(root, "dependencyManagement")
        if management is None:
            return
        deps_el = _child(management, "dependencies")
        if deps_el is None:
            return
        for dep in _children(deps_el, "dependency"):
            group = _child_text(dep, "groupId")
            artifact = _child_text(dep, "artifactId")
            if not group or not artifact:
                continue
            yield Identity(group, artifact, _child_text(dep, "type") or "jar",
                           _child_text(dep, "classifier") or "").management_key

    def _parent_chain(self, root, path: Path, visited: Set[Path], depth: int):
        """Yield ``(declarations, managed_keys)`` for each resolvable ancestor."""
        parent_el = _child(root, "parent")
        if parent_el is None or depth > _MAX_PARENT_DEPTH:
            return
        rel = _child(parent_el, "relativePath")
        if rel is not None and not (rel.text or "").strip():
            # Empty <relativePath/> disables the file-system lookup
            return
        rel_text = (rel.text or "").strip() if rel is not None else "../pom.xml"
        parent_path = (path.parent / rel_text)
        if parent_path.is_dir():
            parent_path = parent_path / "pom.xml"
        parent_path = parent_path.resolve()
        if not parent_path.is_file():
            logger.debug("Parent document %s not found; inherited dependencies unknown", parent_path)
            return
        if parent_path in visited:
            logger.warning("Cycle in parent chain at %s", parent_path)
            return
        visited.add(parent_path)

        parent_buffer = LineBuffer.read(parent_path)
        parent_root = self._parse(parent_buffer, parent_path)
        expected = _child_text(parent_el, "artifactId")
        actual = _child_text(parent_root, "artifactId")
        if expected and actual and expected != actual:
            logger.warning(
                "Parent at %s is '%s', expected '%s'; ignoring it", parent_path, actual, expected
            )
            return

        decls: List[Declaration] = []
        deps_el = _child(parent_root, "dependencies")
        if deps_el is not None:
            decls = self._declarations(parent_buffer, deps_el, Origin.INHERITED, str(parent_path), parent_path)
        yield decls, set(self._managed_keys(parent_root))
        yield from self._parent_chain(parent_root, parent_path, visited, depth + 1)


def _find_end(buffer: LineBuffer, pattern: "re.Pattern[str]", start: int) -> int:
    for i in range(start, len(buffer)):
        if pattern.search(buffer[i]):
            return i
    return -1
