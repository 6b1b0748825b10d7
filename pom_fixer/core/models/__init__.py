from __future__ import annotations

"""Shared data structures used across the pom-fixer core.

This package exposes the value objects passed between the loader, the
planners and the fix service. It is intentionally free of I/O so the
objects can be built directly in unit-tests.

Positions stored here are 0-based indices into a :class:`LineBuffer` and
are only meaningful for the buffer state they were loaded from.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional

__all__ = [
    "Scope",
    "Origin",
    "Identity",
    "Declaration",
    "DependencySection",
    "PomModel",
    "Addition",
    "FixWarning",
    "INHERITED_ORIGIN",
    "DUPLICATE_ADDITION",
]


class Scope(str, Enum):
    """Maven dependency scopes in declaration order.

    ``COMPILE`` is the default scope and is never written out explicitly.
    ``TEST`` is the only scope placed in the bottom region of the block.
    """

    COMPILE = "compile"
    PROVIDED = "provided"
    RUNTIME = "runtime"
    TEST = "test"
    SYSTEM = "system"
    IMPORT = "import"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Scope":
        """Return the scope named by *value*; blank means ``COMPILE``.

        Raises ``ValueError`` for unknown names.
        """
        text = (value or "").strip().lower()
        if not text:
            return cls.COMPILE
        return cls(text)

    @property
    def is_test(self) -> bool:
        return self is Scope.TEST

    @property
    def is_default(self) -> bool:
        return self is Scope.COMPILE


class Origin(str, Enum):
    """Where a declaration physically lives."""

    LOCAL = "local"
    INHERITED = "inherited"


@dataclass(frozen=True, order=True)
class Identity:
    """Stable key of a dependency, version excluded.

    Field order defines the total order used for placement, so that
    ``Identity("a", "b") < Identity("a", "bb") < Identity("a", "c")``.
    """

    group_id: str
    artifact_id: str
    type: str = "jar"
    classifier: str = ""

    def __post_init__(self) -> None:
        if not self.group_id or not self.artifact_id:
            raise ValueError("groupId and artifactId are required")
        # Normalise blanks so keys compare equal regardless of input spacing
        object.__setattr__(self, "type", (self.type or "jar").strip() or "jar")
        object.__setattr__(self, "classifier", (self.classifier or "").strip())

    @classmethod
    def parse(cls, coordinates: str) -> "Identity":
        """Parse ``groupId:artifactId[:type[:classifier]]``."""
        parts = [p.strip() for p in (coordinates or "").split(":")]
        if len(parts) < 2 or len(parts) > 4:
            raise ValueError(f"Invalid dependency coordinates '{coordinates}'")
        return cls(*parts)

    @property
    def management_key(self) -> str:
        """Return ``groupId:artifactId:type[:classifier]``."""
        key = f"{self.group_id}:{self.artifact_id}:{self.type}"
        if self.classifier:
            key = f"{key}:{self.classifier}"
        return key

    def __str__(self) -> str:
        return self.management_key


@dataclass(frozen=True)
class Declaration:
    """A ``<dependency>`` element as found in the current buffer.

    Attributes
    ----------
    identity
        Parsed identity of the dependency.
    scope
        Declared scope, ``COMPILE`` when absent.
    start
        Index of the line holding the ``<dependency>`` start tag.
    end
        Index one past the line holding the matching ``</dependency>``.
    origin
        ``LOCAL`` for this document, ``INHERITED`` for a parent document.
    source
        Path of the document the declaration was read from.
    version
        Raw version text, if any.
    """

    identity: Identity
    scope: Scope
    start: int
    end: int
    origin: Origin = Origin.LOCAL
    source: Optional[str] = None
    version: Optional[str] = None

    @property
    def conflict_key(self) -> str:
        return self.identity.management_key

    @property
    def is_local(self) -> bool:
        return self.origin is Origin.LOCAL

    @property
    def span_length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class DependencySection:
    """Line indices of the project-level ``<dependencies>`` markers."""

    start: int
    end: int


@dataclass
class PomModel:
    """Result of loading a document: declarations in ascending line order.

    ``managed_keys`` holds the management keys listed under
    ``<dependencyManagement>`` in the document and its loaded parents.
    """

    path: Optional[str] = None
    declarations: List[Declaration] = field(default_factory=list)
    section: Optional[DependencySection] = None
    managed_keys: FrozenSet[str] = frozenset()

    def local_declarations(self) -> List[Declaration]:
        return [d for d in self.declarations if d.is_local]

    def declared_keys(self) -> FrozenSet[str]:
        return frozenset(d.conflict_key for d in self.local_declarations())


@dataclass(frozen=True)
class Addition:
    """A dependency that must be declared by the fix.

    ``version`` is the artifact's base version; it is only written when the
    conflict key is not managed elsewhere.
    """

    identity: Identity
    scope: Scope = Scope.COMPILE
    version: Optional[str] = None

    @classmethod
    def from_coordinates(cls, coordinates: str, version: Optional[str] = None,
                         scope: Optional[str] = None) -> "Addition":
        return cls(Identity.parse(coordinates), Scope.parse(scope), version)

    @property
    def conflict_key(self) -> str:
        return self.identity.management_key

    @property
    def group(self) -> str:
        return self.identity.group_id

    @property
    def is_test(self) -> bool:
        return self.scope.is_test


@dataclass(frozen=True)
class FixWarning:
    """Recoverable problem reported by a fix run.

    Attributes
    ----------
    kind
        Short machine-readable tag, e.g. ``"inherited_origin"``.
    message
        Human-readable summary suitable for logs.
    key
        Conflict key of the dependency concerned, if any.
    source
        Document the offending declaration comes from, if any.
    """

    kind: str
    message: str
    key: Optional[str] = None
    source: Optional[str] = None


INHERITED_ORIGIN = "inherited_origin"
DUPLICATE_ADDITION = "duplicate_addition"
