from __future__ import annotations

"""Service layer for fixing the dependency declarations of a ``pom.xml``.

The run is strictly sequential:

    Load -> plan removals -> apply -> (checkpoint) -> Refresh
         -> plan insertions -> apply (test phase, then primary phase) -> Write

Scope and guarantees:
- :func:`fix_buffer` works purely in memory and raises :class:`FixError`
  subclasses for fatal conditions.
- :func:`fix_document` is the text-in/text-out form of the same run.
- :class:`FixService` adds file I/O and never raises for expected failures;
  it returns a :class:`FixResult` carrying an :class:`ErrorKind` instead.
- The document is only rewritten after every phase succeeded; the write
  itself goes through a temporary file and a rename.

Examples
--------
Basic usage:

    service = FixService(FixOptions(verbose_output=True))
    result = service.fix(Path("pom.xml"), FixRequest(
        unused_declared={Identity("junit", "junit")},
        used_undeclared=[Addition.from_coordinates("org.slf4j:slf4j-api", "2.0.9")],
    ))
    if not result.success:
        print(result.kind, result.message)
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import (
    AbstractSet,
    Any,
    Callable,
    Collection,
    Dict,
    FrozenSet,
    List,
    Optional,
    Tuple,
    Union,
)

from pom_fixer.core.buffer import LineBuffer
from pom_fixer.core.exceptions import (
    ErrorKind,
    FailedOnWarningError,
    FixError,
    MissingSectionError,
)
from pom_fixer.core.models import Addition, Declaration, FixWarning, Identity
from pom_fixer.core.models.fix_options import FixOptions
from pom_fixer.core.parser.pom_loader import PomLoader
from pom_fixer.core.services.insertion_planner import InsertionPlanner
from pom_fixer.core.services.patch_service import PatchService
from pom_fixer.core.services.removal_planner import RemovalPlanner
from pom_fixer.core.utils import render_declaration

__all__ = [
    "FixRequest",
    "FixOutcome",
    "FixResult",
    "FixService",
    "fix_buffer",
    "fix_document",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixRequest:
    """Inputs of a fix run, as produced by the dependency analysis.

    Attributes
    ----------
    unused_declared
        Identities declared in the document but not used; they are removed.
    used_undeclared
        Dependencies used but not declared; they are added.
    managed_keys
        Conflict keys whose versions are pinned elsewhere.
    """

    unused_declared: FrozenSet[Identity] = frozenset()
    used_undeclared: Tuple[Addition, ...] = ()
    managed_keys: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "unused_declared", frozenset(self.unused_declared))
        object.__setattr__(self, "used_undeclared", tuple(self.used_undeclared))
        object.__setattr__(self, "managed_keys", frozenset(self.managed_keys))

    @property
    def is_empty(self) -> bool:
        return not self.unused_declared and not self.used_undeclared


@dataclass
class FixOutcome:
    """In-memory result of :func:`fix_buffer`.

    ``declarations`` is the declaration set reloaded from the final buffer,
    for callers that need to continue working on the fixed document.
    """

    buffer: LineBuffer
    warnings: List[FixWarning] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    added: List[str] = field(default_factory=list)
    declarations: List[Declaration] = field(default_factory=list)
    report: Optional[str] = None

    @property
    def changed(self) -> bool:
        return bool(self.removed or self.added)


@dataclass(frozen=True)
class FixResult:
    """Result of :meth:`FixService.fix`.

    Attributes
    ----------
    success
        Whether the run completed.
    message
        Human-readable summary suitable for logs or console output.
    kind
        Error kind when ``success`` is False.
    warnings
        Recoverable problems met during the run.
    changed
        Whether the document was rewritten.
    details
        Structured details (removed/added keys, paths) for callers.
    declarations
        Declarations of the document after the fix.
    report
        Generated blocks for the additions when verbose output is enabled.
    """

    success: bool
    message: str
    kind: Optional[ErrorKind] = None
    warnings: Tuple[FixWarning, ...] = ()
    changed: bool = False
    details: Optional[Dict[str, Any]] = None
    declarations: Tuple[Declaration, ...] = ()
    report: Optional[str] = None


def fix_buffer(
    buffer: LineBuffer,
    removals: Collection[Identity] = (),
    additions: Collection[Addition] = (),
    managed_keys: AbstractSet[str] = frozenset(),
    loader: Optional[PomLoader] = None,
    options: Optional[FixOptions] = None,
    on_checkpoint: Optional[Callable[[LineBuffer], None]] = None,
) -> FixOutcome:
    """Remove and add declarations in *buffer* in place.

    Parameters
    ----------
    buffer
        Document to edit; mutated in place.
    removals, additions
        Identities to remove and dependencies to add.
    managed_keys
        Conflict keys whose versions must not be written.
    loader
        Model loader; a strict :class:`PomLoader` by default.
    options
        Run options (fail_on_warning, verbose_output, layout).
    on_checkpoint
        Called with the buffer after the removal phase, before insertions.

    Raises
    ------
    FixError
        Any fatal condition; the buffer may already hold the removals.
    """
    options = options or FixOptions()
    loader = loader or PomLoader(resolve_parents=options.resolve_parents)
    outcome = FixOutcome(buffer=buffer)
    if not removals and not additions:
        return outcome

    model = loader.load(buffer)
    if model.section is None:
        raise MissingSectionError("No dependencies section found", buffer.path)

    # Removals first, bottom-up, so insertion planning sees final positions
    removal_plan = RemovalPlanner().plan(model, removals)
    outcome.warnings.extend(removal_plan.warnings)
    _check_warnings(outcome.warnings, options, buffer.path)
    PatchService().apply(buffer, removal_plan.deletions)
    outcome.removed.extend(d.conflict_key for d in reversed(removal_plan.removed))

    if on_checkpoint is not None:
        on_checkpoint(buffer)

    if additions:
        # Positions from before the removals are stale now
        model = loader.refresh(buffer)
        managed = frozenset(managed_keys) | model.managed_keys
        insertion_plan = InsertionPlanner(options.layout).plan(model, additions, managed, buffer.newline)
        outcome.warnings.extend(insertion_plan.warnings)
        _check_warnings(outcome.warnings, options, buffer.path)
        if options.verbose_output and insertion_plan.added:
            outcome.report = "".join(
                "".join(render_declaration(a, managed, options.layout, "\n"))
                for a in sorted(insertion_plan.added, key=lambda a: (a.is_test, a.identity))
            )
            logger.info("Add the following to your pom to correct the missing dependencies:\n%s",
                        outcome.report)
        PatchService().apply(buffer, insertion_plan.ordered())
        outcome.added.extend(a.conflict_key for a in insertion_plan.added)

    if outcome.changed:
        outcome.declarations = loader.refresh(buffer).declarations
    return outcome


def fix_document(
    text: str,
    removals: Collection[Identity] = (),
    additions: Collection[Addition] = (),
    managed_keys: AbstractSet[str] = frozenset(),
    loader: Optional[PomLoader] = None,
    options: Optional[FixOptions] = None,
) -> Tuple[str, List[FixWarning]]:
    """Text-in/text-out form of :func:`fix_buffer`.

    Returns the new document text and the warnings raised.
    """
    outcome = fix_buffer(LineBuffer.from_text(text), removals, additions, managed_keys, loader, options)
    return outcome.buffer.text, outcome.warnings


def _check_warnings(warnings: List[FixWarning], options: FixOptions, path: Optional[Path]) -> None:
    if warnings and options.fail_on_warning:
        raise FailedOnWarningError(warnings, path)


class FixService:
    """Runs a fix against a document on disk.

    Parameters
    ----------
    options
        Run options; read from the ``fixer.yml`` configuration when omitted.
    loader
        Model loader; built from ``options.resolve_parents`` when omitted.
    """

    def __init__(self, options: Optional[FixOptions] = None, loader: Optional[PomLoader] = None) -> None:
        self.options = options or FixOptions.from_config()
        self.loader = loader or PomLoader(resolve_parents=self.options.resolve_parents)
        self._logger = logging.getLogger(f"{__name__}.FixService")

    def checkpoint_path(self, pom_path: Path) -> Path:
        return pom_path.with_name(pom_path.name + self.options.checkpoint_suffix)

    def fix(self, pom_path: Union[str, Path], request: FixRequest) -> FixResult:
        """Fix *pom_path* according to *request*.

        Returns a failed :class:`FixResult` for every fatal condition instead
        of raising.
        """
        pom_path = Path(pom_path)
        if self.options.skip:
            self._logger.info("Skipping fix of %s", pom_path)
            return FixResult(True, "Skipping fix.", details={"path": str(pom_path), "skipped": True})
        if request.is_empty:
            self._logger.info("Fix noop: nothing to remove or add in %s", pom_path)
            return FixResult(True, "Nothing to fix.", details={"path": str(pom_path)})

        self._logger.info(
            "Fix: %s remove=%d add=%d", pom_path, len(request.unused_declared), len(request.used_undeclared)
        )
        on_checkpoint = self._write_checkpoint(pom_path) if self.options.checkpoint else None
        try:
            buffer = LineBuffer.read(pom_path)
            outcome = fix_buffer(
                buffer,
                request.unused_declared,
                request.used_undeclared,
                request.managed_keys,
                self.loader,
                self.options,
                on_checkpoint,
            )
            if outcome.changed:
                self._logger.info("Writing updated POM to %s", pom_path)
                buffer.write(pom_path)
        except FixError as exc:
            self._logger.error("Fix FAIL: %s kind=%s %s", pom_path, exc.kind.value, exc)
            warnings = tuple(getattr(exc, "warnings", ()))
            return FixResult(False, str(exc), exc.kind, warnings, details={"path": str(pom_path)})

        for warning in outcome.warnings:
            self._logger.warning("Fix warning: %s", warning.message)
        message = (
            f"Removed {len(outcome.removed)} and added {len(outcome.added)} dependencies."
            if outcome.changed else "No changes were needed."
        )
        self._logger.info("Fix OK: %s %s", pom_path, message)
        return FixResult(
            True,
            message,
            warnings=tuple(outcome.warnings),
            changed=outcome.changed,
            details={"path": str(pom_path), "removed": outcome.removed, "added": outcome.added},
            declarations=tuple(outcome.declarations),
            report=outcome.report,
        )

    def _write_checkpoint(self, pom_path: Path) -> Callable[[LineBuffer], None]:
        target = self.checkpoint_path(pom_path)

        def write(buffer: LineBuffer) -> None:
            self._logger.info("Writing checkpoint after removals to %s", target)
            buffer.write(target)

        return write
