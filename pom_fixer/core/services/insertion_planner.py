from __future__ import annotations

"""Plan where new ``<dependency>`` declarations go.

Conventions followed inside the project-level ``<dependencies>`` block:

- Non-test entries live in the *primary region*, the longest run of
  non-test declarations at the top of the block.
- Test entries live in the *test region*, the longest run of test
  declarations at the bottom of the block.
- Inside a region a new entry joins the run of entries sharing its
  ``groupId`` and is placed before the first one that sorts after it.

All positions come from a single model load. Test insertions always sit at
or below every primary insertion, so the test phase is applied first and
each phase is applied bottom-up; no pending index is ever invalidated.
"""

from dataclasses import dataclass, field
import logging
from typing import AbstractSet, Iterable, List, Optional, Sequence

from pom_fixer.core.exceptions import MissingSectionError
from pom_fixer.core.models import (
    DUPLICATE_ADDITION,
    Addition,
    Declaration,
    FixWarning,
    PomModel,
)
from pom_fixer.core.models.edit_plan import Insertion
from pom_fixer.core.models.fix_options import LayoutConfig
from pom_fixer.core.utils import render_declaration, sort_by_key_descending, split_test_scope_first

__all__ = ["Regions", "InsertionPlan", "InsertionPlanner", "partition_regions", "placement_index"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Regions:
    """Insertion regions of a dependencies block.

    Attributes
    ----------
    primary
        Leading non-test declarations, ascending line order.
    test
        Trailing test declarations, ascending line order.
    primary_anchor
        Fallback index for non-test additions.
    test_anchor
        Fallback index for test additions.
    """

    primary: List[Declaration]
    test: List[Declaration]
    primary_anchor: int
    test_anchor: int


def partition_regions(model: PomModel) -> Regions:
    """Split the local declarations of *model* into primary and test regions.

    Raises
    ------
    MissingSectionError
        If the model has no dependencies block.
    """
    if model.section is None:
        raise MissingSectionError("No dependencies section found", model.path)

    entries = sorted(model.local_declarations(), key=lambda d: d.start)
    primary: List[Declaration] = []
    for entry in entries:
        if entry.scope.is_test:
            break
        primary.append(entry)
    test: List[Declaration] = []
    for entry in reversed(entries[len(primary):]):
        if not entry.scope.is_test:
            break
        test.insert(0, entry)

    block_end = model.section.end
    if primary and test:
        primary_anchor, test_anchor = primary[-1].end, test[-1].end
    elif primary:
        primary_anchor = test_anchor = primary[-1].end
    elif test:
        primary_anchor, test_anchor = test[0].start, test[-1].end
    else:
        primary_anchor = test_anchor = block_end
    return Regions(primary, test, primary_anchor, test_anchor)


def _group_run(region: Sequence[Declaration], group: str) -> List[Declaration]:
    """First contiguous run of *region* entries with ``groupId`` *group*."""
    run: List[Declaration] = []
    for entry in region:
        if entry.identity.group_id == group:
            run.append(entry)
        elif run:
            break
    return run


def placement_index(addition: Addition, region: Sequence[Declaration], anchor: int) -> int:
    """Return the buffer index *addition* should be inserted before."""
    group = _group_run(region, addition.group)
    candidates = group or region
    for entry in candidates:
        if entry.identity > addition.identity:
            return entry.start
    if group:
        return group[-1].end
    return anchor


@dataclass(frozen=True)
class InsertionPlan:
    """Insertions split by phase, each phase in application order."""

    test_phase: List[Insertion] = field(default_factory=list)
    primary_phase: List[Insertion] = field(default_factory=list)
    added: List[Addition] = field(default_factory=list)
    warnings: List[FixWarning] = field(default_factory=list)

    def ordered(self) -> List[Insertion]:
        """All insertions, test phase first."""
        return list(self.test_phase) + list(self.primary_phase)

    @property
    def line_delta(self) -> int:
        return sum(i.delta for i in self.ordered())


class InsertionPlanner:
    """Turns additions into insertions placed by scope and identity order."""

    def __init__(self, layout: Optional[LayoutConfig] = None) -> None:
        self.layout = layout or LayoutConfig()

    def plan(
        self,
        model: PomModel,
        additions: Iterable[Addition],
        managed_keys: AbstractSet[str] = frozenset(),
        newline: str = "\n",
    ) -> InsertionPlan:
        """Plan all *additions* against a freshly loaded *model*.

        Additions already declared locally are skipped. A conflict key
        requested twice with different scope or version keeps the first
        request and raises a warning.
        """
        plan = InsertionPlan()
        wanted = self._deduplicate(model, additions, plan.warnings)
        if not wanted:
            return plan

        regions = partition_regions(model)
        managed = frozenset(managed_keys) | model.managed_keys
        test_additions, primary_additions = split_test_scope_first(wanted)

        plan.test_phase.extend(
            self._plan_phase(test_additions, regions.test, regions.test_anchor, managed, newline)
        )
        plan.primary_phase.extend(
            self._plan_phase(primary_additions, regions.primary, regions.primary_anchor, managed, newline)
        )
        plan.added.extend(test_additions + primary_additions)
        return plan

    def _plan_phase(
        self,
        additions: List[Addition],
        region: List[Declaration],
        anchor: int,
        managed: AbstractSet[str],
        newline: str,
    ) -> List[Insertion]:
        insertions: List[Insertion] = []
        for addition in sort_by_key_descending(additions):
            index = placement_index(addition, region, anchor)
            lines = render_declaration(addition, managed, self.layout, newline)
            logger.debug("Planning insertion of %s before line %d", addition.conflict_key, index + 1)
            insertions.append(Insertion(index, tuple(lines), addition.conflict_key))
        # Bottom-up; sort is stable so equal indices keep descending key order
        return sorted(insertions, key=lambda i: i.index, reverse=True)

    @staticmethod
    def _deduplicate(model: PomModel, additions: Iterable[Addition],
                     warnings: List[FixWarning]) -> List[Addition]:
        declared = model.declared_keys()
        seen = {}
        wanted: List[Addition] = []
        for addition in additions:
            key = addition.conflict_key
            if key in declared:
                logger.info("Dependency %s is already declared; not adding it again", key)
                continue
            if key in seen:
                if seen[key] != addition:
                    message = f"Dependency {key} requested more than once; keeping the first request"
                    logger.warning(message)
                    warnings.append(FixWarning(DUPLICATE_ADDITION, message, key, model.path))
                continue
            seen[key] = addition
            wanted.append(addition)
        return wanted
