from __future__ import annotations

"""Plan the deletion of unused ``<dependency>`` declarations.

The planner only computes spans; it never touches the buffer. Deletions are
returned bottom-up (descending start line) so the patch service can apply
them in a single pass without any index drifting.
"""

from dataclasses import dataclass, field
import logging
from typing import Iterable, List

from pom_fixer.core.models import INHERITED_ORIGIN, Declaration, FixWarning, Identity, PomModel
from pom_fixer.core.models.edit_plan import Deletion
from pom_fixer.core.utils import sort_by_line_descending

__all__ = ["RemovalPlan", "RemovalPlanner"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemovalPlan:
    """Deletions to apply plus what was matched and skipped.

    Attributes
    ----------
    deletions
        Line spans to delete, ordered by descending start line.
    removed
        Declarations the deletions correspond to, in the same order.
    warnings
        One warning per matched declaration that could not be removed.
    """

    deletions: List[Deletion] = field(default_factory=list)
    removed: List[Declaration] = field(default_factory=list)
    warnings: List[FixWarning] = field(default_factory=list)

    @property
    def line_delta(self) -> int:
        return sum(d.delta for d in self.deletions)


class RemovalPlanner:
    """Turns a set of identities into bottom-up line deletions."""

    def plan(self, model: PomModel, removals: Iterable[Identity]) -> RemovalPlan:
        """Match *removals* against *model* and return the deletions.

        Every local declaration whose identity is in *removals* is deleted,
        duplicates included. Matches coming from another document are skipped
        with an inherited-origin warning; the other removals still go ahead.
        """
        keys = {identity.management_key for identity in removals}
        plan = RemovalPlan()
        if not keys:
            return plan

        for declaration in sort_by_line_descending(model.declarations):
            if declaration.conflict_key not in keys:
                continue
            if not declaration.is_local:
                message = (
                    f"Unable to fix dependency {declaration.conflict_key} because it comes "
                    f"from parent: {declaration.source}"
                )
                logger.warning(message)
                plan.warnings.append(FixWarning(INHERITED_ORIGIN, message, declaration.conflict_key,
                                                declaration.source))
                continue
            logger.debug(
                "Planning removal of %s at lines %d-%d",
                declaration.conflict_key, declaration.start + 1, declaration.end,
            )
            plan.deletions.append(Deletion(declaration.start, declaration.end, declaration.conflict_key))
            plan.removed.append(declaration)

        matched = {d.conflict_key for d in plan.removed} | {w.key for w in plan.warnings}
        for key in sorted(keys - matched):
            logger.info("No declaration found for %s; nothing to remove", key)
        return plan
