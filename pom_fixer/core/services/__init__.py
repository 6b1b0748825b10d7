from __future__ import annotations

"""High-level orchestration services (planning, patching, fixing).

Services are instantiated directly; none of them holds state between runs.
"""

from .removal_planner import RemovalPlanner  # noqa: F401
from .insertion_planner import InsertionPlanner  # noqa: F401
from .patch_service import PatchService  # noqa: F401
from .fix_service import FixService, FixRequest, FixResult  # noqa: F401

__all__: list[str] = [
    "RemovalPlanner",
    "InsertionPlanner",
    "PatchService",
    "FixService",
    "FixRequest",
    "FixResult",
]
