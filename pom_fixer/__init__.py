"""Top-level package of pom-fixer.

Rewrites the dependency declarations of a Maven ``pom.xml`` with minimal
line-level edits. Front-ends (CLI, build integrations) should only depend on
the public API exposed here rather than importing internal modules directly.
"""

from .core.models import Addition, Identity, Scope  # re-export for convenience
from .core.models.fix_options import FixOptions
from .core.services.fix_service import FixRequest, FixResult, FixService, fix_document

__all__: list[str] = [
    "Addition",
    "Identity",
    "Scope",
    "FixOptions",
    "FixRequest",
    "FixResult",
    "FixService",
    "fix_document",
]
