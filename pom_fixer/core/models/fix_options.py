"""Option models for a fix run.

Plain value objects built either directly (tests, library callers) or from
the ``fixer.yml`` configuration section via :meth:`FixOptions.from_config`.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class LayoutConfig:
    """Indentation used for generated ``<dependency>`` blocks."""

    marker_indent: int = 4
    field_indent: int = 6

    def __post_init__(self) -> None:
        if self.marker_indent < 0 or self.field_indent < 0:
            raise ValueError("Indentation cannot be negative")

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "LayoutConfig":
        data = data or {}
        return cls(
            marker_indent=int(data.get("marker_indent", cls.marker_indent)),
            field_indent=int(data.get("field_indent", cls.field_indent)),
        )


@dataclass(frozen=True)
class FixOptions:
    """Switches controlling a fix run.

    Attributes
    ----------
    fail_on_warning
        Treat recoverable warnings as fatal; nothing is written.
    verbose_output
        Log the generated declaration blocks and return them in the report.
    skip
        Do nothing and report success.
    checkpoint
        Write the buffer next to the document after the removal phase.
    checkpoint_suffix
        Suffix appended to the document name for the checkpoint file.
    resolve_parents
        Load parent documents so inherited declarations are recognised.
    layout
        Indentation of generated blocks.
    """

    fail_on_warning: bool = False
    verbose_output: bool = False
    skip: bool = False
    checkpoint: bool = False
    checkpoint_suffix: str = ".step1"
    resolve_parents: bool = False
    layout: LayoutConfig = LayoutConfig()

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None, **overrides: Any) -> "FixOptions":
        """Build options from a ``fixer.yml`` mapping.

        Keyword *overrides* whose value is not ``None`` win over the mapping.
        """
        if config is None:
            from pom_fixer.config import ConfigManager

            config = ConfigManager().get_fixer_config()
        options = dict(config.get("options", {}) or {})
        known = {f.name for f in fields(cls)} - {"layout"}
        values: Dict[str, Any] = {k: v for k, v in options.items() if k in known}
        values.update({k: v for k, v in overrides.items() if v is not None and k in known})
        return cls(layout=LayoutConfig.from_mapping(config.get("layout")), **values)
