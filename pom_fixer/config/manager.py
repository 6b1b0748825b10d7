from __future__ import annotations

"""Configuration loading and access helpers.

This module centralises the declarative settings of the fixer (default fix
options, block layout, logging). It loads YAML files packaged with
*pom_fixer* and merges them with user overrides.

On Windows: ``%LOCALAPPDATA%\\PomFixer\\config\\*.yml``
On Unix: ``~/.pom_fixer/*.yml``

User directories are read only; nothing is copied there automatically.
"""

import logging
import os
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager"]


def _get_user_config_dir() -> Path:
    """Get the user configuration directory."""
    override = os.environ.get("POM_FIXER_CONFIG_DIR")
    if override:
        return Path(override)
    if os.name == 'nt':  # Windows
        local_appdata = os.environ.get('LOCALAPPDATA')
        if local_appdata:
            return Path(local_appdata) / "PomFixer" / "config"
        return Path.home() / "AppData" / "Local" / "PomFixer" / "config"
    return Path.home() / ".pom_fixer"


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):  # type: ignore[no-self-use]
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance

    def reset(cls) -> None:
        """Drop the cached instance so the next call reloads from disk."""
        cls._instance = None


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    _DEFAULT_FILENAMES = {
        "fixer": "fixer.yml",
        "logging": "logging.yml",
    }

    def __init__(self, user_config_dir: Optional[Path] = None) -> None:
        self._user_config_dir = user_config_dir or _get_user_config_dir()
        self._data: Dict[str, Dict[str, Any]] = {}
        self._ensure_loaded()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def get_fixer_config(self) -> Dict[str, Any]:
        return self._data.get("fixer", {})

    def get_logging_config(self) -> Dict[str, Any]:
        return self._data.get("logging", {})

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        startup_summary = []

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = {}
            status = "missing"

            # 1. load packaged default
            try:
                text = resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")
                merged_cfg.update(yaml.safe_load(text) or {})
                status = "loaded"
            except (FileNotFoundError, OSError):
                logger.error("Missing packaged config for %s (%s)", key, filename)
            except yaml.YAMLError as exc:
                logger.error("Invalid packaged config for %s (%s): %s", key, filename, exc)
                status = "invalid"

            # 2. load user overrides
            user_path = self._user_config_dir / filename
            if user_path.exists():
                try:
                    user_data = yaml.safe_load(user_path.read_text(encoding="utf-8")) or {}
                    _deep_update(merged_cfg, user_data)
                    if status == "loaded":
                        status = "loaded+overrides"
                except (OSError, yaml.YAMLError) as exc:
                    logger.error("Could not parse user config %s: %s", user_path, exc)

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.info("Config startup: %s", " | ".join(startup_summary))


def _deep_update(target: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    """Merge *overrides* into *target*, descending into nested mappings."""
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value
