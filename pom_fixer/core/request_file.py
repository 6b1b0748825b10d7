from __future__ import annotations

"""Read fix requests from YAML files.

A request file lists what the dependency analysis found::

    remove:
      - junit:junit
      - com.example:tools:test-jar
    add:
      - coordinates: org.slf4j:slf4j-api
        version: 2.0.9
      - coordinates: org.mockito:mockito-core
        version: 5.8.0
        scope: test
    managed:
      - org.slf4j:slf4j-api:jar

Coordinates are ``groupId:artifactId[:type[:classifier]]``. Additions may
also be given as a bare coordinates string when no version is needed.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from pom_fixer.core.models import Addition, Identity
from pom_fixer.core.services.fix_service import FixRequest

__all__ = ["load_request", "parse_request"]

logger = logging.getLogger(__name__)


def load_request(path: Union[str, Path]) -> FixRequest:
    """Load a :class:`FixRequest` from the YAML file at *path*.

    Raises
    ------
    ValueError
        If the file cannot be read or does not describe a valid request.
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ValueError(f"Could not read request file {path}: {exc}") from exc
    request = parse_request(data or {})
    logger.debug(
        "Loaded request %s: remove=%d add=%d managed=%d",
        path, len(request.unused_declared), len(request.used_undeclared), len(request.managed_keys),
    )
    return request


def parse_request(data: Dict[str, Any]) -> FixRequest:
    """Build a :class:`FixRequest` from an already-parsed mapping."""
    if not isinstance(data, dict):
        raise ValueError("Request must be a mapping with 'remove', 'add' and 'managed' keys")
    unknown = set(data) - {"remove", "add", "managed"}
    if unknown:
        raise ValueError(f"Unknown request keys: {', '.join(sorted(unknown))}")

    removals = [Identity.parse(str(c)) for c in _as_list(data, "remove")]
    additions = [_parse_addition(entry) for entry in _as_list(data, "add")]
    managed = {Identity.parse(str(c)).management_key for c in _as_list(data, "managed")}
    return FixRequest(frozenset(removals), tuple(additions), frozenset(managed))


def _as_list(data: Dict[str, Any], key: str) -> List[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list")
    return value


def _parse_addition(entry: Any) -> Addition:
    if isinstance(entry, str):
        return Addition.from_coordinates(entry)
    if not isinstance(entry, dict) or "coordinates" not in entry:
        raise ValueError(f"Invalid addition entry {entry!r}; expected a mapping with 'coordinates'")
    version = entry.get("version")
    return Addition.from_coordinates(
        str(entry["coordinates"]),
        str(version) if version is not None else None,
        entry.get("scope"),
    )
