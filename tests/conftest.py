"""Test configuration and fixtures for pom-fixer tests.

This module provides shared fixtures: a builder producing ``pom.xml`` text
in the same layout the fixer emits, helpers to put documents on disk, and
isolation of user configuration and log directories. All test files should
use the fixtures defined here for consistency.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pom_fixer.config import ConfigManager
from pom_fixer.core.models import Identity

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

POM_HEADER = [
    '<?xml version="1.0" encoding="UTF-8"?>',
    '<project xmlns="http://maven.apache.org/POM/4.0.0">',
    '  <modelVersion>4.0.0</modelVersion>',
]


def _dependency_lines(entry: str, marker_indent: int = 4, version: Optional[str] = "1.0") -> List[str]:
    """Render ``group:artifact[:type[:classifier]][/scope]`` as a block."""
    coordinates, _, scope = entry.partition("/")
    identity = Identity.parse(coordinates)
    outer = " " * marker_indent
    inner = " " * (marker_indent + 2)
    lines = [
        f"{outer}<dependency>",
        f"{inner}<groupId>{identity.group_id}</groupId>",
        f"{inner}<artifactId>{identity.artifact_id}</artifactId>",
    ]
    if version:
        lines.append(f"{inner}<version>{version}</version>")
    if identity.type != "jar":
        lines.append(f"{inner}<type>{identity.type}</type>")
    if identity.classifier:
        lines.append(f"{inner}<classifier>{identity.classifier}</classifier>")
    if scope:
        lines.append(f"{inner}<scope>{scope}</scope>")
    lines.append(f"{outer}</dependency>")
    return lines


def build_pom(
    entries: Optional[Sequence[str]] = (),
    managed: Iterable[str] = (),
    parent: Optional[str] = None,
    artifact_id: str = "demo",
    newline: str = "\n",
) -> str:
    """Return ``pom.xml`` text declaring *entries* in order.

    ``entries=None`` produces a document without a dependencies block.
    ``parent`` is the artifactId of a parent located at ``../pom.xml``.
    """
    lines = list(POM_HEADER)
    if parent:
        lines += [
            "  <parent>",
            "    <groupId>com.example</groupId>",
            f"    <artifactId>{parent}</artifactId>",
            "    <version>1.0.0</version>",
            "  </parent>",
        ]
    lines += [
        "  <groupId>com.example</groupId>",
        f"  <artifactId>{artifact_id}</artifactId>",
        "  <version>1.0.0</version>",
    ]
    managed = list(managed)
    if managed:
        lines += ["  <dependencyManagement>", "    <dependencies>"]
        for entry in managed:
            lines += _dependency_lines(entry, marker_indent=6)
        lines += ["    </dependencies>", "  </dependencyManagement>"]
    if entries is not None:
        lines.append("  <dependencies>")
        for entry in entries:
            lines += _dependency_lines(entry)
        lines.append("  </dependencies>")
    lines.append("</project>")
    return newline.join(lines) + newline


@pytest.fixture
def pom_builder():
    """Provides :func:`build_pom` to tests."""
    return build_pom


@pytest.fixture
def write_pom(tmp_path):
    """Write pom text to ``tmp_path/<subdir>/pom.xml`` and return its path."""
    def _write(text: str, subdir: str = "") -> Path:
        directory = tmp_path / subdir if subdir else tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / "pom.xml"
        path.write_bytes(text.encode("utf-8"))
        return path
    return _write


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch):
    """Keep user config and logs of the developer machine out of the tests."""
    config_dir = tmp_path_factory.mktemp("user_config")
    monkeypatch.setenv("POM_FIXER_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("POM_FIXER_LOG_DIR", str(tmp_path_factory.mktemp("logs")))
    monkeypatch.delenv("POM_FIXER_DEBUG_MODULES", raising=False)
    ConfigManager.reset()
    yield config_dir
    ConfigManager.reset()


@pytest.fixture
def restore_logging():
    """Undo the handler changes ``setup_logging`` makes through dictConfig.

    Yields the ``pom_fixer`` package logger.
    """
    saved = {}
    for name in ("", "pom_fixer"):
        logger = logging.getLogger(name)
        saved[name] = (list(logger.handlers), logger.level, logger.propagate)
    yield logging.getLogger("pom_fixer")
    for name, (handlers, level, propagate) in saved.items():
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate
