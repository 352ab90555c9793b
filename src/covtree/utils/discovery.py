"""Locate coverage inputs inside a (multi-module) project tree."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING

from covtree.adapters.coverage.jacoco import find_jacoco_reports

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)

DEFAULT_EXEC_PATTERNS = ("jacoco.exec",)
BUILD_OUTPUT_DIR = "target"

_SKIP_DIRS = frozenset({"target", "build", "node_modules", "__pycache__"})
_PACKAGE_RE = re.compile(r"^\s*package\s+([\w.]+)\s*;", re.MULTILINE)


def iter_module_dirs(base_dir: Path) -> Iterator[Path]:
    """Yield *base_dir* and every nested directory that may hold a module.

    Build output, dependency caches and hidden directories are not entered.
    """
    for current, dirnames, _ in os.walk(base_dir):
        dirnames[:] = sorted(
            d for d in dirnames if d not in _SKIP_DIRS and not d.startswith(".")
        )
        yield Path(current)


def scan_for_exec_files(
    base_dir: Path,
    patterns: Iterable[str] = DEFAULT_EXEC_PATTERNS,
) -> list[Path]:
    """Find exec files in the ``target`` directory of every module.

    *patterns* are file names (or globs) matched inside each ``target``
    directory, e.g. ``jacoco.exec`` or ``jacoco-*.exec``.
    """
    names = [p for p in patterns if p.strip()]
    found: list[Path] = []
    for module_dir in iter_module_dirs(base_dir):
        build_dir = module_dir / BUILD_OUTPUT_DIR
        if not build_dir.is_dir():
            continue
        for pattern in names:
            found.extend(sorted(p for p in build_dir.glob(pattern) if p.is_file()))
    logger.debug("Found %d exec file(s) under %s", len(found), base_dir)
    return found


def scan_for_xml_reports(base_dir: Path) -> list[tuple[Path, Path]]:
    """Find JaCoCo XML reports of every module.

    Returns ``(module_dir, report_path)`` pairs; the module directory is the
    root the report's entries are attributed to.
    """
    found: list[tuple[Path, Path]] = []
    for module_dir in iter_module_dirs(base_dir):
        found.extend((module_dir, report) for report in find_jacoco_reports(module_dir))
    logger.debug("Found %d XML report(s) under %s", len(found), base_dir)
    return found


def read_package_name(source: str) -> str:
    """Return the declared package of a Java source, or "" for the default package."""
    match = _PACKAGE_RE.search(source)
    return match.group(1) if match else ""


def discover_generated_classes(build_dir: Path) -> list[str]:
    """Return slash-separated class names for ``.java`` files below *build_dir*.

    These are sources generated during the build (annotation processors,
    code generators); each name is suitable as an exact class exclusion.
    Files that cannot be read are logged and skipped.
    """
    if not build_dir.is_dir():
        return []

    class_names: list[str] = []
    for java_file in sorted(build_dir.rglob("*.java")):
        try:
            source = java_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read file: %s (%s)", java_file, e)
            continue
        package = read_package_name(source)
        parts = [*package.split("."), java_file.stem] if package else [java_file.stem]
        class_names.append("/".join(parts))
    return class_names
