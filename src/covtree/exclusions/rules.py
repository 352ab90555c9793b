"""Collections of class and file exclusion patterns for one report run."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covtree.exclusions.patterns import ExclusionPattern, normalize_separators

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from covtree.models.tree import SourceEntry

logger = logging.getLogger(__name__)

_CLASS_SUFFIX = ".class"
DEFAULT_SOURCE_DIRS = ("src/main/java",)


class ExclusionSet:
    """Ordered sets of class-name and file-path exclusion patterns.

    Class patterns are matched against slash-separated class names
    (``com/example/Foo``); file patterns against source paths
    (``com/example/Foo.java``), optionally prefixed by one of the configured
    source directories.
    """

    def __init__(self, source_dirs: Iterable[str] = DEFAULT_SOURCE_DIRS) -> None:
        self.source_dirs: tuple[str, ...] = tuple(
            normalize_separators(d).strip("/") for d in source_dirs if d.strip()
        )
        self._class_patterns: dict[ExclusionPattern, None] = {}
        self._file_patterns: dict[ExclusionPattern, None] = {}

    def __len__(self) -> int:
        return len(self._class_patterns) + len(self._file_patterns)

    @property
    def class_patterns(self) -> list[ExclusionPattern]:
        return list(self._class_patterns)

    @property
    def file_patterns(self) -> list[ExclusionPattern]:
        return list(self._file_patterns)

    def add_class_exclusion(self, pattern: str, root: Path | None = None) -> bool:
        """Register a class-name pattern such as ``**/*Controller.class``.

        A trailing ``.class`` is dropped since class names carry no suffix.
        Returns False when the pattern is blank.
        """
        pattern = pattern.strip()
        if pattern.endswith(_CLASS_SUFFIX):
            pattern = pattern[: -len(_CLASS_SUFFIX)]
        if not pattern:
            return False
        self._class_patterns[ExclusionPattern(pattern, root)] = None
        return True

    def add_file_exclusion(self, pattern: str, root: Path | None = None) -> bool:
        """Register a source-path pattern such as ``**/generated/**``."""
        pattern = pattern.strip()
        if not pattern:
            return False
        self._file_patterns[ExclusionPattern(pattern, root)] = None
        return True

    def add_file_exclusions(self, patterns: str, root: Path | None = None) -> int:
        """Register a comma-separated list of file patterns.

        Blank items are ignored. Returns the number of patterns added.
        """
        added = 0
        for item in patterns.split(","):
            if self.add_file_exclusion(item, root):
                added += 1
        return added

    def clear(self) -> None:
        self._class_patterns.clear()
        self._file_patterns.clear()

    def is_class_excluded(self, class_name: str, context_root: Path | None = None) -> bool:
        return any(p.matches(class_name, context_root) for p in self._class_patterns)

    def _candidate_paths(self, file_path: str) -> list[str]:
        file_path = normalize_separators(file_path)
        return [file_path, *(f"{source_dir}/{file_path}" for source_dir in self.source_dirs)]

    def is_file_excluded(self, file_path: str, context_root: Path | None = None) -> bool:
        if not self._file_patterns:
            return False
        candidates = self._candidate_paths(file_path)
        return any(
            pattern.matches(candidate, context_root)
            for pattern in self._file_patterns
            for candidate in candidates
        )

    def is_excluded(
        self,
        class_name: str,
        file_path: str | None = None,
        context_root: Path | None = None,
    ) -> bool:
        """Return True if the class or its source file matches any pattern."""
        if self.is_class_excluded(class_name, context_root):
            return True
        return file_path is not None and self.is_file_excluded(file_path, context_root)

    def is_entry_excluded(self, entry: SourceEntry) -> bool:
        """Return True if the file is excluded or every class in it is."""
        if self.is_file_excluded(entry.path, entry.root):
            return True
        return all(self.is_class_excluded(name, entry.root) for name in entry.identities)
