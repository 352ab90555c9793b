"""Package/file tree used to aggregate and display coverage."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Protocol

from covtree.models.metrics import CoverageMetrics

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

logger = logging.getLogger(__name__)

PACKAGE_SEPARATOR = "/"


class EntryFilter(Protocol):
    """Anything that can decide whether a source entry is excluded."""

    def is_entry_excluded(self, entry: SourceEntry) -> bool: ...


@dataclass(frozen=True)
class SourceEntry:
    """Coverage for one source file, as produced by a report reader."""

    package: str
    """Package path, slash- or dot-separated (empty for the default package)."""

    file_name: str
    """Source file name, e.g. ``Calculator.java``."""

    metrics: CoverageMetrics
    """Counters for the classes declared in this file."""

    missing_lines: str = ""
    """Human-readable missed/partial line ranges (may be empty)."""

    class_names: tuple[str, ...] = ()
    """Slash-separated names of the classes compiled from this file."""

    root: Path | None = None
    """Module root the entry was reported from (None when unknown)."""

    @property
    def package_segments(self) -> list[str]:
        """Non-empty package components."""
        normalized = self.package.replace("\\", PACKAGE_SEPARATOR).replace(".", PACKAGE_SEPARATOR)
        return [segment for segment in normalized.split(PACKAGE_SEPARATOR) if segment]

    @property
    def path(self) -> str:
        """Slash-separated path of the file relative to its source directory."""
        return PACKAGE_SEPARATOR.join([*self.package_segments, self.file_name])

    @property
    def identities(self) -> tuple[str, ...]:
        """Class names to match class exclusions against.

        Falls back to ``package/FileStem`` when the reader supplied none.
        """
        if self.class_names:
            return self.class_names
        stem = PurePosixPath(self.file_name).stem
        return (PACKAGE_SEPARATOR.join([*self.package_segments, stem]),)


@dataclass
class SourceFileNode:
    """A leaf of the coverage tree."""

    name: str
    metrics: CoverageMetrics = field(default_factory=CoverageMetrics)
    missing_lines: str = ""

    def aggregate(self) -> CoverageMetrics:
        return self.metrics


@dataclass
class DirectoryNode:
    """A package component holding subdirectories and source files."""

    name: str
    subdirectories: dict[str, DirectoryNode] = field(default_factory=dict)
    source_files: list[SourceFileNode] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return not self.name

    def child(self, name: str) -> DirectoryNode:
        """Return the subdirectory called *name*, creating it if needed."""
        node = self.subdirectories.get(name)
        if node is None:
            node = DirectoryNode(name)
            self.subdirectories[name] = node
        return node

    def iter_subdirectories(self) -> Iterator[DirectoryNode]:
        """Yield subdirectories sorted by name."""
        for name in sorted(self.subdirectories):
            yield self.subdirectories[name]

    def add_file(self, node: SourceFileNode) -> None:
        """Add a file, folding it into an existing file of the same name.

        Two reports can each contribute different classes of one source file;
        their counters are added and the first missing-line description kept,
        since both describe the same source.
        """
        for idx, existing in enumerate(self.source_files):
            if existing.name == node.name:
                self.source_files[idx] = SourceFileNode(
                    existing.name,
                    existing.metrics + node.metrics,
                    existing.missing_lines or node.missing_lines,
                )
                return
        self.source_files.append(node)

    def aggregate(self) -> CoverageMetrics:
        """Sum of the metrics of every file below this directory."""
        return CoverageMetrics.sum(
            [
                *(file.aggregate() for file in self.source_files),
                *(subdir.aggregate() for subdir in self.subdirectories.values()),
            ]
        )

    def should_include(self) -> bool:
        """Return True if any file lives in this directory or below it."""
        return bool(self.source_files) or any(
            subdir.should_include() for subdir in self.subdirectories.values()
        )


FileSystemNode = DirectoryNode | SourceFileNode


def node_sort_key(node: FileSystemNode) -> tuple[int, str]:
    """Sort key placing directories before files, then by case-insensitive name."""
    return (0 if isinstance(node, DirectoryNode) else 1, node.name.lower())


def sorted_nodes(nodes: Iterable[FileSystemNode]) -> list[FileSystemNode]:
    return sorted(nodes, key=node_sort_key)


def build_tree(
    entries: Iterable[SourceEntry],
    exclusions: EntryFilter | None = None,
) -> DirectoryNode:
    """Build a package tree from flat source entries.

    Entries rejected by *exclusions* are dropped before insertion, so they
    never contribute to any directory's aggregate.
    """
    root = DirectoryNode("")
    for entry in entries:
        if exclusions is not None and exclusions.is_entry_excluded(entry):
            logger.debug("Excluding %s from coverage tree", entry.path)
            continue

        current = root
        for segment in entry.package_segments:
            current = current.child(segment)
        current.add_file(SourceFileNode(entry.file_name, entry.metrics, entry.missing_lines))
    return root
