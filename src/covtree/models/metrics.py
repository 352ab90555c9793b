"""Coverage counters for a source file or a directory of source files."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class Dimension(Enum):
    """Coverage dimensions, in the order they are displayed."""

    CLASS = "class"
    METHOD = "method"
    BRANCH = "branch"
    LINE = "line"

    @property
    def label(self) -> str:
        """Capitalised name used in report headers (e.g. ``Branch``)."""
        return self.value.capitalize()


_FIELDS: dict[Dimension, tuple[str, str]] = {
    Dimension.CLASS: ("covered_classes", "total_classes"),
    Dimension.METHOD: ("covered_methods", "total_methods"),
    Dimension.BRANCH: ("covered_branches", "total_branches"),
    Dimension.LINE: ("covered_lines", "total_lines"),
}


@dataclass(frozen=True)
class CoverageMetrics:
    """Total and covered counts for classes, methods, lines and branches.

    Instances are immutable; aggregation produces new instances with ``+``.
    ``covered <= total`` is expected for every dimension but not enforced.
    """

    total_classes: int = 0
    """Total number of classes in scope."""

    covered_classes: int = 0
    """Number of classes with at least one executed method."""

    total_methods: int = 0
    """Total number of methods across all classes."""

    covered_methods: int = 0
    """Number of methods that have been executed."""

    total_lines: int = 0
    """Total number of lines of code."""

    covered_lines: int = 0
    """Number of lines that have been executed."""

    total_branches: int = 0
    """Total number of branches in conditional statements."""

    covered_branches: int = 0
    """Number of branches that have been executed."""

    def __add__(self, other: CoverageMetrics) -> CoverageMetrics:
        if not isinstance(other, CoverageMetrics):
            return NotImplemented
        return CoverageMetrics(
            total_classes=self.total_classes + other.total_classes,
            covered_classes=self.covered_classes + other.covered_classes,
            total_methods=self.total_methods + other.total_methods,
            covered_methods=self.covered_methods + other.covered_methods,
            total_lines=self.total_lines + other.total_lines,
            covered_lines=self.covered_lines + other.covered_lines,
            total_branches=self.total_branches + other.total_branches,
            covered_branches=self.covered_branches + other.covered_branches,
        )

    @classmethod
    def sum(cls, items: Iterable[CoverageMetrics]) -> CoverageMetrics:
        """Return the elementwise sum of *items* (all zeros when empty)."""
        total = cls()
        for item in items:
            total += item
        return total

    def covered(self, dimension: Dimension) -> int:
        """Return the covered count for *dimension*."""
        return int(getattr(self, _FIELDS[dimension][0]))

    def total(self, dimension: Dimension) -> int:
        """Return the total count for *dimension*."""
        return int(getattr(self, _FIELDS[dimension][1]))

    def ratio(self, dimension: Dimension) -> float | None:
        """Return covered/total for *dimension*, or None when nothing exists."""
        total = self.total(dimension)
        if total <= 0:
            return None
        return self.covered(dimension) / total
