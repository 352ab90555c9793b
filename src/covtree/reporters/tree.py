"""Render a coverage tree as fixed-width console lines.

Single-child directory chains without visible files are collapsed into one
dotted row (``com.example.model``). Directories are listed before files,
both in case-insensitive name order, and every row after the first carries
tree connectors showing where it hangs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from covtree.models.metrics import Dimension
from covtree.models.tree import DirectoryNode, SourceFileNode, node_sort_key
from covtree.reporters.layout import (
    REPORT_TITLE,
    ROOT_LABEL,
    TOTALS_LABEL,
    ReportLayout,
    format_coverage,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from covtree.models.metrics import CoverageMetrics
    from covtree.models.tree import FileSystemNode

_DISPLAY_ORDER = (Dimension.CLASS, Dimension.METHOD, Dimension.BRANCH, Dimension.LINE)


def coverage_cells(metrics: CoverageMetrics) -> tuple[str, str, str, str]:
    """Format the class, method, branch and line cells of one row."""
    class_cell, method_cell, branch_cell, line_cell = (
        format_coverage(metrics.covered(dim), metrics.total(dim)) for dim in _DISPLAY_ORDER
    )
    return class_cell, method_cell, branch_cell, line_cell


@dataclass(frozen=True)
class TreeRow:
    """One rendered row of the coverage tree."""

    prefix: str
    """Connector glyphs drawn before the label."""

    label: str
    """Directory path (possibly dotted), file name or the root marker."""

    cells: tuple[str, str, str, str]
    """Formatted class, method, branch and line coverage."""

    missing_lines: str = ""
    """Missing-line description (files only)."""

    @property
    def text(self) -> str:
        return f"{self.prefix}{self.label}"


class _TreeWalker:
    def __init__(self, layout: ReportLayout, show_files: bool) -> None:
        self.glyphs = layout.glyphs
        self.show_files = show_files
        self.rows: list[TreeRow] = []

    def child_prefix(self, prefix: str, is_last: bool) -> str:
        if prefix.endswith(self.glyphs.corner):
            prefix = prefix[: -len(self.glyphs.corner)] + self.glyphs.blank
        elif prefix.endswith(self.glyphs.tee):
            prefix = prefix[: -len(self.glyphs.tee)] + self.glyphs.vertical
        return prefix + (self.glyphs.corner if is_last else self.glyphs.tee)

    def visit(self, node: FileSystemNode, prefix: str, package_path: str) -> None:
        if isinstance(node, SourceFileNode):
            self.visit_file(node, prefix)
        else:
            self.visit_directory(node, prefix, package_path)

    def visit_file(self, node: SourceFileNode, prefix: str) -> None:
        if not self.show_files:
            return
        self.rows.append(
            TreeRow(
                prefix=prefix,
                label=node.name,
                cells=coverage_cells(node.aggregate()),
                missing_lines=node.missing_lines,
            )
        )

    def visit_directory(self, node: DirectoryNode, prefix: str, package_path: str) -> None:
        if not node.should_include():
            return

        package_path = package_path.removeprefix(".")
        dir_nodes = sorted(
            (d for d in node.subdirectories.values() if d.should_include()), key=node_sort_key
        )
        file_nodes = sorted(node.source_files, key=node_sort_key) if self.show_files else []

        if len(dir_nodes) == 1 and not file_nodes:
            self.visit_directory(dir_nodes[0], prefix, f"{package_path}.{node.name}")
            return

        if node.is_root:
            row_prefix, label = "", ROOT_LABEL
        else:
            row_prefix = prefix
            label = f"{package_path}.{node.name}" if package_path else node.name
        self.rows.append(TreeRow(prefix=row_prefix, label=label, cells=coverage_cells(node.aggregate())))

        self.visit_children(dir_nodes, prefix, last_allowed=not file_nodes)
        self.visit_children(file_nodes, prefix, last_allowed=True)

    def visit_children(
        self,
        nodes: Sequence[FileSystemNode],
        prefix: str,
        last_allowed: bool,
    ) -> None:
        for idx, child in enumerate(nodes):
            is_last = last_allowed and idx == len(nodes) - 1
            self.visit(child, self.child_prefix(prefix, is_last), "")


def render_tree(
    root: DirectoryNode,
    layout: ReportLayout | None = None,
    show_files: bool = True,
) -> list[TreeRow]:
    """Walk *root* depth-first and return its visible rows in display order."""
    walker = _TreeWalker(layout or ReportLayout(), show_files)
    walker.visit_directory(root, "", "")
    return walker.rows


def format_tree_row(row: TreeRow, layout: ReportLayout, show_missing_lines: bool = False) -> str:
    line = layout.format_row(layout.truncate_middle(row.text), *row.cells)
    if show_missing_lines and row.missing_lines:
        line += f" Missing: {row.missing_lines}"
    return line


def render_report(
    root: DirectoryNode,
    layout: ReportLayout | None = None,
    show_files: bool = True,
    show_missing_lines: bool = False,
) -> list[str]:
    """Render the full tree report.

    The report is a title, the column header, a divider, one line per
    visible node, another divider and an ``all classes`` totals line.
    """
    layout = layout or ReportLayout()
    lines = [REPORT_TITLE, layout.header, layout.divider]
    lines.extend(
        format_tree_row(row, layout, show_missing_lines)
        for row in render_tree(root, layout, show_files)
    )
    lines.append(layout.divider)
    lines.append(layout.format_row(TOTALS_LABEL, *coverage_cells(root.aggregate())))
    return lines
