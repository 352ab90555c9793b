"""Console rendering of coverage trees and summaries."""

from covtree.reporters.layout import ReportLayout, format_coverage
from covtree.reporters.summary import CoverageWeights, combined_coverage, render_summary
from covtree.reporters.tree import TreeRow, render_report, render_tree

__all__ = [
    "CoverageWeights",
    "ReportLayout",
    "TreeRow",
    "combined_coverage",
    "format_coverage",
    "render_report",
    "render_summary",
    "render_tree",
]
