"""Overall coverage summary with a weighted combined score."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from covtree.models.metrics import CoverageMetrics, Dimension
from covtree.reporters.layout import REPORT_TITLE, format_coverage

logger = logging.getLogger(__name__)

_SUMMARY_LABELS = {
    Dimension.CLASS: "Class coverage : ",
    Dimension.METHOD: "Method coverage: ",
    Dimension.BRANCH: "Branch coverage: ",
    Dimension.LINE: "Line coverage  : ",
}


@dataclass(frozen=True)
class CoverageWeights:
    """Relative importance of each dimension in the combined score.

    Weights are not normalised or range-checked; they are used as given.
    """

    class_weight: float = 0.1
    method_weight: float = 0.1
    branch_weight: float = 0.4
    line_weight: float = 0.4

    def weight(self, dim: Dimension) -> float:
        return {
            Dimension.CLASS: self.class_weight,
            Dimension.METHOD: self.method_weight,
            Dimension.BRANCH: self.branch_weight,
            Dimension.LINE: self.line_weight,
        }[dim]

    def describe(self) -> str:
        """Render the weights as ``Class 10%, Method 10%, Branch 40%, Line 40%``."""
        return ", ".join(f"{dim.label} {self.weight(dim) * 100:.0f}%" for dim in _SUMMARY_LABELS)


def combined_coverage(metrics: CoverageMetrics, weights: CoverageWeights) -> float:
    """Weighted coverage ``Σ(w·covered) / Σ(w·total)`` over the four dimensions.

    Each dimension counts in proportion to its weight and to how many items
    it has, so dimensions with nothing to cover add nothing. Returns 0.0 when
    the weighted total is zero.
    """
    covered = sum(weights.weight(dim) * metrics.covered(dim) for dim in Dimension)
    total = sum(weights.weight(dim) * metrics.total(dim) for dim in Dimension)

    if total == 0:
        if any(metrics.total(dim) > 0 for dim in Dimension):
            logger.warning("Weighted coverage total is zero; combined coverage reported as 0%%")
        return 0.0
    return covered / total


def render_summary(metrics: CoverageMetrics, weights: CoverageWeights | None = None) -> list[str]:
    """Render the summary block for the aggregate *metrics*."""
    weights = weights or CoverageWeights()
    lines = [REPORT_TITLE, "-" * len(REPORT_TITLE)]
    lines.extend(
        f"{label}{format_coverage(metrics.covered(dim), metrics.total(dim))}"
        for dim, label in _SUMMARY_LABELS.items()
    )
    combined = combined_coverage(metrics, weights)
    lines.append(f"Combined coverage: {combined * 100:.2f}% ({weights.describe()})")
    return lines
