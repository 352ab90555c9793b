"""Data models for covtree."""

from covtree.models.execution import ExecutionRecord, ProbeMismatchError, SessionInfo
from covtree.models.metrics import CoverageMetrics, Dimension
from covtree.models.tree import DirectoryNode, SourceEntry, SourceFileNode, build_tree

__all__ = [
    "CoverageMetrics",
    "Dimension",
    "DirectoryNode",
    "ExecutionRecord",
    "ProbeMismatchError",
    "SessionInfo",
    "SourceEntry",
    "SourceFileNode",
    "build_tree",
]
