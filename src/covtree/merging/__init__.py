"""Merging of execution data recorded by several test runs."""

from covtree.merging.merger import ExecutionDataMerger, merge_execution_data

__all__ = [
    "ExecutionDataMerger",
    "merge_execution_data",
]
