"""Tests for utils/line_ranges.py — missing-line descriptions."""

from __future__ import annotations

from covtree.utils.line_ranges import describe_missing_lines, format_line_ranges


class TestFormatLineRanges:
    def test_empty(self) -> None:
        assert format_line_ranges([]) == ""

    def test_single_line(self) -> None:
        assert format_line_ranges([7]) == "7"

    def test_groups_consecutive_lines(self) -> None:
        assert format_line_ranges([1, 2, 3, 5, 7, 8, 9, 10]) == "1-3, 5, 7-10"

    def test_unsorted_with_duplicates(self) -> None:
        assert format_line_ranges([10, 3, 4, 3, 5]) == "3-5, 10"


class TestDescribeMissingLines:
    def test_missed_and_partial(self) -> None:
        assert describe_missing_lines([3, 4, 5, 10], [15]) == "3-5, 10; partial: 15"

    def test_only_missed(self) -> None:
        assert describe_missing_lines([1, 2]) == "1-2"

    def test_only_partial(self) -> None:
        assert describe_missing_lines([], [4, 5]) == "partial: 4-5"

    def test_nothing_missing(self) -> None:
        assert describe_missing_lines([], []) == ""
