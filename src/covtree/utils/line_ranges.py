"""Compact formatting of line-number sets (``1-3, 5, 7-10``)."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def format_line_ranges(lines: Iterable[int]) -> str:
    """Group line numbers into ranges of consecutive values.

    Duplicates are ignored and the input need not be sorted. Returns an
    empty string for no lines.
    """
    ordered = sorted(set(lines))
    if not ordered:
        return ""

    parts: list[str] = []
    start = prev = ordered[0]
    for line in ordered[1:]:
        if line == prev + 1:
            prev = line
            continue
        parts.append(_format_range(start, prev))
        start = prev = line
    parts.append(_format_range(start, prev))
    return ", ".join(parts)


def _format_range(start: int, end: int) -> str:
    return str(start) if start == end else f"{start}-{end}"


def describe_missing_lines(missed: Iterable[int], partial: Iterable[int] = ()) -> str:
    """Describe missed and partially covered lines, e.g. ``3-5, 10; partial: 15``."""
    parts: list[str] = []
    missed_text = format_line_ranges(missed)
    if missed_text:
        parts.append(missed_text)
    partial_text = format_line_ranges(partial)
    if partial_text:
        parts.append(f"partial: {partial_text}")
    return "; ".join(parts)
