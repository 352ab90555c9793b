"""Column layout, tree glyphs and cell formatting for the console report."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_PACKAGE_WIDTH = 50
DEFAULT_METRICS_WIDTH = 20

EMPTY_COVERAGE = " ***** (0/0)"

HEADER_LABELS = ("Package", "Class, %", "Method, %", "Branch, %", "Line, %")
REPORT_TITLE = "Overall Coverage Summary"
TOTALS_LABEL = "all classes"
ROOT_LABEL = "<root>"


@dataclass(frozen=True)
class Glyphs:
    """Connector strings drawn in front of tree labels."""

    vertical: str
    tee: str
    corner: str
    blank: str = "  "


UNICODE_GLYPHS = Glyphs(vertical="│ ", tee="├─", corner="└─")
ASCII_GLYPHS = Glyphs(vertical="| ", tee="+-", corner="\\-")


@dataclass(frozen=True)
class ReportLayout:
    """Fixed-width layout of one report row.

    A row is a label column followed by four metric columns, separated by
    the vertical glyph.
    """

    package_width: int = DEFAULT_PACKAGE_WIDTH
    """Width of the package/file label column."""

    metrics_width: int = DEFAULT_METRICS_WIDTH
    """Width of each metric column."""

    use_ascii: bool = False
    """Draw connectors with ASCII characters only."""

    @property
    def glyphs(self) -> Glyphs:
        return ASCII_GLYPHS if self.use_ascii else UNICODE_GLYPHS

    @property
    def separator(self) -> str:
        return f" {self.glyphs.vertical}"

    def format_row(self, label: str, *cells: str) -> str:
        """Pad *label* and the metric *cells* into one line."""
        columns = [f"{label:<{self.package_width}}"]
        columns.extend(f"{cell:<{self.metrics_width}}" for cell in cells)
        return self.separator.join(columns)

    @property
    def header(self) -> str:
        return self.format_row(*HEADER_LABELS)

    @property
    def divider(self) -> str:
        return self.format_row("", "", "", "", "").replace(" ", "-")

    def truncate_middle(self, text: str) -> str:
        """Shorten *text* to the label width by replacing its middle with ``..``."""
        if len(text) <= self.package_width:
            return text
        prefix_len = (self.package_width - 2) // 2
        suffix_len = self.package_width - 2 - prefix_len
        return f"{text[:prefix_len]}..{text[len(text) - suffix_len :]}"


def format_coverage(covered: int, total: int) -> str:
    """Render one metric cell, e.g. ``87.50% (14/16)``."""
    if total <= 0 or covered < 0:
        return EMPTY_COVERAGE
    return f"{covered / total * 100:5.2f}% ({covered}/{total})"
