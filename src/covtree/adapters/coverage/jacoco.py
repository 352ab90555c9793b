"""JaCoCo XML report reader.

JaCoCo's XML report (``jacoco.xml``) carries per-class counters and
per-line instruction/branch counts for every source file. This module turns
it into :class:`~covtree.models.tree.SourceEntry` objects: one per source
file, with class/method/line/branch counters and a missing-line description.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException, ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

from covtree.models.execution import SessionInfo
from covtree.models.metrics import CoverageMetrics
from covtree.models.tree import SourceEntry
from covtree.utils.line_ranges import describe_missing_lines

if TYPE_CHECKING:
    from pathlib import Path
    from xml.etree.ElementTree import Element as XmlElement

    from covtree.exclusions.rules import ExclusionSet

logger = logging.getLogger(__name__)

# JaCoCo report paths (Gradle: build/reports/jacoco/...; Maven: target/site/jacoco/jacoco.xml)
JACOCO_XML_PATHS = [
    "build/reports/jacoco/test/jacocoTestReport.xml",
    "build/reports/jacoco/test/jacoco.xml",
    "build/jacoco/test/jacocoTestReport.xml",
    "target/site/jacoco/jacoco.xml",
    "target/jacoco.xml",
]

# Counter status bits, combined with | for instructions and branches of a line
_EMPTY = 0
_NOT_COVERED = 1
_FULLY_COVERED = 2
_PARTLY_COVERED = _NOT_COVERED | _FULLY_COVERED


class ReportParseError(Exception):
    """Raised when a JaCoCo XML report exists but cannot be parsed."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse JaCoCo XML {path}: {reason}")


@dataclass
class JacocoReport:
    """Source entries and sessions read from one XML report."""

    name: str = ""
    entries: list[SourceEntry] = field(default_factory=list)
    sessions: list[SessionInfo] = field(default_factory=list)
    duplicate_classes: list[str] = field(default_factory=list)
    """Classes skipped because an earlier report already covered them."""


def _int_attr(element: XmlElement, key: str, default: int = 0) -> int:
    value = element.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _counter(element: XmlElement, counter_type: str) -> tuple[int, int]:
    """Return (missed, covered) for a direct ``<counter>`` child."""
    for counter in element.findall("counter"):
        if counter.get("type", "") == counter_type:
            return _int_attr(counter, "missed"), _int_attr(counter, "covered")
    return 0, 0


def _counter_status(missed: int, covered: int) -> int:
    if missed + covered == 0:
        return _EMPTY
    if covered == 0:
        return _NOT_COVERED
    if missed == 0:
        return _FULLY_COVERED
    return _PARTLY_COVERED


def _missing_lines(sourcefile: XmlElement) -> str:
    missed: list[int] = []
    partial: list[int] = []
    for line_elem in sourcefile.findall("line"):
        status = _counter_status(_int_attr(line_elem, "mi"), _int_attr(line_elem, "ci"))
        status |= _counter_status(_int_attr(line_elem, "mb"), _int_attr(line_elem, "cb"))
        if status == _NOT_COVERED:
            missed.append(_int_attr(line_elem, "nr"))
        elif status == _PARTLY_COVERED:
            partial.append(_int_attr(line_elem, "nr"))
    return describe_missing_lines(missed, partial)


def _metrics_for_classes(classes: list[XmlElement]) -> CoverageMetrics:
    method_counts = [_counter(c, "METHOD") for c in classes]
    line_counts = [_counter(c, "LINE") for c in classes]
    branch_counts = [_counter(c, "BRANCH") for c in classes]
    return CoverageMetrics(
        total_classes=len(classes),
        covered_classes=sum(1 for _, covered in method_counts if covered > 0),
        total_methods=sum(missed + covered for missed, covered in method_counts),
        covered_methods=sum(covered for _, covered in method_counts),
        total_lines=sum(missed + covered for missed, covered in line_counts),
        covered_lines=sum(covered for _, covered in line_counts),
        total_branches=sum(missed + covered for missed, covered in branch_counts),
        covered_branches=sum(covered for _, covered in branch_counts),
    )


def _package_entries(
    package: XmlElement,
    exclusions: ExclusionSet | None,
    root: Path | None,
    seen_classes: set[str],
    duplicates: list[str],
) -> list[SourceEntry]:
    package_name = package.get("name", "")

    classes_by_source: dict[str, list[XmlElement]] = defaultdict(list)
    for class_elem in package.findall("class"):
        class_name = class_elem.get("name", "")
        if exclusions is not None and exclusions.is_class_excluded(class_name, root):
            logger.debug("Excluding class %s", class_name)
            continue
        if class_name in seen_classes:
            logger.debug("Skipping class %s already read from another report", class_name)
            duplicates.append(class_name)
            continue
        seen_classes.add(class_name)
        classes_by_source[class_elem.get("sourcefilename", "")].append(class_elem)

    entries: list[SourceEntry] = []
    for sourcefile in package.findall("sourcefile"):
        file_name = sourcefile.get("name", "")
        classes = classes_by_source.get(file_name, [])
        if not file_name or not classes:
            continue
        entries.append(
            SourceEntry(
                package=package_name,
                file_name=file_name,
                metrics=_metrics_for_classes(classes),
                missing_lines=_missing_lines(sourcefile),
                class_names=tuple(c.get("name", "") for c in classes),
                root=root,
            )
        )
    return entries


def parse_jacoco_report(
    coverage_file: Path,
    exclusions: ExclusionSet | None = None,
    root: Path | None = None,
    seen_classes: set[str] | None = None,
) -> JacocoReport:
    """Parse a JaCoCo XML report into source entries.

    Classes matched by *exclusions* are left out before any counter is
    summed. *root* is the module directory the report belongs to; it is
    attached to every entry so file exclusions declared elsewhere can be
    rebased.

    *seen_classes* is shared across the reports of one run: a class already
    in it is skipped (and listed in ``duplicate_classes``) so that a class
    present in several reports, such as a module report and an aggregate
    report, is counted once. Names of the classes read are added to it.

    Raises:
        FileNotFoundError: If *coverage_file* does not exist.
        ReportParseError: If the file is not a JaCoCo XML report.
    """
    try:
        tree = ElementTree.parse(coverage_file)
    except FileNotFoundError:
        raise
    except (DefusedParseError, DefusedXmlException, OSError) as e:
        raise ReportParseError(coverage_file, str(e)) from e

    report_elem = tree.getroot()
    if report_elem.tag != "report":
        raise ReportParseError(coverage_file, f"root element is <{report_elem.tag}>, not <report>")

    sessions = [
        SessionInfo(
            session_id=info.get("id", ""),
            start=_int_attr(info, "start"),
            dump=_int_attr(info, "dump"),
        )
        for info in report_elem.findall("sessioninfo")
    ]

    if seen_classes is None:
        seen_classes = set()
    duplicates: list[str] = []
    entries: list[SourceEntry] = []
    for package in report_elem.iter("package"):
        entries.extend(_package_entries(package, exclusions, root, seen_classes, duplicates))

    logger.debug("Read %d source file(s) from %s", len(entries), coverage_file)
    return JacocoReport(
        name=report_elem.get("name", ""),
        entries=entries,
        sessions=sessions,
        duplicate_classes=duplicates,
    )


def find_jacoco_reports(module_dir: Path) -> list[Path]:
    """Return the JaCoCo XML reports present under *module_dir*."""
    return [module_dir / p for p in JACOCO_XML_PATHS if (module_dir / p).is_file()]
