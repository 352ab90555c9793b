"""Tests for adapters/coverage/jacoco.py — JaCoCo XML report reader."""

from __future__ import annotations

from pathlib import Path

import pytest

from covtree.adapters.coverage.jacoco import (
    JACOCO_XML_PATHS,
    ReportParseError,
    find_jacoco_reports,
    parse_jacoco_report,
)
from covtree.exclusions.rules import ExclusionSet
from covtree.models.execution import SessionInfo
from covtree.models.metrics import CoverageMetrics


def _write_file(root: Path, rel: str, content: str) -> Path:
    f = root / rel
    f.parent.mkdir(parents=True, exist_ok=True)
    f.write_text(content, encoding="utf-8")
    return f


# ── Sample JaCoCo XML ────────────────────────────────────────────

_JACOCO_XML_SAMPLE = """\
<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<!DOCTYPE report PUBLIC "-//JACOCO//DTD Report 1.1//EN" "report.dtd">
<report name="sample">
  <sessioninfo id="host-1" start="1700000000000" dump="1700000005000"/>
  <package name="com/example">
    <class name="com/example/Calculator" sourcefilename="Calculator.java">
      <method name="add" desc="(II)I" line="10">
        <counter type="METHOD" missed="0" covered="1"/>
      </method>
      <counter type="INSTRUCTION" missed="6" covered="20"/>
      <counter type="BRANCH" missed="1" covered="3"/>
      <counter type="LINE" missed="4" covered="6"/>
      <counter type="METHOD" missed="1" covered="3"/>
      <counter type="CLASS" missed="0" covered="1"/>
    </class>
    <class name="com/example/Calculator$Helper" sourcefilename="Calculator.java">
      <counter type="LINE" missed="2" covered="0"/>
      <counter type="METHOD" missed="1" covered="0"/>
    </class>
    <class name="com/example/GeneratedDto" sourcefilename="GeneratedDto.java">
      <counter type="LINE" missed="0" covered="3"/>
      <counter type="METHOD" missed="0" covered="2"/>
    </class>
    <sourcefile name="Calculator.java">
      <line nr="3" mi="2" ci="0" mb="0" cb="0"/>
      <line nr="4" mi="1" ci="0" mb="0" cb="0"/>
      <line nr="5" mi="3" ci="0" mb="0" cb="0"/>
      <line nr="8" mi="0" ci="4" mb="0" cb="0"/>
      <line nr="10" mi="2" ci="0" mb="0" cb="0"/>
      <line nr="15" mi="0" ci="3" mb="1" cb="1"/>
      <line nr="16" mi="0" ci="2" mb="0" cb="2"/>
      <counter type="LINE" missed="6" covered="6"/>
    </sourcefile>
    <sourcefile name="GeneratedDto.java">
      <line nr="1" mi="0" ci="3" mb="0" cb="0"/>
    </sourcefile>
    <sourcefile name="package-info.java"/>
  </package>
  <group name="sub-module">
    <package name="org/demo">
      <class name="org/demo/Main" sourcefilename="Main.java">
        <counter type="LINE" missed="0" covered="1"/>
        <counter type="METHOD" missed="0" covered="1"/>
      </class>
      <sourcefile name="Main.java">
        <line nr="1" mi="0" ci="1" mb="0" cb="0"/>
      </sourcefile>
    </package>
  </group>
</report>
"""


def _sample(tmp_path: Path) -> Path:
    return _write_file(tmp_path, "target/site/jacoco/jacoco.xml", _JACOCO_XML_SAMPLE)


# ── Parsing ──────────────────────────────────────────────────────


class TestParseJacocoReport:
    def test_one_entry_per_source_file(self, tmp_path: Path) -> None:
        report = parse_jacoco_report(_sample(tmp_path))
        assert report.name == "sample"
        assert [(e.package, e.file_name) for e in report.entries] == [
            ("com/example", "Calculator.java"),
            ("com/example", "GeneratedDto.java"),
            ("org/demo", "Main.java"),
        ]

    def test_counters_summed_over_classes(self, tmp_path: Path) -> None:
        calculator = parse_jacoco_report(_sample(tmp_path)).entries[0]
        assert calculator.metrics == CoverageMetrics(
            total_classes=2,
            covered_classes=1,
            total_methods=5,
            covered_methods=3,
            total_lines=12,
            covered_lines=6,
            total_branches=4,
            covered_branches=3,
        )
        assert calculator.class_names == (
            "com/example/Calculator",
            "com/example/Calculator$Helper",
        )

    def test_missing_and_partial_lines(self, tmp_path: Path) -> None:
        calculator = parse_jacoco_report(_sample(tmp_path)).entries[0]
        assert calculator.missing_lines == "3-5, 10; partial: 15"

    def test_fully_covered_file_has_no_missing_lines(self, tmp_path: Path) -> None:
        dto = parse_jacoco_report(_sample(tmp_path)).entries[1]
        assert dto.missing_lines == ""

    def test_sessions(self, tmp_path: Path) -> None:
        report = parse_jacoco_report(_sample(tmp_path))
        assert report.sessions == [SessionInfo("host-1", 1700000000000, 1700000005000)]

    def test_root_attached_to_entries(self, tmp_path: Path) -> None:
        report = parse_jacoco_report(_sample(tmp_path), root=tmp_path)
        assert {e.root for e in report.entries} == {tmp_path}

    def test_excluded_class_removed_from_counters(self, tmp_path: Path) -> None:
        exclusions = ExclusionSet()
        exclusions.add_class_exclusion("**/*$Helper")
        calculator = parse_jacoco_report(_sample(tmp_path), exclusions).entries[0]
        assert calculator.metrics.total_classes == 1
        assert calculator.metrics.total_lines == 10
        assert calculator.metrics.total_methods == 4

    def test_file_dropped_when_all_classes_excluded(self, tmp_path: Path) -> None:
        exclusions = ExclusionSet()
        exclusions.add_class_exclusion("**/Generated*")
        report = parse_jacoco_report(_sample(tmp_path), exclusions)
        assert "GeneratedDto.java" not in [e.file_name for e in report.entries]

    def test_empty_report(self, tmp_path: Path) -> None:
        path = _write_file(tmp_path, "jacoco.xml", '<report name="empty"></report>')
        report = parse_jacoco_report(path)
        assert report.entries == []
        assert report.sessions == []

    def test_malformed_xml(self, tmp_path: Path) -> None:
        path = _write_file(tmp_path, "jacoco.xml", "<report><package>")
        with pytest.raises(ReportParseError) as exc_info:
            parse_jacoco_report(path)
        assert exc_info.value.path == path

    def test_wrong_root_element(self, tmp_path: Path) -> None:
        path = _write_file(tmp_path, "coverage.xml", "<coverage/>")
        with pytest.raises(ReportParseError, match="not <report>"):
            parse_jacoco_report(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            parse_jacoco_report(tmp_path / "nope.xml")

    def test_seen_classes_shared_between_reports(self, tmp_path: Path) -> None:
        path = _sample(tmp_path)
        seen: set[str] = set()
        first = parse_jacoco_report(path, seen_classes=seen)
        second = parse_jacoco_report(path, seen_classes=seen)
        assert len(first.entries) == 3
        assert first.duplicate_classes == []
        assert second.entries == []
        assert second.duplicate_classes == [
            "com/example/Calculator",
            "com/example/Calculator$Helper",
            "com/example/GeneratedDto",
            "org/demo/Main",
        ]
        assert "org/demo/Main" in seen

    def test_excluded_class_not_marked_seen(self, tmp_path: Path) -> None:
        exclusions = ExclusionSet()
        exclusions.add_class_exclusion("**/Generated*")
        seen: set[str] = set()
        parse_jacoco_report(_sample(tmp_path), exclusions, seen_classes=seen)
        assert "com/example/GeneratedDto" not in seen

    def test_bad_counter_values_default_to_zero(self, tmp_path: Path) -> None:
        path = _write_file(
            tmp_path,
            "jacoco.xml",
            '<report name="r"><package name="p">'
            '<class name="p/A" sourcefilename="A.java">'
            '<counter type="LINE" missed="x" covered="2"/></class>'
            '<sourcefile name="A.java"/></package></report>',
        )
        entry = parse_jacoco_report(path).entries[0]
        assert (entry.metrics.total_lines, entry.metrics.covered_lines) == (2, 2)


# ── Locating reports ─────────────────────────────────────────────


class TestFindJacocoReports:
    def test_maven_location(self, tmp_path: Path) -> None:
        report = _sample(tmp_path)
        assert find_jacoco_reports(tmp_path) == [report]

    def test_gradle_location(self, tmp_path: Path) -> None:
        report = _write_file(
            tmp_path, "build/reports/jacoco/test/jacocoTestReport.xml", _JACOCO_XML_SAMPLE
        )
        assert find_jacoco_reports(tmp_path) == [report]

    def test_none(self, tmp_path: Path) -> None:
        assert find_jacoco_reports(tmp_path) == []

    def test_known_paths(self) -> None:
        assert "target/site/jacoco/jacoco.xml" in JACOCO_XML_PATHS
