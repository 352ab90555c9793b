"""One report run: collects exclusions and coverage inputs, then renders.

A :class:`ReportSession` owns all state accumulated while building a report
(exclusion patterns, merged execution data, source entries) so independent
runs never share it. Call :meth:`ReportSession.reset` to reuse an instance.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from covtree.adapters.coverage.jacoco import find_jacoco_reports, parse_jacoco_report
from covtree.exclusions.rules import ExclusionSet
from covtree.merging.merger import ExecutionDataMerger
from covtree.models.tree import DirectoryNode, SourceEntry, build_tree
from covtree.reporters.layout import ReportLayout
from covtree.reporters.summary import render_summary
from covtree.reporters.tree import render_report
from covtree.utils.discovery import (
    discover_generated_classes,
    iter_module_dirs,
    scan_for_exec_files,
    scan_for_xml_reports,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from covtree.config import CovtreeConfig
    from covtree.models.execution import SessionInfo

logger = logging.getLogger(__name__)


class ReportSession:
    """Per-run state of a coverage report."""

    def __init__(self, config: CovtreeConfig, root: Path | None = None) -> None:
        self.config = config
        self.root = (root or Path(config.root)).resolve()
        self.exclusions = ExclusionSet(config.exclusions.source_dirs)
        self.merger = ExecutionDataMerger()
        self.entries: list[SourceEntry] = []
        self.report_sessions: list[SessionInfo] = []
        self.loaded_reports: list[Path] = []
        self.processed_classes: set[str] = set()

    def _resolve(self, path: str | Path) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.root / candidate

    # ── Exclusions ────────────────────────────────────────────────────

    def load_exclusions(
        self,
        extra_classes: Iterable[str] = (),
        extra_files: Iterable[str] = (),
    ) -> int:
        """Register configured and extra exclusion patterns.

        Patterns are declared relative to the project root. Returns the
        number of patterns registered.
        """
        cfg = self.config.exclusions
        for pattern in [*cfg.classes, *extra_classes]:
            self.exclusions.add_class_exclusion(pattern, self.root)
        for patterns in [*cfg.files, *extra_files]:
            self.exclusions.add_file_exclusions(patterns, self.root)

        if cfg.ignore_build_dir:
            self._exclude_build_dir_sources()

        logger.debug("Registered %d exclusion pattern(s)", len(self.exclusions))
        return len(self.exclusions)

    def _exclude_build_dir_sources(self) -> None:
        module_dirs = (
            list(iter_module_dirs(self.root)) if self.config.inputs.scan_modules else [self.root]
        )
        build_dir_name = self.config.exclusions.build_dir
        for module_dir in module_dirs:
            for class_name in discover_generated_classes(module_dir / build_dir_name):
                self.exclusions.add_class_exclusion(class_name, module_dir)

    # ── Execution data ────────────────────────────────────────────────

    def exec_files(self, extra: Iterable[str | Path] = ()) -> list[Path]:
        """Return the exec files to merge for this run.

        Explicit files come first. Modules are scanned when enabled, and the
        root module's ``target`` directory is searched when nothing else is
        configured.
        """
        inputs = self.config.inputs
        paths = [self._resolve(p) for p in [*inputs.exec_files, *extra]]
        if inputs.scan_modules:
            paths.extend(scan_for_exec_files(self.root, inputs.exec_patterns))
        elif not paths:
            paths.extend(
                p
                for pattern in inputs.exec_patterns
                for p in sorted((self.root / "target").glob(pattern))
                if p.is_file()
            )
        return paths

    def load_execution_data(self, paths: Iterable[Path]) -> int:
        """Merge *paths* into this run's execution data.

        Returns the number of distinct classes with execution data.
        """
        self.merger.load_files(paths)
        if self.merger.duplicate_count:
            logger.info(
                "Merged %d duplicate class record(s) across %d exec file(s)",
                self.merger.duplicate_count,
                len(self.merger.loaded_files),
            )
        return len(self.merger.processed_ids)

    # ── Reports ───────────────────────────────────────────────────────

    def report_files(self, extra: Iterable[str | Path] = ()) -> list[tuple[Path, Path]]:
        """Return ``(module_root, report_path)`` pairs to read for this run."""
        inputs = self.config.inputs
        sources = [(self.root, self._resolve(p)) for p in [*inputs.xml_reports, *extra]]
        if inputs.scan_modules:
            sources.extend(scan_for_xml_reports(self.root))
        elif not sources:
            sources.extend((self.root, p) for p in find_jacoco_reports(self.root))

        unique: dict[Path, Path] = {}
        for module_root, report in sources:
            unique.setdefault(report.resolve(), module_root)
        return [(module_root, report) for report, module_root in unique.items()]

    def load_reports(self, sources: Iterable[tuple[Path, Path]]) -> int:
        """Read source entries from JaCoCo XML reports.

        Missing reports are skipped with a warning. A report that cannot be
        parsed raises :class:`~covtree.adapters.coverage.jacoco.ReportParseError`.
        Each class is counted once per run: a class already read from an
        earlier report is skipped. Returns the number of entries read.
        """
        loaded = 0
        for module_root, report_path in sources:
            if not report_path.is_file():
                logger.warning("Coverage report not found: %s", report_path)
                continue
            report = parse_jacoco_report(
                report_path,
                self.exclusions,
                root=module_root,
                seen_classes=self.processed_classes,
            )
            if report.duplicate_classes:
                logger.info(
                    "Skipped %d class(es) in %s already read from another report",
                    len(report.duplicate_classes),
                    report_path,
                )
            self.loaded_reports.append(report_path)
            self.entries.extend(report.entries)
            self.report_sessions.extend(report.sessions)
            loaded += len(report.entries)
        return loaded

    # ── Rendering ─────────────────────────────────────────────────────

    def build_tree(self) -> DirectoryNode:
        return build_tree(self.entries, self.exclusions)

    def layout(self, use_ascii: bool = False) -> ReportLayout:
        report_cfg = self.config.report
        return ReportLayout(
            package_width=report_cfg.package_width,
            metrics_width=report_cfg.metrics_width,
            use_ascii=use_ascii,
        )

    def render(self, tree: DirectoryNode, use_ascii: bool = False) -> list[str]:
        """Render the tree and/or summary blocks enabled in the configuration."""
        report_cfg = self.config.report
        lines: list[str] = []
        if report_cfg.show_tree:
            lines.extend(
                render_report(
                    tree,
                    self.layout(use_ascii),
                    show_files=report_cfg.show_files,
                    show_missing_lines=report_cfg.show_missing_lines,
                )
            )
        if report_cfg.show_summary:
            if lines:
                lines.append("")
            lines.extend(render_summary(tree.aggregate(), self.config.weights))
        return lines

    def reset(self) -> None:
        """Forget everything accumulated by this run."""
        self.exclusions.clear()
        self.merger.reset()
        self.entries.clear()
        self.report_sessions.clear()
        self.loaded_reports.clear()
        self.processed_classes.clear()
