"""Configuration parsing from ``.covtree.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from covtree.exclusions.rules import DEFAULT_SOURCE_DIRS
from covtree.reporters.layout import DEFAULT_METRICS_WIDTH, DEFAULT_PACKAGE_WIDTH
from covtree.reporters.summary import CoverageWeights
from covtree.utils.discovery import BUILD_OUTPUT_DIR, DEFAULT_EXEC_PATTERNS

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".covtree.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_MIN_COLUMN_WIDTH = 10
_CHARSETS = ("auto", "ascii", "unicode")


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name, {})
    return section if isinstance(section, dict) else {}


def _str_list(value: Any, default: list[str] | tuple[str, ...] = ()) -> list[str]:
    """Coerce a YAML scalar or list into a list of non-empty strings."""
    if value is None:
        return list(default)
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if str(item).strip()]
    return list(default)


@dataclass
class InputsConfig:
    """Where coverage data is read from."""

    exec_files: list[str] = field(default_factory=list)
    """Exec files to merge, relative to the project root."""

    xml_reports: list[str] = field(default_factory=list)
    """JaCoCo XML reports to read, relative to the project root."""

    scan_modules: bool = False
    """Search every module below the root for exec files and XML reports."""

    exec_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_EXEC_PATTERNS))
    """File names looked for in each module's ``target`` directory."""


@dataclass
class ReportConfig:
    """How the report is rendered."""

    show_tree: bool = True
    """Print the package tree."""

    show_files: bool = True
    """Include source files as leaves of the tree."""

    show_missing_lines: bool = False
    """Append missed/partial line ranges to file rows."""

    show_summary: bool = True
    """Print the overall summary with the combined score."""

    charset: str = "auto"
    """Connector glyphs: ``auto`` (from the console encoding), ``ascii`` or ``unicode``."""

    package_width: int = DEFAULT_PACKAGE_WIDTH
    """Width of the package column."""

    metrics_width: int = DEFAULT_METRICS_WIDTH
    """Width of each metric column."""


@dataclass
class ExclusionsConfig:
    """Class and file patterns left out of the report."""

    classes: list[str] = field(default_factory=list)
    """Class-name globs, e.g. ``**/*Controller.class``."""

    files: list[str] = field(default_factory=list)
    """Source-path globs; each item may itself be a comma-separated list."""

    source_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_DIRS))
    """Source directories file paths are also tried under."""

    ignore_build_dir: bool = False
    """Exclude classes whose sources were generated into the build directory."""

    build_dir: str = BUILD_OUTPUT_DIR
    """Build output directory, relative to the project root."""


@dataclass
class CovtreeConfig:
    """Complete covtree configuration from ``.covtree.yml``."""

    root: str
    """Project root directory."""

    inputs: InputsConfig = field(default_factory=InputsConfig)
    """Input configuration."""

    report: ReportConfig = field(default_factory=ReportConfig)
    """Rendering configuration."""

    weights: CoverageWeights = field(default_factory=CoverageWeights)
    """Weights of the combined coverage score."""

    exclusions: ExclusionsConfig = field(default_factory=ExclusionsConfig)
    """Exclusion configuration."""

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""


def _parse_inputs_config(raw: dict[str, Any]) -> InputsConfig:
    """Parse the inputs section from raw YAML."""
    inputs_raw = _section(raw, "inputs")
    return InputsConfig(
        exec_files=_str_list(inputs_raw.get("exec_files")),
        xml_reports=_str_list(inputs_raw.get("xml_reports")),
        scan_modules=bool(inputs_raw.get("scan_modules", False)),
        exec_patterns=_str_list(inputs_raw.get("exec_patterns"), DEFAULT_EXEC_PATTERNS),
    )


def _parse_report_config(raw: dict[str, Any]) -> ReportConfig:
    """Parse the report section from raw YAML."""
    report_raw = _section(raw, "report")
    return ReportConfig(
        show_tree=bool(report_raw.get("show_tree", True)),
        show_files=bool(report_raw.get("show_files", True)),
        show_missing_lines=bool(report_raw.get("show_missing_lines", False)),
        show_summary=bool(report_raw.get("show_summary", True)),
        charset=str(report_raw.get("charset", "auto")).lower(),
        package_width=int(report_raw.get("package_width", DEFAULT_PACKAGE_WIDTH)),
        metrics_width=int(report_raw.get("metrics_width", DEFAULT_METRICS_WIDTH)),
    )


def _parse_weights_config(raw: dict[str, Any]) -> CoverageWeights:
    """Parse the weights section from raw YAML."""
    weights_raw = _section(raw, "weights")
    defaults = CoverageWeights()
    return CoverageWeights(
        class_weight=float(weights_raw.get("class", defaults.class_weight)),
        method_weight=float(weights_raw.get("method", defaults.method_weight)),
        branch_weight=float(weights_raw.get("branch", defaults.branch_weight)),
        line_weight=float(weights_raw.get("line", defaults.line_weight)),
    )


def _parse_exclusions_config(raw: dict[str, Any]) -> ExclusionsConfig:
    """Parse the exclusions section from raw YAML."""
    exclusions_raw = _section(raw, "exclusions")
    return ExclusionsConfig(
        classes=_str_list(exclusions_raw.get("classes")),
        files=_str_list(exclusions_raw.get("files")),
        source_dirs=_str_list(exclusions_raw.get("source_dirs"), DEFAULT_SOURCE_DIRS),
        ignore_build_dir=bool(exclusions_raw.get("ignore_build_dir", False)),
        build_dir=str(exclusions_raw.get("build_dir", BUILD_OUTPUT_DIR)),
    )


def load_config(root: str | Path) -> CovtreeConfig:
    """Load and parse the complete ``.covtree.yml`` configuration.

    Falls back to defaults when the YAML file is missing or incomplete.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILE_NAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        text = config_file.read_text(encoding="utf-8")
        parsed = yaml.safe_load(text)
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        elif parsed is not None:
            logger.warning("Ignoring %s: top level is not a mapping", config_file)

    return CovtreeConfig(
        root=str(root_path),
        inputs=_parse_inputs_config(raw),
        report=_parse_report_config(raw),
        weights=_parse_weights_config(raw),
        exclusions=_parse_exclusions_config(raw),
        raw=raw,
    )


def _validate_report_config(report: ReportConfig) -> list[str]:
    """Validate rendering settings."""
    errors: list[str] = []

    if report.charset not in _CHARSETS:
        errors.append(
            f"report.charset must be one of {', '.join(_CHARSETS)} (got: {report.charset})"
        )

    if report.package_width < _MIN_COLUMN_WIDTH:
        errors.append(
            f"report.package_width must be at least {_MIN_COLUMN_WIDTH} "
            f"(got: {report.package_width})"
        )

    if report.metrics_width < _MIN_COLUMN_WIDTH:
        errors.append(
            f"report.metrics_width must be at least {_MIN_COLUMN_WIDTH} "
            f"(got: {report.metrics_width})"
        )

    return errors


def _validate_exclusions_config(exclusions: ExclusionsConfig) -> list[str]:
    """Validate exclusion settings."""
    errors: list[str] = []

    if not exclusions.source_dirs:
        errors.append("exclusions.source_dirs must list at least one directory")

    if exclusions.ignore_build_dir and not exclusions.build_dir.strip():
        errors.append("exclusions.build_dir is required when ignore_build_dir is enabled")

    return errors


def validate_config(config: CovtreeConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid. Weights are not
    checked: zero and negative weights are allowed.
    """
    errors: list[str] = []

    if not config.root:
        errors.append("root is required")

    errors.extend(_validate_report_config(config.report))
    errors.extend(_validate_exclusions_config(config.exclusions))

    return errors
