"""covtree CLI — top-level command group."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from covtree import __version__
from covtree.adapters.coverage.exec_data import ExecFileError, write_exec_file
from covtree.adapters.coverage.jacoco import ReportParseError
from covtree.config import CONFIG_FILE_NAME, CovtreeConfig, load_config, validate_config
from covtree.merging.merger import ExecutionDataMerger
from covtree.models.execution import ProbeMismatchError
from covtree.reporters.terminal import reporter
from covtree.session import ReportSession

logger = logging.getLogger(__name__)
console = Console()

_PACKAGE_LOGGER = "covtree"


def _setup_logging(*, verbose: bool) -> None:
    """Route package log records to stderr through rich."""
    handler = RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _config_to_dict(config: CovtreeConfig) -> dict[str, Any]:
    """Convert CovtreeConfig to dictionary for display."""
    result = asdict(config)
    # Remove the raw field as it's redundant
    result.pop("raw", None)
    return result


def _load_config_or_abort(path: str) -> CovtreeConfig:
    try:
        return load_config(path)
    except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e


def _use_ascii(charset: str, ascii_override: bool | None) -> bool:
    if ascii_override is not None:
        return ascii_override
    if charset == "ascii":
        return True
    if charset == "unicode":
        return False
    return not reporter.supports_unicode()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.version_option(version=__version__, prog_name="covtree")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """covtree — console coverage tree for JaCoCo data."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _setup_logging(verbose=verbose)


@cli.command()
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option(
    "--exec",
    "exec_files",
    multiple=True,
    type=click.Path(dir_okay=False, resolve_path=True),
    help="Exec file to merge (repeatable).",
)
@click.option(
    "--xml",
    "xml_reports",
    multiple=True,
    type=click.Path(dir_okay=False, resolve_path=True),
    help="JaCoCo XML report to read (repeatable).",
)
@click.option(
    "--scan-modules/--no-scan-modules",
    default=None,
    help="Scan all modules below the root.",
)
@click.option("--show-files/--hide-files", default=None, help="Show source files in the tree.")
@click.option("--show-tree/--no-tree", default=None, help="Print the package tree.")
@click.option("--show-summary/--no-summary", default=None, help="Print the weighted summary.")
@click.option(
    "--missing-lines/--no-missing-lines",
    default=None,
    help="Show missed line ranges.",
)
@click.option(
    "--ascii/--unicode",
    "use_ascii",
    default=None,
    help="Force ASCII or box-drawing connectors.",
)
@click.option("--exclude", multiple=True, help="Class-name glob to exclude (repeatable).")
@click.option(
    "--exclude-file",
    multiple=True,
    help="Source-path glob(s) to exclude, comma-separated (repeatable).",
)
def report(
    path: str,
    exec_files: tuple[str, ...],
    xml_reports: tuple[str, ...],
    *,
    scan_modules: bool | None,
    show_files: bool | None,
    show_tree: bool | None,
    show_summary: bool | None,
    missing_lines: bool | None,
    use_ascii: bool | None,
    exclude: tuple[str, ...],
    exclude_file: tuple[str, ...],
) -> None:
    """Print the coverage tree and summary for a project.

    Example:
      covtree report --path . --exec target/jacoco.exec --missing-lines
    """
    config = _load_config_or_abort(path)
    if scan_modules is not None:
        config.inputs.scan_modules = scan_modules
    if show_files is not None:
        config.report.show_files = show_files
    if show_tree is not None:
        config.report.show_tree = show_tree
    if show_summary is not None:
        config.report.show_summary = show_summary
    if missing_lines is not None:
        config.report.show_missing_lines = missing_lines

    logger.debug("Building coverage report for %s", path)
    session = ReportSession(config, Path(path))
    session.load_exclusions(exclude, exclude_file)

    try:
        session.load_execution_data(session.exec_files(exec_files))
        session.load_reports(session.report_files(xml_reports))
    except (ExecFileError, ReportParseError, ProbeMismatchError) as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    if session.merger.loaded_files:
        reporter.print_merge_summary(session.merger)
    if not session.loaded_reports:
        reporter.print_warning("No JaCoCo XML report found; nothing to report.")
        return

    tree = session.build_tree()
    reporter.print_lines(session.render(tree, _use_ascii(config.report.charset, use_ascii)))


@cli.command()
@click.argument("exec_files", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the merged execution data to this file.",
)
def merge(exec_files: tuple[str, ...], output: str | None) -> None:
    """Merge exec files, combining probes recorded for the same class.

    Example:
      covtree merge module-a/target/jacoco.exec module-b/target/jacoco.exec -o merged.exec
    """
    merger = ExecutionDataMerger()
    try:
        merger.load_files(Path(p) for p in exec_files)
    except (ExecFileError, ProbeMismatchError) as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    if not merger.loaded_files:
        reporter.print_error("None of the given exec files exist.")
        raise click.Abort

    reporter.print_merge_summary(merger)

    if output:
        records = sorted(merger.records.values(), key=lambda r: r.class_id)
        try:
            write_exec_file(Path(output), merger.sessions, records)
        except OSError as e:
            reporter.print_error(f"Failed to write {output}: {e}")
            raise click.Abort from e
        reporter.print_success(f"Wrote merged execution data to {output}")


@cli.group("config")
def config_group() -> None:
    """Inspect `.covtree.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
def config_show(path: str, *, as_json: bool) -> None:
    """Display the resolved configuration.

    Example:
      covtree config show
      covtree config show --json-output
    """
    config = _load_config_or_abort(path)
    config_dict = _config_to_dict(config)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        console.print()
        console.print("[bold cyan]Configuration:[/bold cyan]")
        console.print()
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
def config_validate(path: str) -> None:
    """Validate `.covtree.yml` configuration.

    Example:
      covtree config validate
    """
    config = _load_config_or_abort(path)
    errors = validate_config(config)

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()

    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")

    console.print()
    console.print(
        f"[dim]Fix these errors in {CONFIG_FILE_NAME} and run 'covtree config validate' again.[/dim]"
    )
    raise click.Abort
