"""JaCoCo execution data and XML report adapters."""

from covtree.adapters.coverage.exec_data import (
    ExecData,
    ExecFileError,
    read_exec_file,
    write_exec_file,
)
from covtree.adapters.coverage.jacoco import JacocoReport, ReportParseError, parse_jacoco_report

__all__ = [
    "ExecData",
    "ExecFileError",
    "JacocoReport",
    "ReportParseError",
    "parse_jacoco_report",
    "read_exec_file",
    "write_exec_file",
]
