"""Exclusion patterns applied while building the coverage tree."""

from covtree.exclusions.patterns import (
    ExclusionPattern,
    GlobToken,
    TokenKind,
    compile_glob,
    glob_to_regex,
    tokenize_glob,
)
from covtree.exclusions.rules import DEFAULT_SOURCE_DIRS, ExclusionSet

__all__ = [
    "DEFAULT_SOURCE_DIRS",
    "ExclusionPattern",
    "ExclusionSet",
    "GlobToken",
    "TokenKind",
    "compile_glob",
    "glob_to_regex",
    "tokenize_glob",
]
