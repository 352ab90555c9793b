"""Glob-to-regex compilation for exclusion patterns.

Patterns use ``/`` as separator and two wildcards:

- ``*`` matches any run of characters inside one path segment.
- ``**`` matches zero or more whole path segments.

A trailing ``**`` also matches the empty remainder, so ``pkg/**`` matches
``pkg/A.java`` as well as ``pkg/sub/B.java``.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from pathlib import Path

logger = logging.getLogger(__name__)

_SEPARATOR = "/"

_DOUBLE_STAR_SLASH_RE = "(?:[^/]*/)*"
_TRAILING_DOUBLE_STAR_RE = "(?:[^/]*/)*(?:[^/]*)"
_STAR_RE = "[^/]*"


class TokenKind(Enum):
    """Kinds of tokens a glob pattern is split into."""

    LITERAL = "literal"
    STAR = "star"
    DOUBLE_STAR_SLASH = "double_star_slash"
    TRAILING_DOUBLE_STAR = "trailing_double_star"


@dataclass(frozen=True)
class GlobToken:
    """One token of a parsed glob pattern."""

    kind: TokenKind
    text: str


def normalize_separators(path: str) -> str:
    """Replace Windows separators with forward slashes."""
    return path.replace("\\", _SEPARATOR)


def tokenize_glob(pattern: str) -> list[GlobToken]:
    """Split *pattern* into literal and wildcard tokens.

    Wildcards are claimed in precedence order: every ``**/`` first (left to
    right), then a trailing ``**``, then any remaining ``**``, then single
    ``*``. Characters claimed by an earlier pass are never reconsidered.
    """
    text = normalize_separators(pattern)
    size = len(text)
    claimed = [False] * size
    starts: dict[int, tuple[TokenKind, int]] = {}

    def claim(start: int, length: int, kind: TokenKind) -> None:
        starts[start] = (kind, length)
        for idx in range(start, start + length):
            claimed[idx] = True

    pos = text.find("**/")
    while pos != -1:
        claim(pos, 3, TokenKind.DOUBLE_STAR_SLASH)
        pos = text.find("**/", pos + 3)

    if size >= 2 and text.endswith("**") and not claimed[size - 2]:
        claim(size - 2, 2, TokenKind.TRAILING_DOUBLE_STAR)

    idx = 0
    while idx < size - 1:
        if (
            text[idx] == "*"
            and text[idx + 1] == "*"
            and not claimed[idx]
            and not claimed[idx + 1]
        ):
            claim(idx, 2, TokenKind.DOUBLE_STAR_SLASH)
            idx += 2
        else:
            idx += 1

    for idx, char in enumerate(text):
        if char == "*" and not claimed[idx]:
            claim(idx, 1, TokenKind.STAR)

    tokens: list[GlobToken] = []
    literal: list[str] = []
    idx = 0
    while idx < size:
        if idx in starts:
            if literal:
                tokens.append(GlobToken(TokenKind.LITERAL, "".join(literal)))
                literal = []
            kind, length = starts[idx]
            tokens.append(GlobToken(kind, text[idx : idx + length]))
            idx += length
        else:
            literal.append(text[idx])
            idx += 1
    if literal:
        tokens.append(GlobToken(TokenKind.LITERAL, "".join(literal)))
    return tokens


def glob_to_regex(pattern: str) -> str:
    """Translate a glob pattern into an anchored regular expression string."""
    parts: list[str] = []
    for token in tokenize_glob(pattern):
        if token.kind is TokenKind.LITERAL:
            parts.append(re.escape(token.text))
        elif token.kind is TokenKind.STAR:
            parts.append(_STAR_RE)
        elif token.kind is TokenKind.TRAILING_DOUBLE_STAR:
            parts.append(_TRAILING_DOUBLE_STAR_RE)
        else:
            parts.append(_DOUBLE_STAR_SLASH_RE)
    return "^" + "".join(parts) + "$"


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a glob pattern into a full-string matcher."""
    return re.compile(glob_to_regex(pattern))


@dataclass(frozen=True)
class ExclusionPattern:
    """An exclusion glob together with the root it was declared in.

    Candidates coming from another root are rebased onto :attr:`root` before
    matching, so ``module-a/src/**`` declared at the project root still
    applies to ``src/Foo.java`` reported by ``module-a``.
    """

    pattern: str
    """Original glob text."""

    root: Path | None = None
    """Directory the pattern was declared in (None when unknown)."""

    @cached_property
    def regex(self) -> re.Pattern[str]:
        """Compiled matcher, built on first use."""
        return compile_glob(self.pattern)

    def relative_path(self, candidate: str, context_root: Path | None = None) -> str:
        """Return *candidate* expressed relative to this pattern's root.

        Falls back to the unmodified candidate when either root is unknown or
        the rebasing fails.
        """
        candidate = normalize_separators(candidate)
        if context_root is None or self.root is None or context_root == self.root:
            return candidate

        try:
            offset = os.path.relpath(context_root, self.root)
            return (Path(offset) / candidate).as_posix()
        except (OSError, TypeError, ValueError) as e:
            logger.debug(
                "Could not rebase %s from %s onto %s: %s", candidate, context_root, self.root, e
            )
            return candidate

    def matches(self, candidate: str, context_root: Path | None = None) -> bool:
        """Return True if *candidate* (relative to *context_root*) is excluded."""
        return self.regex.fullmatch(self.relative_path(candidate, context_root)) is not None
