"""Merge execution data from several exec files into one store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covtree.adapters.coverage.exec_data import read_exec_file

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from covtree.models.execution import ExecutionRecord, SessionInfo

logger = logging.getLogger(__name__)


def merge_execution_data(
    sources: Iterable[Iterable[ExecutionRecord]],
) -> tuple[dict[int, ExecutionRecord], int]:
    """Merge records from several sources keyed by class identity.

    A probe executed in any source counts as executed. Returns the merged
    store and the number of distinct classes seen.
    """
    merger = ExecutionDataMerger()
    for records in sources:
        merger.add_all(records)
    return merger.records, len(merger.processed_ids)


class ExecutionDataMerger:
    """Accumulates execution data for one report run.

    Each class identity is stored once; later records for the same identity
    are folded in with a probe-wise OR instead of being counted twice.
    """

    def __init__(self) -> None:
        self._store: dict[int, ExecutionRecord] = {}
        self._processed: set[int] = set()
        self._sessions: list[SessionInfo] = []
        self._loaded_files: list[Path] = []
        self.duplicate_count = 0

    @property
    def records(self) -> dict[int, ExecutionRecord]:
        """Merged records keyed by class identity."""
        return dict(self._store)

    @property
    def processed_ids(self) -> frozenset[int]:
        return frozenset(self._processed)

    @property
    def sessions(self) -> list[SessionInfo]:
        return list(self._sessions)

    @property
    def loaded_files(self) -> list[Path]:
        return list(self._loaded_files)

    def add(self, record: ExecutionRecord) -> None:
        """Store *record*, OR-merging it into an existing record for its class."""
        if record.class_id not in self._processed:
            self._processed.add(record.class_id)
            self._store[record.class_id] = record
            return

        self.duplicate_count += 1
        self._store[record.class_id] = self._store[record.class_id].merge(record)

    def add_all(self, records: Iterable[ExecutionRecord]) -> None:
        for record in records:
            self.add(record)

    def add_sessions(self, sessions: Iterable[SessionInfo]) -> None:
        self._sessions.extend(sessions)

    def load_file(self, path: Path) -> bool:
        """Merge the contents of one exec file.

        Returns False (and logs) when the file does not exist or was already
        loaded. A file that exists but cannot be decoded raises
        :class:`~covtree.adapters.coverage.exec_data.ExecFileError`.
        """
        resolved = path.resolve()
        if resolved in self._loaded_files:
            logger.debug("Skipping already processed exec file: %s", resolved)
            return False
        if not resolved.is_file():
            logger.warning("Exec file not found: %s", resolved)
            return False

        data = read_exec_file(resolved)
        self.add_sessions(data.sessions)
        self.add_all(data.records)
        self._loaded_files.append(resolved)
        logger.debug("Processed exec file: %s", resolved)
        return True

    def load_files(self, paths: Iterable[Path]) -> dict[int, ExecutionRecord]:
        """Merge every existing file in *paths* and return the merged store."""
        for path in paths:
            self.load_file(path)
        return self.records

    def reset(self) -> None:
        """Forget everything accumulated so far."""
        self._store.clear()
        self._processed.clear()
        self._sessions.clear()
        self._loaded_files.clear()
        self.duplicate_count = 0
