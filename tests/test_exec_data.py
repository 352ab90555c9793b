"""Tests for adapters/coverage/exec_data.py — JaCoCo exec file codec."""

from __future__ import annotations

import struct
from pathlib import Path

import pytest

from covtree.adapters.coverage.exec_data import (
    BLOCK_EXECUTION_DATA,
    BLOCK_HEADER,
    BLOCK_SESSION_INFO,
    ExecFileError,
    encode_exec_data,
    parse_exec_data,
    read_exec_file,
    write_exec_file,
)
from covtree.models.execution import ExecutionRecord, SessionInfo, class_id_for

_HEADER = bytes([BLOCK_HEADER]) + struct.pack(">HH", 0xC0C0, 0x1007)


def _utf(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack(">H", len(raw)) + raw


# ── Decoding ─────────────────────────────────────────────────────


class TestParseExecData:
    def test_empty_input_has_no_records(self) -> None:
        result = parse_exec_data(b"")
        assert result.sessions == []
        assert result.records == []

    def test_header_only(self) -> None:
        assert parse_exec_data(_HEADER).records == []

    def test_hand_built_blocks(self) -> None:
        data = (
            _HEADER
            + bytes([BLOCK_SESSION_INFO])
            + _utf("host-1234")
            + struct.pack(">qq", 1_700_000_000_000, 1_700_000_005_000)
            + bytes([BLOCK_EXECUTION_DATA])
            + struct.pack(">Q", 0x1234)
            + _utf("com/example/Foo")
            # 10 flags, packed LSB first: flags 0, 2 and 9 executed
            + bytes([10, 0b0000_0101, 0b0000_0010])
        )
        result = parse_exec_data(data)
        assert result.sessions == [SessionInfo("host-1234", 1_700_000_000_000, 1_700_000_005_000)]
        record = result.records[0]
        assert record.class_id == 0x1234
        assert record.name == "com/example/Foo"
        assert record.probes == (
            True, False, True, False, False, False, False, False, False, True,
        )

    def test_multi_byte_varint_length(self) -> None:
        probes = tuple(i % 3 == 0 for i in range(200))
        data = encode_exec_data([], [ExecutionRecord(1, "a/B", probes)])
        assert parse_exec_data(data).records[0].probes == probes

    def test_repeated_header_accepted(self) -> None:
        data = encode_exec_data([], [ExecutionRecord(1, "a/B", (True,))])
        data += encode_exec_data([], [ExecutionRecord(2, "a/C", (False,))])
        assert [r.name for r in parse_exec_data(data).records] == ["a/B", "a/C"]

    def test_missing_header(self) -> None:
        with pytest.raises(ExecFileError, match="missing header"):
            parse_exec_data(bytes([BLOCK_SESSION_INFO]) + _utf("x") + bytes(16))

    def test_bad_magic(self) -> None:
        with pytest.raises(ExecFileError, match="magic"):
            parse_exec_data(bytes([BLOCK_HEADER]) + struct.pack(">HH", 0xCAFE, 0x1007))

    def test_unsupported_version(self) -> None:
        with pytest.raises(ExecFileError, match="version"):
            parse_exec_data(bytes([BLOCK_HEADER]) + struct.pack(">HH", 0xC0C0, 0x1006))

    def test_unknown_block(self) -> None:
        with pytest.raises(ExecFileError, match="unknown block type 0x42"):
            parse_exec_data(_HEADER + bytes([0x42]))

    def test_truncated_record(self) -> None:
        data = encode_exec_data([], [ExecutionRecord(1, "a/B", (True, True))])
        with pytest.raises(ExecFileError, match="unexpected end"):
            parse_exec_data(data[:-1], "jacoco.exec")

    def test_error_names_source(self) -> None:
        with pytest.raises(ExecFileError) as exc_info:
            parse_exec_data(b"\x00", "module/target/jacoco.exec")
        assert exc_info.value.path == "module/target/jacoco.exec"
        assert "module/target/jacoco.exec" in str(exc_info.value)

    def test_block_error_reported_once(self) -> None:
        with pytest.raises(ExecFileError) as exc_info:
            parse_exec_data(_HEADER + bytes([0x42]), "jacoco.exec")
        assert exc_info.value.reason == "unknown block type 0x42"
        assert str(exc_info.value) == (
            "Failed to read execution data jacoco.exec: unknown block type 0x42"
        )
        assert exc_info.value.__cause__ is None


# ── Files ────────────────────────────────────────────────────────


class TestExecFiles:
    def test_write_then_read(self, tmp_path: Path) -> None:
        sessions = [SessionInfo("s1", 10, 20)]
        records = [
            ExecutionRecord(class_id_for("com/example/Foo"), "com/example/Foo", (True, False)),
            ExecutionRecord(class_id_for("com/example/Bar"), "com/example/Bar", ()),
        ]
        path = tmp_path / "out" / "jacoco.exec"
        write_exec_file(path, sessions, records)
        result = read_exec_file(path)
        assert result.sessions == sessions
        assert result.records == records

    def test_missing_file_raises_file_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_exec_file(tmp_path / "nope.exec")

    def test_garbage_file(self, tmp_path: Path) -> None:
        path = tmp_path / "jacoco.exec"
        path.write_bytes(b"not an exec file")
        with pytest.raises(ExecFileError) as exc_info:
            read_exec_file(path)
        assert exc_info.value.path == path

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "jacoco.exec"
        path.write_bytes(b"")
        assert read_exec_file(path).records == []
