"""Reader and writer for JaCoCo binary execution data (``jacoco.exec``).

The file is a sequence of blocks, each introduced by a one-byte type:

- ``0x01`` header: magic ``0xC0C0`` and format version ``0x1007``
- ``0x10`` session info: UTF id, start and dump timestamps (int64)
- ``0x11`` execution data: class id (int64), UTF name, probe array

Strings use Java's ``writeUTF`` layout (u2 length + bytes); probe arrays a
varint length followed by bits packed LSB-first.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covtree.models.execution import ExecutionRecord, SessionInfo

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = logging.getLogger(__name__)

BLOCK_HEADER = 0x01
BLOCK_SESSION_INFO = 0x10
BLOCK_EXECUTION_DATA = 0x11

MAGIC_NUMBER = 0xC0C0
FORMAT_VERSION = 0x1007

_U16 = struct.Struct(">H")
_U64 = struct.Struct(">Q")
_I64 = struct.Struct(">q")
_VARINT_MAX_BYTES = 5


class ExecFileError(Exception):
    """Raised when an exec file exists but cannot be read as execution data."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read execution data {path}: {reason}")


@dataclass
class ExecData:
    """Contents of one exec file."""

    sessions: list[SessionInfo] = field(default_factory=list)
    records: list[ExecutionRecord] = field(default_factory=list)


class _Cursor:
    """Sequential reader over an in-memory buffer."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def _take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            msg = f"unexpected end of data at offset {self._pos}"
            raise EOFError(msg)
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def read_byte(self) -> int:
        return self._take(1)[0]

    def read_char(self) -> int:
        return int(_U16.unpack(self._take(2))[0])

    def read_long(self) -> int:
        return int(_I64.unpack(self._take(8))[0])

    def read_id(self) -> int:
        return int(_U64.unpack(self._take(8))[0])

    def read_utf(self) -> str:
        length = self.read_char()
        return self._take(length).decode("utf-8", errors="surrogatepass")

    def read_varint(self) -> int:
        value = 0
        shift = 0
        for _ in range(_VARINT_MAX_BYTES):
            byte = self.read_byte()
            value |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return value
            shift += 7
        msg = "varint is too long"
        raise ValueError(msg)

    def read_boolean_array(self) -> tuple[bool, ...]:
        size = self.read_varint()
        packed = self._take((size + 7) // 8)
        return tuple(bool(packed[i // 8] >> (i % 8) & 1) for i in range(size))


def parse_exec_data(data: bytes, source: Path | str = "<memory>") -> ExecData:
    """Decode exec-file bytes. Empty input yields an empty result."""
    cursor = _Cursor(data)
    result = ExecData()
    first_block = True
    try:
        while not cursor.at_end:
            block_type = cursor.read_byte()
            if first_block and block_type != BLOCK_HEADER:
                raise ExecFileError(source, "invalid execution data file (missing header)")
            first_block = False

            if block_type == BLOCK_HEADER:
                _read_header(cursor, source)
            elif block_type == BLOCK_SESSION_INFO:
                result.sessions.append(
                    SessionInfo(
                        session_id=cursor.read_utf(),
                        start=cursor.read_long(),
                        dump=cursor.read_long(),
                    )
                )
            elif block_type == BLOCK_EXECUTION_DATA:
                result.records.append(
                    ExecutionRecord(
                        class_id=cursor.read_id(),
                        name=cursor.read_utf(),
                        probes=cursor.read_boolean_array(),
                    )
                )
            else:
                raise ExecFileError(source, f"unknown block type {block_type:#x}")
    except (EOFError, UnicodeDecodeError, ValueError) as e:
        raise ExecFileError(source, str(e)) from e
    return result


def _read_header(cursor: _Cursor, source: Path | str) -> None:
    magic = cursor.read_char()
    if magic != MAGIC_NUMBER:
        raise ExecFileError(source, "invalid execution data file (bad magic number)")
    version = cursor.read_char()
    if version != FORMAT_VERSION:
        raise ExecFileError(source, f"incompatible execution data version {version:#06x}")


def read_exec_file(path: Path) -> ExecData:
    """Read a JaCoCo exec file.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ExecFileError: If the file exists but is not valid execution data.
    """
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        raise
    except OSError as e:
        raise ExecFileError(path, str(e)) from e
    result = parse_exec_data(data, path)
    logger.debug(
        "Read %d session(s) and %d class record(s) from %s",
        len(result.sessions),
        len(result.records),
        path,
    )
    return result


# ── Writing ───────────────────────────────────────────────────────


def _encode_utf(value: str) -> bytes:
    raw = value.encode("utf-8", errors="surrogatepass")
    return _U16.pack(len(raw)) + raw


def _encode_varint(value: int) -> bytes:
    out = bytearray()
    while value & ~0x7F:
        out.append(0x80 | (value & 0x7F))
        value >>= 7
    out.append(value)
    return bytes(out)


def _encode_boolean_array(values: tuple[bool, ...]) -> bytes:
    packed = bytearray((len(values) + 7) // 8)
    for idx, flag in enumerate(values):
        if flag:
            packed[idx // 8] |= 1 << (idx % 8)
    return _encode_varint(len(values)) + bytes(packed)


def encode_exec_data(
    sessions: Iterable[SessionInfo],
    records: Iterable[ExecutionRecord],
) -> bytes:
    """Encode sessions and records into exec-file bytes."""
    out = bytearray([BLOCK_HEADER])
    out += _U16.pack(MAGIC_NUMBER) + _U16.pack(FORMAT_VERSION)
    for session in sessions:
        out.append(BLOCK_SESSION_INFO)
        out += _encode_utf(session.session_id)
        out += _I64.pack(session.start) + _I64.pack(session.dump)
    for record in records:
        out.append(BLOCK_EXECUTION_DATA)
        out += _U64.pack(record.class_id)
        out += _encode_utf(record.name)
        out += _encode_boolean_array(record.probes)
    return bytes(out)


def write_exec_file(
    path: Path,
    sessions: Iterable[SessionInfo],
    records: Iterable[ExecutionRecord],
) -> None:
    """Write sessions and records to *path* in exec-file format."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_exec_data(sessions, records))
