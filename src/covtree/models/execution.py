"""Execution data recorded for compiled units."""

from __future__ import annotations

from dataclasses import dataclass

_CRC64_POLY = 0xD800000000000000
_MASK_64 = 0xFFFFFFFFFFFFFFFF


def _build_crc64_table() -> tuple[int, ...]:
    table = []
    for i in range(256):
        value = i
        for _ in range(8):
            if value & 1:
                value = (value >> 1) ^ _CRC64_POLY
            else:
                value >>= 1
        table.append(value)
    return tuple(table)


_CRC64_TABLE = _build_crc64_table()


def crc64(data: bytes) -> int:
    """CRC-64 (ISO polynomial) as used for JaCoCo class identities."""
    value = 0
    for byte in data:
        value = (value >> 8) ^ _CRC64_TABLE[(value ^ byte) & 0xFF]
    return value & _MASK_64


def class_id_for(name: str) -> int:
    """Derive a 64-bit identity from a fully-qualified class name."""
    return crc64(name.encode("utf-8"))


class ProbeMismatchError(ValueError):
    """Raised when two records for the same class have different probe counts."""

    def __init__(self, name: str, class_id: int, expected: int, actual: int) -> None:
        self.name = name
        self.class_id = class_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Incompatible execution data for class {name} (id {class_id:016x}): "
            f"{expected} probes vs {actual} probes"
        )


@dataclass(frozen=True)
class SessionInfo:
    """Identifier and timestamps of one measurement session."""

    session_id: str
    start: int
    """Session start, milliseconds since the epoch."""

    dump: int
    """Time the data was dumped, milliseconds since the epoch."""


@dataclass(frozen=True)
class ExecutionRecord:
    """Probe vector recorded for one compiled unit."""

    class_id: int
    """64-bit structural identity of the class."""

    name: str
    """Slash-separated class name (e.g. ``com/example/Foo``)."""

    probes: tuple[bool, ...]
    """One flag per instrumentation point; True when it executed."""

    @property
    def executed_count(self) -> int:
        return sum(self.probes)

    @property
    def has_hits(self) -> bool:
        return any(self.probes)

    def merge(self, other: ExecutionRecord) -> ExecutionRecord:
        """Return a record whose probes are the elementwise OR of both."""
        if len(self.probes) != len(other.probes):
            raise ProbeMismatchError(self.name, self.class_id, len(self.probes), len(other.probes))
        return ExecutionRecord(
            class_id=self.class_id,
            name=self.name,
            probes=tuple(a or b for a, b in zip(self.probes, other.probes, strict=True)),
        )
