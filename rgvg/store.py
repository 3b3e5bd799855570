"""Persistence of matched locations for the ``vg`` companion.

The binary store writes a data file of back-to-back encoded records and an
index file of cumulative end offsets, so a single record can be decoded from
a memory-mapped window without reading the rest. The layout matches bincode's
default encoding of ``(String, u32)`` records and a ``Vec<u64>`` index.

The text store keeps one ``"<line_number> <path>"`` line per record and scans
to the requested line.
"""

from __future__ import annotations

import logging
import mmap
import os
import struct
import tempfile
from collections.abc import Iterable
from pathlib import Path

from .errors import IndexOutOfRange, LoadIndexFormat, StoreFormatError, StoreIOError
from .records import TEXT_ERRORS, StoredRecord, decode_text, encode_text

logger = logging.getLogger(__name__)

_U64 = struct.Struct("<Q")
_U32 = struct.Struct("<I")


def encode_record(record: StoredRecord) -> bytes:
    """Encode ``record`` as ``u64`` path length, path bytes, ``u32`` line number.

    Paths that came from non-UTF-8 file names are written as their original bytes.
    """
    path_bytes = encode_text(record.path)
    try:
        line_bytes = _U32.pack(record.line_number)
    except struct.error as exc:
        raise ValueError(f"line number out of range: {record.line_number}") from exc
    return _U64.pack(len(path_bytes)) + path_bytes + line_bytes


def decode_record(data: bytes) -> StoredRecord:
    """Decode exactly one record; trailing or missing bytes are an error."""
    if len(data) < _U64.size + _U32.size:
        raise StoreFormatError(f"record window of {len(data)} bytes is too short")
    (path_len,) = _U64.unpack_from(data, 0)
    expected = _U64.size + path_len + _U32.size
    if expected != len(data):
        raise StoreFormatError(f"record declares {expected} bytes but window holds {len(data)}")
    path_end = _U64.size + path_len
    path = decode_text(bytes(data[_U64.size:path_end]))
    (line_number,) = _U32.unpack_from(data, path_end)
    return StoredRecord(path, line_number)


def encode_offsets(offsets: list[int]) -> bytes:
    return _U64.pack(len(offsets)) + b"".join(_U64.pack(offset) for offset in offsets)


def decode_offsets(blob: bytes) -> list[int]:
    if len(blob) < _U64.size:
        raise StoreFormatError("index is shorter than its length header")
    (count,) = _U64.unpack_from(blob, 0)
    if len(blob) != _U64.size * (count + 1):
        raise StoreFormatError(f"index declares {count} offsets but holds {len(blob)} bytes")
    offsets = [_U64.unpack_from(blob, _U64.size * (i + 1))[0] for i in range(count)]
    previous = 0
    for offset in offsets:
        if offset <= previous:
            raise StoreFormatError("index offsets are not strictly increasing")
        previous = offset
    return offsets


def _coerce_record(record) -> StoredRecord:
    if isinstance(record, StoredRecord):
        return record
    path, line_number = record
    return StoredRecord(str(path), int(line_number))


def _stage(path: Path, payload: bytes) -> Path:
    """Write ``payload`` to a synced temporary sibling of ``path`` and return it."""
    temp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "wb",
            dir=str(path.parent),
            prefix=path.name,
            suffix=".tmp",
            delete=False,
        ) as stream:
            temp_path = Path(stream.name)
            stream.write(payload)
            stream.flush()
            os.fsync(stream.fileno())
    except OSError as exc:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()
        raise StoreIOError(path, exc.strerror or str(exc)) from exc
    return temp_path


def _sync_directory(directory: Path) -> None:
    # Not every platform or filesystem can fsync a directory.
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError as exc:
        logger.debug("cannot open %s to sync it: %s", directory, exc)
        return
    try:
        os.fsync(fd)
    except OSError as exc:
        logger.debug("cannot sync %s: %s", directory, exc)
    finally:
        os.close(fd)


def commit_files(payloads: dict[Path, bytes]) -> None:
    """Replace every file in ``payloads`` only once all of them are staged and synced."""
    staged: dict[Path, Path] = {}
    try:
        for path, payload in payloads.items():
            staged[path] = _stage(path, payload)
        for path, temp_path in staged.items():
            try:
                os.replace(temp_path, path)
            except OSError as exc:
                raise StoreIOError(path, exc.strerror or str(exc)) from exc
    finally:
        for temp_path in staged.values():
            if temp_path.exists():
                temp_path.unlink()
    for directory in {path.parent for path in payloads}:
        _sync_directory(directory)


class RecordStore:
    """Binary data/index file pair with O(1) lookup by ordinal."""

    kind = "binary"

    def __init__(self, data_path: Path | str, index_path: Path | str) -> None:
        self.data_path = Path(data_path)
        self.index_path = Path(index_path)

    def write(self, records: Iterable[StoredRecord | tuple[str, int]]) -> tuple[Path, Path]:
        """Replace both files with ``records`` and return their paths."""
        chunks: list[bytes] = []
        offsets: list[int] = []
        total = 0
        for record in records:
            encoded = encode_record(_coerce_record(record))
            total += len(encoded)
            offsets.append(total)
            chunks.append(encoded)

        commit_files(
            {
                self.data_path: b"".join(chunks),
                self.index_path: encode_offsets(offsets),
            }
        )
        logger.debug("stored %d records (%d bytes) in %s", len(offsets), total, self.data_path)
        return self.data_path, self.index_path

    def _read_index(self) -> bytes:
        try:
            return self.index_path.read_bytes()
        except OSError as exc:
            raise StoreIOError(self.index_path, exc.strerror or str(exc)) from exc

    def offsets(self) -> list[int]:
        return decode_offsets(self._read_index())

    def count(self) -> int:
        return len(self.offsets())

    def __len__(self) -> int:
        return self.count()

    def read(self, ordinal: int) -> StoredRecord:
        """Decode record ``ordinal`` from its window of the mapped data file.

        Raises ``IndexOutOfRange`` when no such record was stored.
        """
        offsets = self.offsets()
        if ordinal < 0 or ordinal >= len(offsets):
            raise IndexOutOfRange(ordinal, len(offsets))

        start = offsets[ordinal - 1] if ordinal > 0 else 0
        end = offsets[ordinal]
        logger.debug("get idx: %d at offsets %d %d", ordinal, start, end)

        try:
            with open(self.data_path, "rb") as handle:
                size = os.fstat(handle.fileno()).st_size
                if end > size:
                    raise StoreFormatError(
                        f"{self.data_path}: index points past the end of the data file ({end} > {size})"
                    )
                with mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ) as mapped:
                    return decode_record(mapped[start:end])
        except OSError as exc:
            raise StoreIOError(self.data_path, exc.strerror or str(exc)) from exc

    def exists(self) -> bool:
        return self.data_path.is_file() and self.index_path.is_file()


class TextRecordStore:
    """One ``"<line_number> <path>"`` line per record; lookups scan from the top."""

    kind = "text"

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def write(self, records: Iterable[StoredRecord | tuple[str, int]]) -> Path:
        lines: list[str] = []
        for record in records:
            stored = _coerce_record(record)
            if "\n" in stored.path or "\r" in stored.path:
                raise ValueError(f"path cannot be stored in a text index: {stored.path!r}")
            lines.append(f"{stored.line_number} {stored.path}\n")
        commit_files({self.path: encode_text("".join(lines))})
        return self.path

    def _lines(self):
        try:
            with open(self.path, encoding="utf-8", errors=TEXT_ERRORS, newline="\n") as handle:
                yield from handle
        except OSError as exc:
            raise StoreIOError(self.path, exc.strerror or str(exc)) from exc

    def count(self) -> int:
        return sum(1 for _ in self._lines())

    def __len__(self) -> int:
        return self.count()

    @staticmethod
    def parse_line(line: str, line_number: int) -> StoredRecord:
        body = line.rstrip("\n")
        number, sep, path = body.partition(" ")
        if not sep or not path or not number.isdigit():
            raise LoadIndexFormat(line_number, body)
        return StoredRecord(path, int(number))

    def read(self, ordinal: int) -> StoredRecord:
        seen = 0
        for line in self._lines():
            if seen == ordinal:
                return self.parse_line(line, seen + 1)
            seen += 1
        raise IndexOutOfRange(ordinal, seen)

    def exists(self) -> bool:
        return self.path.is_file()


def open_store(kind: str, data_path: Path | str, index_path: Path | str) -> RecordStore | TextRecordStore:
    """Return the store implementation for ``kind`` (``"binary"`` or ``"text"``)."""
    if kind == RecordStore.kind:
        return RecordStore(data_path, index_path)
    if kind == TextRecordStore.kind:
        return TextRecordStore(data_path)
    raise ValueError(f"unknown store kind: {kind!r}")


__all__ = [
    "encode_record",
    "decode_record",
    "encode_offsets",
    "decode_offsets",
    "commit_files",
    "RecordStore",
    "TextRecordStore",
    "open_store",
]
