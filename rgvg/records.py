"""Domain datatypes for decoded ripgrep JSON messages."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import NamedTuple

# rg reports lines and paths that are not valid UTF-8 as raw bytes. They are
# carried as ``str`` with undecodable bytes mapped to lone surrogates, so byte
# offsets and file names survive the round trip unchanged.
TEXT_ERRORS = "surrogateescape"


def decode_text(raw: bytes) -> str:
    return raw.decode("utf-8", TEXT_ERRORS)


def encode_text(text: str) -> bytes:
    """Return the exact bytes ``text`` was decoded from."""
    return text.encode("utf-8", TEXT_ERRORS)


@dataclass(frozen=True)
class Submatch:
    """Half-open byte range ``[start, end)`` into the UTF-8 encoded line text."""

    start: int
    end: int
    text: str = ""


@dataclass(frozen=True)
class Stats:
    matched_lines: int = 0
    matches: int = 0
    searches: int = 0
    searches_with_match: int = 0
    elapsed_seconds: float | None = None


@dataclass(frozen=True)
class Begin:
    """Start of the matches found in one file."""

    path: str


@dataclass(frozen=True)
class LineMatch:
    """One matching line; ``line_number`` is 1-based as reported by ripgrep."""

    path: str
    text: str
    line_number: int
    submatches: tuple[Submatch, ...] = ()
    absolute_offset: int = 0

    def ranges(self) -> list[tuple[int, int]]:
        return [(sub.start, sub.end) for sub in self.submatches]


@dataclass(frozen=True)
class End:
    """End of the matches found in one file."""

    path: str


@dataclass(frozen=True)
class Summary:
    stats: Stats


MatchRecord = Begin | LineMatch | End | Summary


class StoredRecord(NamedTuple):
    """The part of a match persisted for ``vg``: where to open the editor.

    A plain ``(path, line_number)`` tuple compares equal to it.
    """

    path: str
    line_number: int

    @classmethod
    def from_match(cls, record: LineMatch) -> "StoredRecord":
        return cls(path=record.path, line_number=record.line_number)


def number_matches(records: Iterable[MatchRecord]) -> Iterator[tuple[MatchRecord, int]]:
    """Lazily pair records with ordinals; only ``LineMatch`` advances the counter.

    Non-match records carry the ordinal of the next match, which the renderer
    ignores for them.
    """
    ordinal = 0
    for record in records:
        yield record, ordinal
        if isinstance(record, LineMatch):
            ordinal += 1


__all__ = [
    "Submatch",
    "Stats",
    "Begin",
    "LineMatch",
    "End",
    "Summary",
    "MatchRecord",
    "StoredRecord",
    "number_matches",
    "TEXT_ERRORS",
    "decode_text",
    "encode_text",
]
