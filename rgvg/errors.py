"""Error taxonomy shared by the renderer, the record store, and the CLIs.

Lookup failures (``IndexOutOfRange``, ``LoadIndexFormat``) are expected and
reported to the user. Everything else signals a broken invariant or an I/O
failure and aborts the current operation.
"""

from __future__ import annotations

from pathlib import Path


class RgvgError(Exception):
    """Base class for all errors raised by rgvg."""


class ProtocolDecodeError(RgvgError, ValueError):
    """Raised for a malformed or unsupported ``rg --json`` message."""


class IncompleteEscapeError(RgvgError, ValueError):
    """Raised when styled text ends in the middle of an escape sequence."""


class InvalidWidth(RgvgError, ValueError):
    """Raised when wrapping is requested with a non-positive width."""


class DegenerateWidth(RgvgError, ValueError):
    """Raised when the terminal is too narrow to fit the match prefix."""

    def __init__(self, terminal_width: int, prefix_width: int) -> None:
        super().__init__(
            f"terminal width {terminal_width} leaves no room after a {prefix_width}-column prefix"
        )
        self.terminal_width = terminal_width
        self.prefix_width = prefix_width


class SubmatchRangeInvalid(RgvgError, ValueError):
    """Raised for submatch ranges that are out of bounds, reversed, or overlapping."""


class IndexOutOfRange(RgvgError, LookupError):
    def __init__(self, requested: int, count: int) -> None:
        super().__init__(f"match {requested} does not exist ({count} stored)")
        self.requested = requested
        self.count = count


class LoadIndexFormat(RgvgError, ValueError):
    def __init__(self, line_number: int, line: str) -> None:
        super().__init__(f"cannot parse stored match on line {line_number}: {line!r}")
        self.line_number = line_number
        self.line = line


class StoreIOError(RgvgError, OSError):
    """Raised when a store file cannot be opened, written, or mapped."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class StoreFormatError(RgvgError, ValueError):
    """Raised when store bytes do not decode to the expected layout."""


class SearchLaunchError(RgvgError):
    """Raised when the search command cannot be started."""


__all__ = [
    "RgvgError",
    "ProtocolDecodeError",
    "IncompleteEscapeError",
    "InvalidWidth",
    "DegenerateWidth",
    "SubmatchRangeInvalid",
    "IndexOutOfRange",
    "LoadIndexFormat",
    "StoreIOError",
    "StoreFormatError",
    "SearchLaunchError",
]
