"""Decoding of ripgrep's ``--json`` output into ``MatchRecord`` values.

Every output line is one JSON object ``{"type": ..., "data": {...}}``.
Text fields arrive as ``{"text": ...}`` or, for data that is not valid
UTF-8, as ``{"bytes": <base64>}``; those keep their undecodable bytes as
``surrogateescape`` code points so submatch byte offsets stay valid.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Iterable, Iterator

from .errors import ProtocolDecodeError
from .records import Begin, End, LineMatch, MatchRecord, Stats, Submatch, Summary, decode_text

# Emitted with -A/-B/-C; shown by rg itself around matches but not selectable.
IGNORED_TYPES = frozenset({"context"})


def _text(value: object, field: str) -> str:
    if not isinstance(value, dict):
        raise ProtocolDecodeError(f"{field}: expected an object, got {type(value).__name__}")
    if "text" in value:
        text = value["text"]
        if not isinstance(text, str):
            raise ProtocolDecodeError(f"{field}.text: expected a string")
        return text
    if "bytes" in value:
        try:
            raw = base64.b64decode(value["bytes"], validate=True)
        except (binascii.Error, TypeError, ValueError) as exc:
            raise ProtocolDecodeError(f"{field}.bytes: invalid base64") from exc
        return decode_text(raw)
    raise ProtocolDecodeError(f"{field}: missing 'text' or 'bytes'")


def _int(data: dict, field: str, default: int | None = None) -> int:
    value = data.get(field, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ProtocolDecodeError(f"{field}: expected a non-negative integer, got {value!r}")
    return value


def _submatches(value: object) -> tuple[Submatch, ...]:
    if not isinstance(value, list):
        raise ProtocolDecodeError("submatches: expected a list")
    submatches: list[Submatch] = []
    for item in value:
        if not isinstance(item, dict):
            raise ProtocolDecodeError("submatches: expected objects")
        matched = item.get("match")
        submatches.append(
            Submatch(
                start=_int(item, "start"),
                end=_int(item, "end"),
                text=_text(matched, "submatches.match") if matched is not None else "",
            )
        )
    return tuple(submatches)


def _stats(value: object) -> Stats:
    if not isinstance(value, dict):
        raise ProtocolDecodeError("stats: expected an object")
    elapsed = value.get("elapsed")
    elapsed_seconds = None
    if isinstance(elapsed, dict) and isinstance(elapsed.get("secs"), (int, float)):
        elapsed_seconds = float(elapsed["secs"]) + float(elapsed.get("nanos", 0)) / 1e9
    return Stats(
        matched_lines=_int(value, "matched_lines", 0),
        matches=_int(value, "matches", 0),
        searches=_int(value, "searches", 0),
        searches_with_match=_int(value, "searches_with_match", 0),
        elapsed_seconds=elapsed_seconds,
    )


def decode_message(payload: object) -> MatchRecord | None:
    """Decode one parsed JSON message; ``None`` for ignored message types."""
    if not isinstance(payload, dict):
        raise ProtocolDecodeError("message is not a JSON object")
    kind = payload.get("type")
    data = payload.get("data")
    if kind in IGNORED_TYPES:
        return None
    if not isinstance(data, dict):
        raise ProtocolDecodeError(f"{kind!r} message has no data object")

    if kind == "begin":
        return Begin(path=_text(data.get("path"), "path"))
    if kind == "end":
        return End(path=_text(data.get("path"), "path"))
    if kind == "match":
        return LineMatch(
            path=_text(data.get("path"), "path"),
            text=_text(data.get("lines"), "lines"),
            line_number=_int(data, "line_number"),
            submatches=_submatches(data.get("submatches", [])),
            absolute_offset=_int(data, "absolute_offset", 0),
        )
    if kind == "summary":
        return Summary(stats=_stats(data.get("stats", {})))
    raise ProtocolDecodeError(f"unsupported message type: {kind!r}")


def decode_line(line: str) -> MatchRecord | None:
    """Decode one line of ``rg --json`` output."""
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ProtocolDecodeError(f"invalid JSON: {exc.msg} at column {exc.colno}") from exc
    return decode_message(payload)


def decode_lines(lines: Iterable[str]) -> Iterator[MatchRecord]:
    """Decode a stream of output lines, skipping blank lines and ignored types."""
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        record = decode_line(line)
        if record is not None:
            yield record


__all__ = [
    "IGNORED_TYPES",
    "decode_message",
    "decode_line",
    "decode_lines",
]
