"""Match rendering: submatch highlighting, number padding, and column layout.

Each match line is printed as ``<ordinal>    <line number>    <text>`` with
the two number columns padded to a common width and the text wrapped to the
remaining terminal columns. Continuation lines are indented under the text.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence

from .ansi import DEFAULT_TAB_SIZE, sanitize_terminal_text, wrap
from .errors import DegenerateWidth, SubmatchRangeInvalid
from .highlight import SyntaxPainter
from .records import TEXT_ERRORS, Begin, End, LineMatch, MatchRecord, Summary, encode_text
from .theme import DEFAULT_THEME, Theme

COLUMN_GAP = "    "


def number_of_digits(number: int) -> int:
    """Return how many decimal digits ``number`` prints with (``0`` has one)."""
    if number < 0:
        raise ValueError(f"expected a non-negative number, got {number}")
    return len(str(number))


def pad_number(number: int, digit_width: int) -> str:
    """Right-pad ``number`` with spaces to ``digit_width`` characters.

    Raises ``ValueError`` when ``number`` needs more than ``digit_width``
    digits; callers size the column from the largest number of the batch.
    """
    digits = number_of_digits(number)
    if digits > digit_width:
        raise ValueError(f"pad_number wrong arguments number of digits of {digits} > {digit_width}")
    return str(number).ljust(digit_width)


def _decode_slice(raw: bytes, start: int, end: int, errors: str) -> str:
    try:
        return raw[start:end].decode("utf-8", errors)
    except UnicodeDecodeError as exc:
        raise SubmatchRangeInvalid(f"range {start}..{end} splits a UTF-8 character") from exc


def _is_utf8(raw: bytes) -> bool:
    try:
        raw.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def color_submatch(
    text: str,
    ranges: Iterable[tuple[int, int]],
    style: str = DEFAULT_THEME.submatch,
    reset: str = DEFAULT_THEME.reset,
    paint_gap: Callable[[int, int], str] | None = None,
) -> str:
    """Highlight byte ranges of ``text`` with ``style``.

    Ranges are half-open byte offsets into the UTF-8 encoding of ``text`` and
    must be ascending, non-overlapping, and within bounds. ``paint_gap``
    receives the character range of each unhighlighted gap and returns its
    rendering; gaps are copied verbatim without it.

    Text holding undecodable bytes (as ``surrogateescape`` code points) is
    sliced on its original bytes, where no character split can be detected.
    """
    raw = encode_text(text)
    errors = "strict" if _is_utf8(raw) else TEXT_ERRORS
    out: list[str] = []
    cursor = 0
    char_cursor = 0

    def emit_gap(piece: str) -> None:
        if paint_gap is None:
            out.append(sanitize_terminal_text(piece))
        else:
            out.append(paint_gap(char_cursor, char_cursor + len(piece)))

    for start, end in ranges:
        if end > len(raw):
            raise SubmatchRangeInvalid(
                f"Cannot color submatches, text is shorter than submatches {end} {len(raw)}"
            )
        if start > end:
            raise SubmatchRangeInvalid(f"submatch range {start}..{end} is reversed")
        if start < cursor:
            raise SubmatchRangeInvalid(
                f"submatch range {start}..{end} overlaps or precedes the previous range ending at {cursor}"
            )

        gap = _decode_slice(raw, cursor, start, errors)
        emit_gap(gap)
        char_cursor += len(gap)

        matched = _decode_slice(raw, start, end, errors)
        shown = sanitize_terminal_text(matched)
        out.append(f"{style}{shown}{reset}" if style else shown)
        char_cursor += len(matched)
        cursor = end

    emit_gap(_decode_slice(raw, cursor, len(raw), errors))
    return "".join(out)


def _match_body(
    record: LineMatch,
    theme: Theme,
    max_text_size: int | None,
    syntax: bool,
) -> str:
    text = record.text.rstrip("\r\n")
    # A single enormous line (minified files) is not worth printing.
    size = len(encode_text(record.text))
    if max_text_size is not None and size > max_text_size:
        return theme.paint(theme.truncated, f"text truncated size({size})>{max_text_size}")

    paint_gap = None
    if syntax and theme.reset:
        painter = SyntaxPainter.for_line(text, record.path)
        if painter is not None:
            paint_gap = painter.paint
    return color_submatch(text, record.ranges(), theme.submatch, theme.reset, paint_gap)


def padding_and_wrap(
    body: str,
    line_number: int,
    ordinal: int,
    terminal_width: int,
    line_number_digits: int | None = None,
    ordinal_digits: int | None = None,
    theme: Theme = DEFAULT_THEME,
    tab_size: int = DEFAULT_TAB_SIZE,
) -> Iterator[str]:
    """Prefix ``body`` with the ordinal and line-number columns and wrap it.

    Column widths default to the record's own digit counts.
    """
    if line_number_digits is None:
        line_number_digits = number_of_digits(line_number)
    if ordinal_digits is None:
        ordinal_digits = number_of_digits(ordinal)

    ordinal_str = pad_number(ordinal, ordinal_digits)
    line_number_str = pad_number(line_number, line_number_digits)
    prefix = (
        f"{theme.paint(theme.ordinal, ordinal_str)}{COLUMN_GAP}"
        f"{theme.paint(theme.line_number, line_number_str)}{COLUMN_GAP}"
    )
    prefix_width = len(ordinal_str) + len(line_number_str) + 2 * len(COLUMN_GAP)
    if terminal_width <= prefix_width:
        raise DegenerateWidth(terminal_width, prefix_width)

    text_width = terminal_width - prefix_width
    indent = " " * prefix_width
    emitted = False
    for row, line in enumerate(wrap(body, text_width, tab_size, fill_end=True)):
        emitted = True
        yield f"{prefix}{line}" if row == 0 else f"{indent}{line}"
    if not emitted:
        yield f"{prefix}{' ' * text_width}"


def render_record(
    record: MatchRecord,
    ordinal: int,
    terminal_width: int,
    max_text_size: int | None = None,
    *,
    ordinal_digits: int | None = None,
    line_number_digits: int | None = None,
    theme: Theme = DEFAULT_THEME,
    tab_size: int = DEFAULT_TAB_SIZE,
    syntax: bool = False,
) -> list[str]:
    """Render one record into its printable lines."""
    if isinstance(record, Begin):
        return [theme.paint(theme.path, sanitize_terminal_text(record.path))]
    if isinstance(record, End):
        return [""]
    if isinstance(record, Summary):
        return []
    if isinstance(record, LineMatch):
        body = _match_body(record, theme, max_text_size, syntax)
        return list(
            padding_and_wrap(
                body,
                record.line_number,
                ordinal,
                terminal_width,
                line_number_digits=line_number_digits,
                ordinal_digits=ordinal_digits,
                theme=theme,
                tab_size=tab_size,
            )
        )
    raise TypeError(f"unsupported record type: {type(record).__name__}")


def column_widths(records: Sequence[tuple[MatchRecord, int]]) -> tuple[int, int]:
    """Return ``(ordinal_digits, line_number_digits)`` sized for every match in the batch."""
    max_ordinal = 0
    max_line = 0
    for record, ordinal in records:
        if isinstance(record, LineMatch):
            max_ordinal = max(max_ordinal, ordinal)
            max_line = max(max_line, record.line_number)
    return number_of_digits(max_ordinal), number_of_digits(max_line)


def render(
    records: Sequence[tuple[MatchRecord, int]],
    terminal_width: int,
    max_text_size: int | None = None,
    *,
    theme: Theme = DEFAULT_THEME,
    tab_size: int = DEFAULT_TAB_SIZE,
    syntax: bool = False,
) -> Iterator[str]:
    """Render a batch of ``(record, ordinal)`` pairs with aligned columns."""
    ordinal_digits, line_number_digits = column_widths(records)
    for record, ordinal in records:
        yield from render_record(
            record,
            ordinal,
            terminal_width,
            max_text_size,
            ordinal_digits=ordinal_digits,
            line_number_digits=line_number_digits,
            theme=theme,
            tab_size=tab_size,
            syntax=syntax,
        )


__all__ = [
    "COLUMN_GAP",
    "number_of_digits",
    "pad_number",
    "color_submatch",
    "padding_and_wrap",
    "render_record",
    "column_widths",
    "render",
]
