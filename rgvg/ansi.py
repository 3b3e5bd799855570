"""ANSI-aware tokenizing and line wrapping.

Styled text is split into visible characters and opaque SGR sequences so
wrapping can count columns without being fooled by invisible escape bytes.
Styles left open at a fold are closed at the end of the line and reopened at
the start of the next one, so every wrapped line stands on its own.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .errors import IncompleteEscapeError, InvalidWidth

ESC = "\x1b"
RESET = "\x1b[0m"
DEFAULT_TAB_SIZE = 8

# C0/C1 controls except tab, plus the lone surrogates that ``surrogateescape``
# uses for bytes that are not valid UTF-8.
_CONTROL_RE = re.compile(r"[\x00-\x08\x0a-\x1f\x7f-\x9f\udc80-\udcff]")


def _escaped_byte(match: re.Match) -> str:
    code = ord(match.group(0))
    if code >= 0xDC80:
        code -= 0xDC00
    return f"\\x{code:02x}"


def sanitize_terminal_text(source: str) -> str:
    """Escape control bytes of searched text so they cannot act on the terminal.

    Undecodable bytes carried as ``surrogateescape`` code points are shown
    the same way, as ``\\xNN``. Tabs are kept; the wrapper expands them.
    """
    if _CONTROL_RE.search(source) is None:
        return source
    return _CONTROL_RE.sub(_escaped_byte, source)


@dataclass(frozen=True)
class Char:
    """One visible character; always one column wide."""

    text: str


@dataclass(frozen=True)
class Escape:
    """One complete SGR sequence, ``ESC [ ... m``."""

    text: str

    @property
    def is_reset(self) -> bool:
        return self.text == RESET


StyledToken = Char | Escape

_SPACE = Char(" ")


@dataclass(frozen=True)
class StyleMemory:
    """Escape sequences opened since the last reset, oldest first.

    A sequence that is opened again moves to the end, so replaying
    ``sequences`` in order leaves the terminal in the same state as the
    original text did.
    """

    sequences: tuple[str, ...] = ()

    def apply(self, escape: Escape) -> "StyleMemory":
        if escape.is_reset:
            return EMPTY_STYLE
        kept = tuple(seq for seq in self.sequences if seq != escape.text)
        return StyleMemory(kept + (escape.text,))

    def reopen(self) -> str:
        return "".join(self.sequences)

    def __bool__(self) -> bool:
        return bool(self.sequences)


EMPTY_STYLE = StyleMemory()


def tokenize(text: str) -> Iterator[StyledToken]:
    """Yield the visible characters and escape sequences of ``text`` in order.

    Raises ``IncompleteEscapeError`` once the input ends inside an escape
    sequence; tokens before it have already been produced by then.
    """
    pending: list[str] | None = None
    for ch in text:
        if pending is not None:
            pending.append(ch)
            if ch == "m":
                yield Escape("".join(pending))
                pending = None
            continue
        if ch == ESC:
            pending = [ch]
            continue
        yield Char(ch)

    if pending is not None:
        raise IncompleteEscapeError(f"incomplete escape sequence at end of input: {''.join(pending)!r}")


def visible_width(text: str) -> int:
    """Return the number of visible columns in styled ``text``."""
    return sum(1 for token in tokenize(text) if isinstance(token, Char))


def _expand_tabs(tokens: Iterable[StyledToken], tab_size: int) -> Iterator[StyledToken]:
    for token in tokens:
        if isinstance(token, Char) and token.text == "\t":
            for _ in range(tab_size):
                yield _SPACE
        else:
            yield token


def _fold(
    tokens: Iterator[StyledToken],
    max_width: int,
    fill_end: bool,
    memory: StyleMemory,
):
    """Yield physical lines from ``tokens``; the generator returns the final memory."""
    while True:
        parts = [memory.reopen()]
        width = 0
        exhausted = True
        for token in tokens:
            parts.append(token.text)
            if isinstance(token, Escape):
                memory = memory.apply(token)
                continue
            width += 1
            if width == max_width:
                if memory:
                    parts.append(RESET)
                exhausted = False
                break

        # Only style sequences left over: nothing visible to print.
        if width == 0:
            return memory
        if fill_end and width < max_width:
            parts.append(" " * (max_width - width))
        yield "".join(parts)
        if exhausted:
            return memory


def _check_arguments(max_width: int, tab_size: int) -> None:
    if max_width <= 0:
        raise InvalidWidth(f"wrap width must be positive, got {max_width}")
    if tab_size < 0:
        raise ValueError(f"tab size must be >= 0, got {tab_size}")


def wrap(
    text: str,
    max_width: int,
    tab_size: int = DEFAULT_TAB_SIZE,
    fill_end: bool = False,
) -> Iterator[str]:
    """Lazily wrap styled ``text`` into lines of at most ``max_width`` columns.

    Tabs become ``tab_size`` spaces. With ``fill_end`` every line is padded
    with spaces to exactly ``max_width`` columns.
    """
    _check_arguments(max_width, tab_size)
    tokens = _expand_tabs(tokenize(text), tab_size)
    return _fold(tokens, max_width, fill_end, EMPTY_STYLE)


def wrap_with_memory(
    text: str,
    max_width: int,
    tab_size: int = DEFAULT_TAB_SIZE,
    fill_end: bool = False,
    memory: StyleMemory = EMPTY_STYLE,
) -> tuple[list[str], StyleMemory]:
    """Wrap ``text`` starting from the styles in ``memory``.

    Returns the wrapped lines and the styles still open after the last token,
    which can be passed to the next call to continue the same styling.
    """
    _check_arguments(max_width, tab_size)
    folding = _fold(_expand_tabs(tokenize(text), tab_size), max_width, fill_end, memory)
    lines: list[str] = []
    while True:
        try:
            lines.append(next(folding))
        except StopIteration as stop:
            return lines, stop.value


__all__ = [
    "ESC",
    "RESET",
    "DEFAULT_TAB_SIZE",
    "sanitize_terminal_text",
    "Char",
    "Escape",
    "StyledToken",
    "StyleMemory",
    "EMPTY_STYLE",
    "tokenize",
    "visible_width",
    "wrap",
    "wrap_with_memory",
]
