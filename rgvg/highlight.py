"""Optional syntax coloring for the unmatched parts of a line.

Lexes one matched line with the Pygments lexer picked from the file name and
paints arbitrary character ranges of it with the terminal palette Pygments
uses for its own ``TerminalFormatter``.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import PurePath

from pygments.console import codes
from pygments.formatters.terminal import TERMINAL_COLORS
from pygments.lexers import get_lexer_for_filename
from pygments.token import Token
from pygments.util import ClassNotFound

from .ansi import RESET, sanitize_terminal_text

logger = logging.getLogger(__name__)


def _escape_for_attr(attr: str) -> str:
    """Translate a Pygments color spec (``*bold*``, ``_underline_``, name) to SGR."""
    out = ""
    if attr.startswith("*") and attr.endswith("*") and len(attr) > 1:
        out += codes["bold"]
        attr = attr[1:-1]
    if attr.startswith("_") and attr.endswith("_") and len(attr) > 1:
        out += codes["underline"]
        attr = attr[1:-1]
    if attr:
        out += codes.get(attr, "")
    return out


@lru_cache(maxsize=None)
def _style_for_token(ttype, dark_background: bool) -> str:
    colors = TERMINAL_COLORS.get(ttype)
    while colors is None:
        ttype = ttype.parent
        colors = TERMINAL_COLORS.get(ttype)
    return _escape_for_attr(colors[1] if dark_background else colors[0])


@lru_cache(maxsize=256)
def _lexer_for(filename: str):
    try:
        return get_lexer_for_filename(filename)
    except ClassNotFound:
        return None


class SyntaxPainter:
    """Paints slices of one line with per-token syntax colors.

    ``spans`` holds ``(start, end, style)`` character ranges covering the
    colored tokens of the line; uncolored text is left out.
    """

    def __init__(self, spans: list[tuple[int, int, str]], text: str) -> None:
        self.spans = spans
        self.text = text

    @classmethod
    def for_line(cls, text: str, path: str, dark_background: bool = True) -> "SyntaxPainter | None":
        lexer = _lexer_for(PurePath(path).name)
        if lexer is None:
            return None

        logger.debug("lexing %s with %s", path, lexer.name)
        spans: list[tuple[int, int, str]] = []
        for index, ttype, value in lexer.get_tokens_unprocessed(text):
            if not value or ttype in Token.Text.Whitespace:
                continue
            style = _style_for_token(ttype, dark_background)
            if style:
                spans.append((index, index + len(value), style))
        return cls(spans, text)

    def paint(self, start: int, end: int) -> str:
        out: list[str] = []
        cursor = start
        for span_start, span_end, style in self.spans:
            if span_end <= start or span_start >= end:
                continue
            lo = max(span_start, start)
            hi = min(span_end, end)
            if lo > cursor:
                out.append(sanitize_terminal_text(self.text[cursor:lo]))
            out.append(f"{style}{sanitize_terminal_text(self.text[lo:hi])}{RESET}")
            cursor = hi
        if cursor < end:
            out.append(sanitize_terminal_text(self.text[cursor:end]))
        return "".join(out)


__all__ = ["SyntaxPainter"]
