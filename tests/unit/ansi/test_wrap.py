"""Tests for ANSI tokenizing and styled line wrapping.

Covers column accounting with invisible escape sequences, style carry-over
at fold points, tab expansion, and padding of short lines.
"""

from __future__ import annotations

import unittest

from rgvg.ansi import (
    EMPTY_STYLE,
    RESET,
    Char,
    Escape,
    StyleMemory,
    sanitize_terminal_text,
    tokenize,
    visible_width,
    wrap,
    wrap_with_memory,
)
from rgvg.errors import IncompleteEscapeError, InvalidWidth

BLUE = "\x1b[34m"


class TokenizeTests(unittest.TestCase):
    def test_escape_sequences_are_single_tokens(self) -> None:
        tokens = list(tokenize("\x1b[1;4;34mabz\x1b[0m"))
        self.assertEqual(
            tokens,
            [Escape("\x1b[1;4;34m"), Char("a"), Char("b"), Char("z"), Escape("\x1b[0m")],
        )

    def test_tokenize_restarts_on_each_call(self) -> None:
        text = f"{BLUE}ab{RESET}"
        self.assertEqual(list(tokenize(text)), list(tokenize(text)))

    def test_tabs_are_plain_characters(self) -> None:
        self.assertEqual(list(tokenize("\tx")), [Char("\t"), Char("x")])

    def test_truncated_escape_is_a_decode_error(self) -> None:
        tokens = tokenize("ab\x1b[31")
        self.assertEqual(next(tokens), Char("a"))
        self.assertEqual(next(tokens), Char("b"))
        with self.assertRaises(IncompleteEscapeError):
            next(tokens)

    def test_visible_width_ignores_escapes(self) -> None:
        self.assertEqual(visible_width("\x1b[31mab\x1b[0mc"), 3)
        self.assertEqual(visible_width(""), 0)


class WrapPlainTextTests(unittest.TestCase):
    def test_simple_cases(self) -> None:
        self.assertEqual(list(wrap("1234567890abc", 5, 0, False)), ["12345", "67890", "abc"])
        self.assertEqual(list(wrap("1234567890abc", 15, 0, False)), ["1234567890abc"])

    def test_plain_text_rejoins_and_respects_width(self) -> None:
        texts = ["", "a", "hello world", "x" * 17, "line with some spaces   ", "0123456789" * 3]
        for text in texts:
            for width in (1, 2, 3, 7, 10, 40):
                with self.subTest(text=text, width=width):
                    lines = list(wrap(text, width, 4, False))
                    self.assertEqual("".join(lines), text)
                    for line in lines[:-1]:
                        self.assertEqual(len(line), width)
                    if lines:
                        self.assertLessEqual(len(lines[-1]), width)
                        self.assertGreater(len(lines[-1]), 0)

    def test_tabs_expand_to_tab_size_spaces(self) -> None:
        lines = list(wrap("\taaaaaaaabbbbbbbb", 8, 8, False))
        self.assertEqual(lines, ["        ", "aaaaaaaa", "bbbbbbbb"])

    def test_zero_tab_size_drops_tabs(self) -> None:
        self.assertEqual(list(wrap("a\tb", 5, 0, False)), ["ab"])

    def test_fill_end_pads_every_short_line(self) -> None:
        self.assertEqual(list(wrap("abc", 5, 0, True)), ["abc  "])
        self.assertEqual(list(wrap("1234567", 5, 0, True)), ["12345", "67   "])

    def test_empty_text_yields_no_lines(self) -> None:
        self.assertEqual(list(wrap("", 5)), [])
        self.assertEqual(list(wrap("", 5, fill_end=True)), [])

    def test_non_positive_width_is_rejected_eagerly(self) -> None:
        with self.assertRaises(InvalidWidth):
            wrap("abc", 0)
        with self.assertRaises(InvalidWidth):
            wrap("abc", -3)

    def test_negative_tab_size_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            wrap("abc", 3, -1)


class WrapStyledTextTests(unittest.TestCase):
    def test_single_color_is_reopened_and_closed_on_every_line(self) -> None:
        blue = f"{BLUE}aaaaabbbbbzzzzz{RESET}"
        self.assertEqual(
            list(wrap(blue, 5, 8, False)),
            [f"{BLUE}aaaaa{RESET}", f"{BLUE}bbbbb{RESET}", f"{BLUE}zzzzz{RESET}"],
        )

    def test_combined_sgr_sequence_is_carried(self) -> None:
        style = "\x1b[1;4;34m"
        lines = list(wrap(f"{style}aaaaabbbbbzzzzz{RESET}", 5, 8, False))
        self.assertEqual(lines, [f"{style}aaaaa{RESET}", f"{style}bbbbb{RESET}", f"{style}zzzzz{RESET}"])

    def test_nested_styles_reopen_in_order(self) -> None:
        underline = "\x1b[4m"
        white = "\x1b[37m"
        red = "\x1b[31m"
        text = (
            f"{underline}{BLUE}aaaaa{RESET}"
            f"{underline}{white}bbbbb{RESET}"
            f"{underline}{red}zzzzz{RESET}"
        )
        self.assertEqual(
            list(wrap(text, 5, 8, False)),
            [
                f"{underline}{BLUE}aaaaa{RESET}",
                f"{underline}{BLUE}{RESET}{underline}{white}bbbbb{RESET}",
                f"{underline}{white}{RESET}{underline}{red}zzzzz{RESET}",
            ],
        )

    def test_style_closed_in_text_is_not_reopened(self) -> None:
        text = f"{BLUE}abc{RESET}defgh"
        self.assertEqual(list(wrap(text, 4, 0, False)), [f"{BLUE}abc{RESET}d", "efgh"])

    def test_partial_last_line_keeps_the_text_reset(self) -> None:
        text = f"{BLUE}aaaaabb{RESET}"
        self.assertEqual(list(wrap(text, 5, 0, False)), [f"{BLUE}aaaaa{RESET}", f"{BLUE}bb{RESET}"])

    def test_escape_only_text_yields_no_lines(self) -> None:
        self.assertEqual(list(wrap(f"\x1b[31m{RESET}", 5)), [])
        self.assertEqual(list(wrap("\x1b[31m", 5, fill_end=True)), [])

    def test_fill_end_pads_after_styled_text(self) -> None:
        lines = list(wrap(f"{BLUE}ab{RESET}", 4, 0, True))
        self.assertEqual(lines, [f"{BLUE}ab{RESET}  "])
        self.assertEqual(visible_width(lines[0]), 4)

    def test_truncated_escape_raises_while_wrapping(self) -> None:
        with self.assertRaises(IncompleteEscapeError):
            list(wrap("abc\x1b[3", 2))


class StyleMemoryTests(unittest.TestCase):
    def test_reset_clears_memory(self) -> None:
        memory = EMPTY_STYLE.apply(Escape(BLUE)).apply(Escape("\x1b[1m"))
        self.assertEqual(memory.sequences, (BLUE, "\x1b[1m"))
        self.assertFalse(memory.apply(Escape(RESET)))

    def test_reopened_sequence_moves_to_the_end(self) -> None:
        red = "\x1b[31m"
        memory = StyleMemory().apply(Escape(BLUE)).apply(Escape(red)).apply(Escape(BLUE))
        self.assertEqual(memory.sequences, (red, BLUE))
        self.assertEqual(memory.reopen(), f"{red}{BLUE}")

    def test_wrap_with_memory_returns_open_styles(self) -> None:
        green = "\x1b[32m"
        lines, memory = wrap_with_memory(f"{green}abcdef", 3)
        self.assertEqual(lines, [f"{green}abc{RESET}", f"{green}def{RESET}"])
        self.assertEqual(memory.sequences, (green,))

        more, memory = wrap_with_memory("gh", 3, memory=memory)
        self.assertEqual(more, [f"{green}gh"])
        self.assertEqual(memory.sequences, (green,))

    def test_wrap_with_memory_sees_trailing_reset(self) -> None:
        lines, memory = wrap_with_memory(f"{BLUE}abc{RESET}", 3)
        self.assertEqual(lines, [f"{BLUE}abc{RESET}"])
        self.assertEqual(memory, EMPTY_STYLE)


class SanitizeTests(unittest.TestCase):
    def test_control_bytes_are_escaped_but_tabs_kept(self) -> None:
        self.assertEqual(sanitize_terminal_text("a\x1bb\tc\x07"), "a\\x1bb\tc\\x07")

    def test_clean_text_is_returned_unchanged(self) -> None:
        self.assertEqual(sanitize_terminal_text("plain text"), "plain text")

    def test_undecodable_bytes_are_shown_as_hex(self) -> None:
        self.assertEqual(sanitize_terminal_text("caf\udce9 \udcff"), "caf\\xe9 \\xff")


if __name__ == "__main__":
    unittest.main()
