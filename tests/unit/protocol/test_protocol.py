"""Tests for decoding ripgrep ``--json`` messages into records."""

from __future__ import annotations

import base64
import json
import unittest

from rgvg.errors import ProtocolDecodeError
from rgvg.protocol import decode_line, decode_lines, decode_message
from rgvg.records import Begin, End, LineMatch, Submatch, Summary, decode_text, encode_text

BEGIN = {"type": "begin", "data": {"path": {"text": "src/main.rs"}}}
MATCH = {
    "type": "match",
    "data": {
        "path": {"text": "src/main.rs"},
        "lines": {"text": "fn main() {\n"},
        "line_number": 3,
        "absolute_offset": 20,
        "submatches": [{"match": {"text": "main"}, "start": 3, "end": 7}],
    },
}
END = {
    "type": "end",
    "data": {
        "path": {"text": "src/main.rs"},
        "binary_offset": None,
        "stats": {"matched_lines": 1, "matches": 1},
    },
}
SUMMARY = {
    "type": "summary",
    "data": {
        "elapsed_total": {"human": "0.001s", "nanos": 1000000, "secs": 0},
        "stats": {
            "bytes_printed": 100,
            "bytes_searched": 200,
            "elapsed": {"human": "0.000035s", "nanos": 35000, "secs": 0},
            "matched_lines": 1,
            "matches": 1,
            "searches": 4,
            "searches_with_match": 1,
        },
    },
}


class DecodeMessageTests(unittest.TestCase):
    def test_decodes_each_message_kind(self) -> None:
        self.assertEqual(decode_message(BEGIN), Begin("src/main.rs"))
        self.assertEqual(decode_message(END), End("src/main.rs"))
        self.assertEqual(
            decode_message(MATCH),
            LineMatch(
                path="src/main.rs",
                text="fn main() {\n",
                line_number=3,
                submatches=(Submatch(3, 7, "main"),),
                absolute_offset=20,
            ),
        )

    def test_summary_stats(self) -> None:
        summary = decode_message(SUMMARY)
        self.assertIsInstance(summary, Summary)
        assert isinstance(summary, Summary)
        self.assertEqual(summary.stats.searches, 4)
        self.assertEqual(summary.stats.searches_with_match, 1)
        self.assertAlmostEqual(summary.stats.elapsed_seconds, 35e-6)

    def test_base64_bytes_are_decoded(self) -> None:
        payload = {
            "type": "begin",
            "data": {"path": {"bytes": base64.b64encode(b"bad\xffname").decode("ascii")}},
        }
        self.assertEqual(decode_message(payload), Begin(decode_text(b"bad\xffname")))

    def test_context_messages_are_ignored(self) -> None:
        self.assertIsNone(decode_message({"type": "context", "data": {}}))

    def test_malformed_messages_fail(self) -> None:
        bad_payloads = [
            [],
            {"type": "warning", "data": {}},
            {"type": "begin"},
            {"type": "begin", "data": {"path": "src/main.rs"}},
            {"type": "match", "data": {**MATCH["data"], "line_number": -1}},
            {"type": "match", "data": {**MATCH["data"], "line_number": None}},
            {"type": "match", "data": {**MATCH["data"], "submatches": "3-7"}},
            {"type": "match", "data": {**MATCH["data"], "lines": {}}},
        ]
        for payload in bad_payloads:
            with self.subTest(payload=payload):
                with self.assertRaises(ProtocolDecodeError):
                    decode_message(payload)


class DecodeLineTests(unittest.TestCase):
    def test_invalid_json_fails(self) -> None:
        with self.assertRaises(ProtocolDecodeError):
            decode_line("{not json")

    def test_non_utf8_line_keeps_its_bytes(self) -> None:
        payload = {
            "type": "match",
            "data": {
                "path": {"bytes": base64.b64encode(b"latin\xe9.txt").decode("ascii")},
                "lines": {"bytes": base64.b64encode(b"caf\xe9 match\n").decode("ascii")},
                "line_number": 2,
                "absolute_offset": 0,
                "submatches": [{"match": {"text": "match"}, "start": 5, "end": 10}],
            },
        }

        record = decode_line(json.dumps(payload))

        assert isinstance(record, LineMatch)
        self.assertEqual(encode_text(record.text), b"caf\xe9 match\n")
        self.assertEqual(encode_text(record.text)[5:10], b"match")
        self.assertEqual(encode_text(record.path), b"latin\xe9.txt")

    def test_stream_skips_blank_lines_and_context(self) -> None:
        lines = [
            json.dumps(BEGIN) + "\n",
            "\n",
            json.dumps({"type": "context", "data": {}}) + "\n",
            json.dumps(MATCH) + "\n",
            json.dumps(END) + "\n",
        ]
        kinds = [type(record).__name__ for record in decode_lines(lines)]
        self.assertEqual(kinds, ["Begin", "LineMatch", "End"])


if __name__ == "__main__":
    unittest.main()
