"""Command-line front doors: ``cg`` searches, ``vg`` jumps to a result.

``cg`` runs ripgrep, prints every match with an ordinal, and stores the
matched locations. ``vg N`` opens the editor on the location stored for
ordinal ``N`` by the last ``cg`` run.
"""

from __future__ import annotations

import argparse
import logging
import os
import shutil
import sys
from typing import TextIO

from .config import STORE_KINDS, Settings, load_settings
from .editor import EditorError, editor_argv, editor_format, exec_editor, find_editor
from .errors import IndexOutOfRange, LoadIndexFormat, RgvgError
from .records import LineMatch, MatchRecord, StoredRecord, number_matches
from .render import render, render_record
from .search import RipgrepProcess, build_command
from .store import open_store
from .theme import available_theme_names, resolve_theme

LOG_ENV_VAR = "RGVG_LOG"
EXIT_INTERRUPTED = 130
EXIT_ERROR = 2

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Send log records to stderr at the level named by ``$RGVG_LOG``."""
    level_name = os.environ.get(LOG_ENV_VAR, "WARNING").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _nonnegative_int(value: str) -> int:
    """argparse type for integer values >= 0."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def _terminal_width() -> int:
    return max(1, shutil.get_terminal_size((80, 24)).columns)


def _use_color(mode: str, stream: TextIO) -> bool:
    if mode == "always":
        return True
    if mode == "never":
        return False
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _add_store_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-i", "--index-file", default=None, help="Path to the index file of the match store.")
    parser.add_argument("-m", "--match-file", default=None, help="Path to the data file of the match store.")
    parser.add_argument(
        "--store",
        choices=STORE_KINDS,
        default=None,
        help="Match store format (default: binary, or the config value).",
    )


def build_cg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cg",
        description="Find code using ripgrep and number every match for vg.",
    )
    _add_store_arguments(parser)
    parser.add_argument(
        "--batch",
        action="store_true",
        help="Buffer all results and align columns across them before printing.",
    )
    parser.add_argument(
        "--max-text-size",
        type=_positive_int,
        default=None,
        help="Replace matched lines longer than this with a truncation notice.",
    )
    parser.add_argument("--tab-size", type=_nonnegative_int, default=None, help="Spaces per tab (default: 8).")
    parser.add_argument(
        "--color",
        choices=("auto", "always", "never"),
        default="auto",
        help="When to emit ANSI colors.",
    )
    parser.add_argument(
        "--theme",
        default=None,
        help=f"Color theme ({', '.join(available_theme_names())}).",
    )
    parser.add_argument(
        "--syntax",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Syntax-highlight the unmatched part of each line.",
    )
    parser.add_argument(
        "rg",
        nargs=argparse.REMAINDER,
        help="Arguments passed to rg (prefix with -- when they start with a dash).",
    )
    return parser


def _discard_output(out: TextIO) -> None:
    """Point ``out`` at devnull so the interpreter's final flush cannot fail again."""
    try:
        fd = out.fileno()
    except (AttributeError, OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    try:
        os.dup2(devnull, fd)
    finally:
        os.close(devnull)


def _commit(store, collected: list[StoredRecord]) -> None:
    store.write(collected)
    logger.info("saved %d matches", len(collected))


def run_search(args: argparse.Namespace, settings: Settings, out: TextIO) -> int:
    """Run one search, print it, and store its matches; returns the exit status."""
    rg_args = list(args.rg)
    if rg_args and rg_args[0] == "--":
        rg_args = rg_args[1:]
    if not rg_args:
        raise RgvgError("missing rg arguments")

    kind = args.store or settings.store
    data_path, index_path = settings.store_paths(args.match_file, args.index_file, kind)
    store = open_store(kind, data_path, index_path)

    theme = resolve_theme(args.theme or settings.theme, no_color=not _use_color(args.color, out))
    max_text_size = args.max_text_size if args.max_text_size is not None else settings.max_text_size
    tab_size = args.tab_size if args.tab_size is not None else settings.tab_size
    syntax = settings.syntax if args.syntax is None else args.syntax
    width = _terminal_width()
    logger.debug("terminal is %d columns wide", width)

    collected: list[StoredRecord] = []
    buffered: list[tuple[MatchRecord, int]] = []
    options = dict(theme=theme, tab_size=tab_size, syntax=syntax)
    status = EXIT_ERROR
    started = False
    try:
        with RipgrepProcess(build_command(rg_args)) as search:
            started = True
            for record, ordinal in number_matches(search.records()):
                if isinstance(record, LineMatch):
                    collected.append(StoredRecord.from_match(record))
                if args.batch:
                    buffered.append((record, ordinal))
                    continue
                for line in render_record(record, ordinal, width, max_text_size, **options):
                    out.write(f"{line}\n")
        for line in render(buffered, width, max_text_size, **options):
            out.write(f"{line}\n")
        out.flush()
        status = search.returncode if search.returncode is not None else 0
    except KeyboardInterrupt:
        status = EXIT_INTERRUPTED
    except BrokenPipeError:
        # Output went to a pager or head that exited; keep what was collected.
        _discard_output(out)
        status = 0
    finally:
        if started:
            _commit(store, collected)
    return status


def cg_main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = build_cg_parser()
    args = parser.parse_args(argv)
    logger.debug("%r", args)
    try:
        return run_search(args, load_settings(), sys.stdout)
    except RgvgError as exc:
        sys.stderr.write(f"cg: {exc}\n")
        return EXIT_ERROR


def build_vg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vg",
        description=(
            "Edit code matching the previous cg search. The editor comes from --editor, "
            "the config file, or $EDITOR; vim, nvim, emacs, code and a few others are "
            "handled by default, use --format for any other."
        ),
    )
    parser.add_argument("selection", type=_nonnegative_int, help="Match number printed by cg.")
    parser.add_argument(
        "-f",
        "--format",
        default=None,
        help='Editor command template using {EDITOR}, {LINE} and {PATH}, e.g. "{EDITOR} +{LINE} {PATH}".',
    )
    parser.add_argument("-e", "--editor", default=None, help="Editor executable to run.")
    _add_store_arguments(parser)
    return parser


def vg_main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = build_vg_parser().parse_args(argv)
    logger.debug("%r", args)
    settings = load_settings()

    try:
        editor = find_editor(args.editor, settings.editor)
        template = editor_format(editor, args.format or settings.editor_format)
    except EditorError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    kind = args.store or settings.store
    data_path, index_path = settings.store_paths(args.match_file, args.index_file, kind)
    store = open_store(kind, data_path, index_path)
    if not store.exists():
        sys.stderr.write(f"Could not find state files {index_path} or {data_path}. Did you use vg without cg?\n")
        return 1

    try:
        record = store.read(args.selection)
    except (IndexOutOfRange, LoadIndexFormat) as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
    except RgvgError as exc:
        sys.stderr.write(f"vg: {exc}\n")
        return EXIT_ERROR

    argv_out = editor_argv(editor, template, record)
    logger.debug("command_args: %s", argv_out)
    try:
        exec_editor(argv_out)
    except OSError as exc:
        sys.stderr.write(f"vg: cannot run {argv_out[0]}: {exc}\n")
    return 1


def cg_entry() -> None:
    raise SystemExit(cg_main())


def vg_entry() -> None:
    raise SystemExit(vg_main())


if __name__ == "__main__":
    cg_entry()
