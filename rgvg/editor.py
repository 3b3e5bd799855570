"""Editor command resolution for ``vg``.

A command template uses the placeholders ``{EDITOR}``, ``{LINE}`` and
``{PATH}``. Well-known editors have built-in templates; anything else needs
an explicit one.
"""

from __future__ import annotations

import os
import shlex
import shutil
from pathlib import PurePath

from .errors import RgvgError
from .records import StoredRecord

PLUS_LINE_FORMAT = "{EDITOR} +{LINE} {PATH}"
GOTO_FORMAT = "{EDITOR} -g {PATH}:{LINE}"
COLON_FORMAT = "{EDITOR} {PATH}:{LINE}"

EDITOR_FORMATS: dict[str, str] = {
    "vim": PLUS_LINE_FORMAT,
    "vi": PLUS_LINE_FORMAT,
    "nvim": PLUS_LINE_FORMAT,
    "emacs": PLUS_LINE_FORMAT,
    "nano": PLUS_LINE_FORMAT,
    "hx": COLON_FORMAT,
    "kak": PLUS_LINE_FORMAT,
    "code": GOTO_FORMAT,
    "codium": GOTO_FORMAT,
    "subl": COLON_FORMAT,
}


class EditorError(RgvgError):
    """Raised when no usable editor command can be built."""


def find_editor(explicit: str | None = None, configured: str | None = None) -> str:
    """Return the editor from the flag, the config, or ``$EDITOR``, in that order."""
    editor = explicit or configured or os.environ.get("EDITOR")
    if not editor:
        raise EditorError(
            "Failed to find an editor. Check the content of your $EDITOR environment "
            "variable or use the command line option `--editor`."
        )
    if shutil.which(editor) is None:
        raise EditorError(f"Could not find editor ($EDITOR={editor}) in path.")
    return editor


def editor_format(editor: str, explicit: str | None = None) -> str:
    if explicit:
        return explicit
    name = PurePath(editor).name
    try:
        return EDITOR_FORMATS[name]
    except KeyError:
        raise EditorError(f"No rule for editor: {name!r}. You can use the `--format` option.") from None


def editor_argv(editor: str, template: str, record: StoredRecord) -> list[str]:
    """Split ``template`` into argv and fill in the placeholders per word.

    Substituting after splitting keeps paths with spaces in one argument.
    """
    replacements = {
        "{EDITOR}": editor,
        "{LINE}": str(record.line_number),
        "{PATH}": record.path,
    }
    argv: list[str] = []
    for word in shlex.split(template):
        for placeholder, value in replacements.items():
            word = word.replace(placeholder, value)
        argv.append(word)
    if not argv:
        raise EditorError("editor format is empty")
    return argv


def exec_editor(argv: list[str]) -> None:
    """Replace the current process with the editor; only returns by raising."""
    os.execvp(argv[0], argv)


__all__ = [
    "PLUS_LINE_FORMAT",
    "GOTO_FORMAT",
    "COLON_FORMAT",
    "EDITOR_FORMATS",
    "EditorError",
    "find_editor",
    "editor_format",
    "editor_argv",
    "exec_editor",
]
