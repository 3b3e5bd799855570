"""Persistent JSON config and default store locations.

Settings live in ``config.json`` under the platform config directory; the
match store defaults to the platform state directory. All access is
defensive: malformed or missing config falls back to defaults.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir, user_state_dir

from .ansi import DEFAULT_TAB_SIZE

APP_NAME = "rgvg"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
STATE_DIR = Path(user_state_dir(APP_NAME, appauthor=False))

DEFAULT_MATCH_FILE = STATE_DIR / "matches.data"
DEFAULT_INDEX_FILE = STATE_DIR / "matches.idx"
DEFAULT_TEXT_FILE = STATE_DIR / "matches.txt"
STORE_KINDS = ("binary", "text")


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def expand_path(value: str | Path) -> Path:
    """Expand ``~`` and ``$VARS`` the way a shell would for a single word."""
    return Path(os.path.expanduser(os.path.expandvars(str(value))))


def _string(data: dict[str, object], key: str) -> str | None:
    value = data.get(key)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _positive_int(data: dict[str, object], key: str) -> int | None:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return None
    return value


def _nonnegative_int(data: dict[str, object], key: str) -> int | None:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


@dataclass(frozen=True)
class Settings:
    """Effective settings after config file values are validated."""

    match_file: Path | None = None
    index_file: Path | None = None
    store: str = "binary"
    tab_size: int = DEFAULT_TAB_SIZE
    max_text_size: int | None = None
    theme: str | None = None
    syntax: bool = False
    editor: str | None = None
    editor_format: str | None = None

    def store_paths(
        self,
        match_file: str | None = None,
        index_file: str | None = None,
        store: str | None = None,
    ) -> tuple[Path, Path]:
        """Resolve data and index paths; explicit arguments win over config."""
        kind = store or self.store
        data_default = DEFAULT_TEXT_FILE if kind == "text" else DEFAULT_MATCH_FILE
        data = match_file or self.match_file or data_default
        index = index_file or self.index_file or DEFAULT_INDEX_FILE
        return expand_path(data), expand_path(index)


def load_settings() -> Settings:
    """Build ``Settings`` from the config file, dropping invalid entries."""
    data = load_config()
    match_file = _string(data, "match_file")
    index_file = _string(data, "index_file")
    store = _string(data, "store")
    tab_size = _nonnegative_int(data, "tab_size")
    syntax = data.get("syntax")
    return Settings(
        match_file=expand_path(match_file) if match_file else None,
        index_file=expand_path(index_file) if index_file else None,
        store=store if store in STORE_KINDS else "binary",
        tab_size=DEFAULT_TAB_SIZE if tab_size is None else tab_size,
        max_text_size=_positive_int(data, "max_text_size"),
        theme=_string(data, "theme"),
        syntax=syntax if isinstance(syntax, bool) else False,
        editor=_string(data, "editor"),
        editor_format=_string(data, "editor_format"),
    )


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "DEFAULT_INDEX_FILE",
    "DEFAULT_MATCH_FILE",
    "DEFAULT_TEXT_FILE",
    "STORE_KINDS",
    "Settings",
    "expand_path",
    "load_config",
    "load_settings",
]
