"""Color palettes for match output.

Themes only cover the chrome drawn by rgvg (paths, ordinals, line numbers,
submatch highlights). Optional syntax colors come from Pygments and are
configured separately.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Theme:
    """Semantic ANSI palette used by the renderer."""

    name: str
    reset: str
    path: str
    ordinal: str
    line_number: str
    submatch: str
    truncated: str

    def paint(self, style: str, text: str) -> str:
        if not style:
            return text
        return f"{style}{text}{self.reset}"


DEFAULT_THEME = Theme(
    name="default",
    reset="\033[0m",
    path="\033[31m",
    ordinal="\033[36m",
    line_number="\033[95m",
    submatch="\033[1;34m",
    truncated="\033[31m",
)

BRIGHT_THEME = Theme(
    name="bright",
    reset="\033[0m",
    path="\033[1;38;5;203m",
    ordinal="\033[38;5;44m",
    line_number="\033[38;5;141m",
    submatch="\033[1;92m",
    truncated="\033[2;38;5;203m",
)

PLAIN_THEME = Theme(
    name="plain",
    reset="",
    path="",
    ordinal="",
    line_number="",
    submatch="",
    truncated="",
)

_THEMES: dict[str, Theme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    BRIGHT_THEME.name: BRIGHT_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    """Return selectable non-plain theme names."""
    return tuple(sorted(_THEMES.keys()))


def resolve_theme(name: str | None, *, no_color: bool = False) -> Theme:
    """Return concrete theme for requested name and color mode.

    Unknown names fall back to the default theme.
    """
    if no_color:
        return PLAIN_THEME
    if not name:
        return DEFAULT_THEME
    return _THEMES.get(str(name).strip().lower(), DEFAULT_THEME)


__all__ = [
    "Theme",
    "DEFAULT_THEME",
    "BRIGHT_THEME",
    "PLAIN_THEME",
    "available_theme_names",
    "resolve_theme",
]
