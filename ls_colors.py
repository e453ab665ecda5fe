"""Extension colouring driven by the ``LS_COLORS`` environment variable."""

import functools
import os
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from rich.color import Color
from rich.style import Style


LS_COLORS_VAR = "LS_COLORS"

FOREGROUND = {30: "black", 31: "red", 32: "green", 33: "yellow", 34: "blue", 35: "magenta", 36: "cyan", 37: "white"}
BACKGROUND = {code + 10: name for code, name in FOREGROUND.items()}
ATTRIBUTES = {
    1: Style(bold=True),
    4: Style(underline=True),
    5: Style(blink=True),
    7: Style(reverse=True),
}
EXTENDED_FOREGROUND = 38
EXTENDED_BACKGROUND = 48


class ColorTable(BaseModel):
    """Maps a file extension to the SGR codes configured for it."""

    model_config = ConfigDict(frozen=True)

    rules: dict[str, tuple[str, ...]] = Field(default_factory=dict, description="extension -> SGR codes")

    @classmethod
    def parse(cls, value: str) -> "ColorTable":
        """Parse ``*.ext=code;code:...`` pairs.

        Only ``*.ext`` patterns are indexed, by the text after their last dot.
        Pairs without exactly one ``=`` are skipped; later pairs win.
        """
        rules = {}
        for pair in value.split(":"):
            parts = pair.split("=")
            if len(parts) != 2:
                continue

            pattern, codes = parts
            if not pattern.startswith("*."):
                continue

            rules[pattern[pattern.rfind(".") + 1:]] = tuple(codes.split(";"))

        return cls(rules=rules)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ColorTable":
        if environ is None:
            environ = os.environ

        value = environ.get(LS_COLORS_VAR)
        if value is None:
            return cls()
        return cls.parse(value)

    def lookup(self, extension: str) -> Optional[tuple[str, ...]]:
        return self.rules.get(extension)


@functools.lru_cache(maxsize=None)
def default_color_table() -> ColorTable:
    """Process-wide table, read from the environment on first use only."""
    return ColorTable.from_env()


def extension_of(filename: str) -> str:
    """Text after the last dot; the whole name when there is none."""
    return filename[filename.rfind(".") + 1:]


def _parse_code(code: str) -> Optional[int]:
    try:
        return int(code)
    except ValueError:
        return None


def apply_sgr_code(style: Style, code: str) -> Style:
    """Layer one SGR code on top of ``style``. Unknown codes change nothing."""
    number = _parse_code(code)
    if number in FOREGROUND:
        return style + Style(color=FOREGROUND[number])
    if number in BACKGROUND:
        return style + Style(bgcolor=BACKGROUND[number])
    if number in ATTRIBUTES:
        return style + ATTRIBUTES[number]
    return style


def apply_sgr_codes(style: Style, codes: Sequence[str]) -> Style:
    """Apply codes in order, treating ``38;5;N`` and ``48;5;N`` as one 256-colour code."""
    index = 0
    while index < len(codes):
        number = _parse_code(codes[index])
        if number in (EXTENDED_FOREGROUND, EXTENDED_BACKGROUND) and index + 2 < len(codes):
            if _parse_code(codes[index + 1]) == 5:
                color_number = _parse_code(codes[index + 2])
                if color_number is not None and 0 <= color_number <= 255:
                    color = Color.from_ansi(color_number)
                    if number == EXTENDED_FOREGROUND:
                        style = style + Style(color=color)
                    else:
                        style = style + Style(bgcolor=color)
                index += 3
                continue

        style = apply_sgr_code(style, codes[index])
        index += 1

    return style


def compute_color_for(table: ColorTable, style: Style, filename: str) -> Style:
    """Layer the extension rule for ``filename`` over ``style``.

    A matching rule always leaves the result bold. Without a rule the input
    style comes back unchanged.
    """
    codes = table.lookup(extension_of(filename))
    if codes is None:
        return style

    return apply_sgr_codes(style, codes) + Style(bold=True)
