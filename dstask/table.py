"""Fixed-width coloured tables for terminal output."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Iterable, TextIO

from wcwidth import wcwidth

from .constants import (
    BG_DEFAULT_1,
    BG_DEFAULT_2,
    FG_DEFAULT,
    FG_NOTE,
    MODE_DEFAULT,
    MODE_HEADER,
    NOTE_MODE_KEYWORD,
    TABLE_COL_GAP,
    TABLE_MAX_WIDTH,
)


@dataclass(frozen=True)
class RowStyle:
    """ANSI mode and xterm-256 colours of a row; 0 means the default."""

    mode: int = 0
    fg: int = 0
    bg: int = 0


def _char_width(char: str) -> int:
    return max(wcwidth(char), 0)


def _display_width(text: str) -> int:
    return sum(_char_width(char) for char in text)


def _truncate(text: str, width: int, tail: str) -> str:
    limit = width - _display_width(tail)
    used = 0
    kept = []
    for char in text:
        char_width = _char_width(char)
        if used + char_width > limit:
            break
        used += char_width
        kept.append(char)
    return "".join(kept) + tail


def fix_str(text: str, width: int) -> str:
    """Pad or truncate the first line of text to the given display width."""
    text = text.split("\n")[0]
    padding = width - _display_width(text)
    if padding >= 0:
        return text + " " * padding
    return _truncate(text, width, " ")


class Table:
    """A table whose rows are rendered with per-row colours."""

    def __init__(self, width: int, *header: str) -> None:
        self.width = min(width, TABLE_MAX_WIDTH)
        self.header = list(header)
        self.rows: list[list[str]] = []
        self.row_styles: list[RowStyle] = [RowStyle(mode=MODE_HEADER)]

    def add_row(self, row: Iterable[str], style: RowStyle | None = None) -> None:
        row = list(row)
        if len(row) != len(self.header):
            raise ValueError("Row is incorrect length")
        self.rows.append(row)
        self.row_styles.append(style if style is not None else RowStyle())

    def _column_widths(self) -> list[int]:
        widths = [0] * len(self.header)
        for row in self.rows:
            for index, cell in enumerate(row):
                widths[index] = max(widths[index], len(cell.encode("utf-8")))

        budget = self.width - TABLE_COL_GAP * (len(self.header) - 1)
        while widths and sum(widths) > budget:
            widest = widths.index(max(widths))
            if widths[widest] == 0:
                break
            widths[widest] -= 1
        return widths

    def render_lines(self) -> list[str]:
        """Return the rendered header and rows, one ANSI-styled string each."""
        widths = self._column_widths()
        marker = f" {NOTE_MODE_KEYWORD} "
        lines = []

        for index, (row, style) in enumerate(
            zip([self.header, *self.rows], self.row_styles)
        ):
            mode = style.mode or MODE_DEFAULT
            fg = style.fg or FG_DEFAULT
            bg = style.bg or (BG_DEFAULT_1 if index % 2 else BG_DEFAULT_2)

            cells = []
            for cell, width in zip(row, widths):
                trimmed = fix_str(cell, width)
                # show notes faded, then restore the row's colour
                if marker in trimmed:
                    trimmed = fix_str(cell, width + 2).replace(
                        marker, f"\033[38;5;{FG_NOTE}m ", 1
                    ) + f"\033[38;5;{fg}m"
                cells.append(trimmed)

            line = (" " * TABLE_COL_GAP).join(cells)
            lines.append(f"\033[{mode};38;5;{fg};48;5;{bg}m{line}\033[0m")
        return lines

    def render(self, stream: TextIO | None = None) -> None:
        out = stream if stream is not None else sys.stdout
        for line in self.render_lines():
            out.write(line + "\n")