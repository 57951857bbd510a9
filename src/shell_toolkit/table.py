"""Column-aligned text tables."""

import enum
from collections.abc import Callable, Sequence

import click


class Justification(enum.Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class TabularTextFormatter:
    """Pad each column to its widest cell.

    ``justification`` and ``padding`` are per-column callables taking the
    column index; the defaults are left-justified with two trailing spaces.
    """

    def __init__(
        self,
        rows: Sequence[Sequence[str]] = (),
        justification: Callable[[int], Justification] = lambda _: Justification.LEFT,
        padding: Callable[[int], int] = lambda _: 2,
    ):
        self.rows = [list(row) for row in rows]
        self.justification = justification
        self.padding = padding

    def column_widths(self) -> list[int]:
        widths: list[int] = []
        for row in self.rows:
            widths.extend([0] * (len(row) - len(widths)))
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(cell))
        return widths

    def format_rows(self) -> list[list[str]]:
        widths = self.column_widths()
        out = []
        for row in self.rows:
            padded = []
            for i, cell in enumerate(row):
                extra = widths[i] - len(cell)
                just = self.justification(i)
                if just is Justification.RIGHT:
                    text = " " * extra + cell
                elif just is Justification.CENTER:
                    left = extra // 2
                    text = " " * left + cell + " " * (extra - left)
                else:
                    text = cell + " " * extra
                padded.append(text + " " * self.padding(i))
            out.append(padded)
        return out

    def render(self, output_row: Callable[[int, list[str]], None] | None = None) -> None:
        """Emit each padded row; by default the joined row is echoed."""
        for index, row in enumerate(self.format_rows()):
            if output_row is None:
                click.echo("".join(row))
            else:
                output_row(index, row)
