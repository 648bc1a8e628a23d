"""
Availability tables for the terminal.

Cells are produced as ANSI-styled strings and handed to rich via
Text.from_ansi, so column widths are measured on the visible glyphs while the
colors still come through in the output.
"""
from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from wheretowatch.config import TableMode
from wheretowatch.models import Provider, ReconciliationResult

CHECK = "✓"
CROSS = "✗"

ANSI_RESET = "\x1b[0m"
ANSI_GREEN = "\x1b[32m"
ANSI_RED = "\x1b[31m"
ANSI_DIM = "\x1b[2m"

SHOW_HEADER = "Show"
MIN_WIDTH = 20


def visible_width(value: str) -> int:
    """Terminal cell width of a string, ignoring ANSI escape sequences."""
    return Text.from_ansi(value).cell_len


def availability_cell(available: bool) -> str:
    if available:
        return f"{ANSI_GREEN}{CHECK}{ANSI_RESET}"
    return f"{ANSI_RED}{CROSS}{ANSI_RESET}"


@dataclass
class ReportRow:
    title: str
    available: list[bool]
    ended: bool = False

    def title_cell(self) -> str:
        if self.ended:
            return f"{self.title} {ANSI_DIM}(ended){ANSI_RESET}"
        return self.title


@dataclass
class RenderedTable:
    title: str
    headers: list[str]
    rows: list[ReportRow] = field(default_factory=list)

    def cells(self) -> list[list[str]]:
        """Every row as styled strings, header first."""
        lines = [list(self.headers)]
        for row in self.rows:
            lines.append([row.title_cell(), *(availability_cell(v) for v in row.available)])
        return lines

    def column_widths(self) -> list[int]:
        return [
            max(visible_width(line[i]) for line in self.cells())
            for i in range(len(self.headers))
        ]

    def render(self, color: bool = True) -> str:
        """Render as a boxed, fixed-width table."""
        table = Table(box=box.SQUARE, show_header=True, header_style="bold", pad_edge=True)
        for i, header in enumerate(self.headers):
            table.add_column(Text(header), justify="left" if i == 0 else "center", no_wrap=True)

        for line in self.cells()[1:]:
            table.add_row(*(Text.from_ansi(cell) for cell in line))

        # Content plus one space of padding each side and one border per column
        width = sum(self.column_widths()) + 3 * len(self.headers) + 1
        buffer = io.StringIO()
        console = Console(
            file=buffer,
            width=max(width, MIN_WIDTH),
            force_terminal=color,
            no_color=not color,
            color_system="standard" if color else None,
            legacy_windows=False,
            highlight=False,
        )
        console.print(table)
        return buffer.getvalue().rstrip("\n")


def combined_table(
    results: Sequence[ReconciliationResult],
    providers: Sequence[Provider],
    streamable_only: bool = False,
) -> RenderedTable:
    """One row per show, one ✓/✗ column per provider in configured order."""
    table = RenderedTable(
        title="Streaming availability",
        headers=[SHOW_HEADER, *(provider.name for provider in providers)],
    )
    for result in results:
        available = [result.show.has_provider(provider.id) for provider in providers]
        if streamable_only and not any(available):
            continue
        table.rows.append(ReportRow(title=result.show.title, available=available, ended=result.ended))
    return table


def provider_table(results: Sequence[ReconciliationResult], provider: Provider) -> RenderedTable:
    """Shows available on a single provider."""
    table = RenderedTable(title=f"Table for {provider.name}", headers=[SHOW_HEADER, provider.name])
    for result in results:
        if not result.show.has_provider(provider.id):
            continue
        table.rows.append(ReportRow(title=result.show.title, available=[True], ended=result.ended))
    return table


def build(
    results: Sequence[ReconciliationResult],
    providers: Sequence[Provider],
    mode: TableMode = TableMode.ALL,
) -> list[RenderedTable]:
    """Build the tables for the configured table mode."""
    mode = TableMode(mode)
    if mode is TableMode.PER_PROVIDER:
        return [provider_table(results, provider) for provider in providers]
    return [combined_table(results, providers, streamable_only=mode is TableMode.STREAMABLE)]
