"""Rich renderables for the calendar grid."""

import math
from datetime import datetime
from typing import Dict, List, Optional

from rich import box
from rich.columns import Columns
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..view.grid import CalendarGrid, DayColumn
from ..view.layout import FIRST_HOUR, VISIBLE_HOURS, BookingBlock
from ..view.ranges import ViewMode

BAY_TITLES = {"1": "Bay 1", "2": "Bay 2"}

STATUS_STYLES = {
    "confirmed": "green",
    "pending": "yellow",
    "cancelled": "red dim",
    "canceled": "red dim",
}
PAYMENT_MARKS = {"paid": "✓", "unpaid": "$", "partially_paid": "½"}


def rows_covered(block: BookingBlock) -> int:
    """Number of hour rows a block reaches into, its own row included."""
    return max(1, math.ceil((block.top_percent + block.height_percent) / 100))


def format_block(block: BookingBlock) -> Text:
    booking = block.booking
    style = STATUS_STYLES.get(booking.status.lower(), "white")
    mark = PAYMENT_MARKS.get(booking.payment_status.lower(), "")

    text = Text()
    text.append(block.title, style=f"bold {style}")
    if mark:
        text.append(f" {mark}", style="dim")
    text.append(f"\n{booking.players_display} | {block.time_range}", style=style)
    if booking.notes:
        text.append(f"\n{booking.notes}", style="dim italic")
    return text


def bay_cells(hours: Dict[int, List[BookingBlock]]) -> Dict[int, Text]:
    """Text for every hour row of one bay, with continuation marks."""
    cells = {hour: Text() for hour in VISIBLE_HOURS}
    continued_until = FIRST_HOUR - 1

    for hour in VISIBLE_HOURS:
        blocks = hours.get(hour, [])
        for i, block in enumerate(blocks):
            if i:
                cells[hour].append("\n")
            cells[hour].append_text(format_block(block))
            continued_until = max(continued_until, hour + rows_covered(block) - 1)
        if not blocks and hour <= continued_until:
            cells[hour].append("┆", style="dim")

    return cells


def create_day_table(column: DayColumn, now: Optional[datetime] = None) -> Table:
    """Create the hour-by-bay table for one day."""
    table = Table(
        title=f"[bold cyan]{column.day.strftime('%a')} {column.key}[/bold cyan]",
        caption=f"[dim]{column.stats.summary}[/dim]",
        box=box.ROUNDED,
        header_style="bold white on blue",
        show_lines=True,
        expand=True,
    )
    table.add_column("Time", style="white", no_wrap=True, width=7)
    for bay in column.bays:
        table.add_column(BAY_TITLES.get(bay, f"Bay {bay}"), ratio=1)

    cells = {bay: bay_cells(hours) for bay, hours in column.bays.items()}

    for hour in VISIBLE_HOURS:
        label = f"{hour:02d}:00"
        style = None
        if hour == column.marker_row:
            label = f"▶ {now.strftime('%H:%M')}" if now else f"▶ {label}"
            style = "on grey23"
        table.add_row(label, *(cells[bay][hour] for bay in column.bays), style=style)

    return table


def create_grid_view(grid: CalendarGrid, now: Optional[datetime] = None) -> RenderableType:
    tables = [create_day_table(column, now) for column in grid.days]
    if len(tables) == 1:
        return tables[0]
    return Columns(tables, equal=True, expand=True)


def create_header(
    mode: ViewMode, grid: CalendarGrid, updated: Optional[datetime] = None
) -> Panel:
    lines = [
        f"🏌️ [bold cyan]BYGOLF Calendar[/bold cyan] · {mode.value}",
        f"📅 {grid.fetch_start.strftime('%a %b %d, %Y')} - {grid.fetch_end.strftime('%a %b %d, %Y')}",
        f"📋 {grid.booking_count} bookings in view",
    ]
    if updated:
        lines.append(f"[dim]Updated {updated.strftime('%H:%M:%S')}[/dim]")
    return Panel.fit("\n".join(lines), padding=(0, 2))


def create_live_view(
    mode: ViewMode,
    grid: CalendarGrid,
    now: datetime,
    error: Optional[Exception] = None,
    updated: Optional[datetime] = None,
) -> RenderableType:
    parts: List[RenderableType] = [create_header(mode, grid, updated)]
    if error is not None:
        parts.append(Panel(Text(str(error), style="red"), border_style="red", title="Error"))
    parts.append(create_grid_view(grid, now))
    return Group(*parts)
