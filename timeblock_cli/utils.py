"""Rendering helpers for the TimeBlock command line."""
import typing as t
from datetime import date

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from calendar_core.date_utils import WEEKDAY_LABELS, end_time, format_date, format_month_year
from calendar_core.notices import Notice
from timeblock_server.models import Note, Task

console = Console()

PRIORITY_STYLES = {"high": "red", "medium": "yellow", "low": "green"}


def truncate_title(title: str, max_length: int = 45) -> str:
    """Truncate title to max_length characters, adding ellipsis if needed."""
    if len(title) <= max_length:
        return title
    return title[:max_length-3] + "..."


def priority_text(priority: str) -> str:
    style = PRIORITY_STYLES.get(priority, "white")
    return f"[{style}]{priority}[/{style}]"


def time_range(task: Task) -> str:
    if task.start_time is None:
        return "-"
    return f"{task.start_time} → {end_time(task.start_time, task.duration)}"


def notes_table(notes: list[Note]) -> Table:
    """Create a table of drawer notes."""
    table = Table(title=f"🗒️  Notes ({len(notes)})", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="white")
    table.add_column("Priority")
    table.add_column("Done", justify="center", width=4)
    for note in notes:
        title = truncate_title(note.title)
        if note.completed:
            title = f"[strike dim]{title}[/strike dim]"
        table.add_row(note.id, title, priority_text(note.priority), "✓" if note.completed else "")
    return table


def tasks_table(title: str, tasks: list[Task]) -> Table:
    """Create a table of tasks with their time blocks."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Time", style="yellow")
    table.add_column("Title", style="white")
    table.add_column("Priority")
    table.add_column("Done", justify="center", width=4)
    for task in tasks:
        table.add_row(
            task.id,
            time_range(task),
            truncate_title(task.title),
            priority_text(task.priority),
            "✓" if task.completed else "",
        )
    return table


def month_table(month: date, cells: list[tuple[date, bool, list[Task]]]) -> Table:
    """Render the 6x7 month grid; each cell shows the day and its task count."""
    table = Table(title=f"📅 {format_month_year(month)}", show_header=True, header_style="bold cyan")
    for label in WEEKDAY_LABELS:
        table.add_column(label, justify="center", width=7)
    for row_start in range(0, len(cells), 7):
        row = []
        for day, in_month, tasks in cells[row_start:row_start + 7]:
            text = str(day.day)
            if tasks:
                text += f"\n[bold yellow]{len(tasks)}●[/bold yellow]"
            if not in_month:
                text = f"[dim]{text}[/dim]"
            if day == date.today():
                text = f"[reverse]{text}[/reverse]"
            row.append(text)
        table.add_row(*row)
    return table


def print_notices(notices: t.Iterable[Notice]) -> None:
    """Show toast notices as small panels."""
    for notice in notices:
        style = "red" if notice.variant == "destructive" else "green"
        body = f"[bold]{notice.title}[/bold]"
        if notice.description:
            body += f"\n{notice.description}"
        console.print(Panel.fit(body, border_style=style))


def day_header(day: date) -> Panel:
    return Panel.fit(f"[bold blue]{format_date(day)}[/bold blue]", border_style="blue")
