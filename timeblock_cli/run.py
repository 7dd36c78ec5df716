# -*- coding: utf-8 -*-
import logging
import sys
import typing as t
from datetime import date

import click
from rich.panel import Panel
from rich.table import Table

from calendar_core.app_state import TimeBlockApp, create_app
from calendar_core.config import load_settings
from calendar_core.date_utils import (
    date_key,
    parse_date_key,
    quarter_slots,
)
from calendar_core.drag_drop import day_zone, hour_zone, quarter_zone
from calendar_core.walkthrough import WalkthroughStep
from timeblock_cli.utils import (
    console,
    day_header,
    month_table,
    notes_table,
    print_notices,
    tasks_table,
    time_range,
    truncate_title,
)
from timeblock_server.errors import TimeBlockError

logger = logging.getLogger(__name__)

# The first-run panel is shown once; the tour itself stays available
HINT_SHOWN_FLAG = "timeblock_walkthrough_hinted"


def _fail(message: str) -> t.NoReturn:
    console.print(f"[red]Error:[/red] {message}")
    raise SystemExit(1)


def _parse_day(value: str) -> date:
    try:
        return parse_date_key(value)
    except ValueError:
        _fail(f"'{value}' is not a date in YYYY-MM-DD form.")


def _app(ctx: click.Context) -> TimeBlockApp:
    """Build the app once per invocation and offer the walkthrough on first use."""
    if "app" not in ctx.obj:
        try:
            app = create_app(ctx.obj["settings"])
        except TimeBlockError as e:
            _fail(str(e))
        app.start()
        flags = app.walkthrough.flags
        if app.walkthrough.active and flags.get(HINT_SHOWN_FLAG) is None:
            _print_step(app.walkthrough.current, len(app.walkthrough.steps))
            console.print("[dim]Run 'timeblock tour' for the full walkthrough or 'timeblock tour --skip'.[/dim]")
            try:
                flags.set(HINT_SHOWN_FLAG, "true")
            except OSError as e:
                logger.warning("Could not record the walkthrough hint: %s", e)
        ctx.obj["app"] = app
    return ctx.obj["app"]


def _print_step(step: WalkthroughStep, total: int) -> None:
    console.print(
        Panel.fit(
            f"[bold]{step.title}[/bold]\n{step.content}",
            title=f"Step {step.id} of {total}",
            border_style="cyan",
        )
    )


def _finish(app: TimeBlockApp, ok: bool = True) -> None:
    print_notices(app.drain_notices())
    if not ok:
        raise SystemExit(1)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """TimeBlock: capture notes, then drag them into your calendar."""
    try:
        settings = load_settings()
    except RuntimeError as e:
        _fail(str(e))
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@main.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8004, show_default=True, type=int)
def serve(host: str, port: int) -> None:
    """Run the TimeBlock REST service."""
    import uvicorn

    uvicorn.run("services.timeblock_service.app:app", host=host, port=port)


@main.command()
@click.pass_context
def notes(ctx: click.Context) -> None:
    """Show the notes drawer."""
    app = _app(ctx)
    try:
        drawer_notes = app.drawer_notes()
    except TimeBlockError as e:
        _fail(str(e))
    if not drawer_notes:
        console.print("[dim]No notes yet. Capture one with 'timeblock add'.[/dim]")
        return
    console.print(notes_table(drawer_notes))


@main.command()
@click.argument("title")
@click.option("--description", "-d", default="", help="Optional details.")
@click.option(
    "--priority", "-p",
    type=click.Choice(["low", "medium", "high"]),
    default="medium",
    show_default=True,
)
@click.pass_context
def add(ctx: click.Context, title: str, description: str, priority: str) -> None:
    """Capture a new note in the drawer."""
    app = _app(ctx)
    app.drawer.open_composer()
    app.drawer.draft.title = title
    app.drawer.draft.description = description
    app.drawer.draft.priority = priority
    note = app.drawer.submit()
    if note is not None:
        console.print(f"[green]✓[/green] {truncate_title(note.title)} [dim]({note.id})[/dim]")
    _finish(app, ok=note is not None)


@main.command()
@click.argument("item_id")
@click.option("--task", "is_task", is_flag=True, help="ITEM_ID is a task, not a note.")
@click.pass_context
def done(ctx: click.Context, item_id: str, is_task: bool) -> None:
    """Toggle a note (or task) between open and completed."""
    app = _app(ctx)
    try:
        if is_task:
            task = app.planner.find_task(item_id)
            if task is None:
                _fail(f"Task not found: {item_id}")
            updated = app.planner.toggle_task_complete(task)
        else:
            note = app.planner.find_note(item_id)
            if note is None:
                _fail(f"Note not found: {item_id}")
            updated = app.drawer.toggle_complete(note)
    except TimeBlockError as e:
        _fail(str(e))
    if updated is not None:
        state = "completed" if updated.completed else "open"
        console.print(f"{truncate_title(updated.title)} is now [bold]{state}[/bold].")
    _finish(app, ok=updated is not None)


@main.command()
@click.argument("item_id")
@click.option("--task", "is_task", is_flag=True, help="ITEM_ID is a task, not a note.")
@click.pass_context
def rm(ctx: click.Context, item_id: str, is_task: bool) -> None:
    """Delete a note (or task)."""
    app = _app(ctx)
    if is_task:
        try:
            app.planner.delete_task(item_id)
        except TimeBlockError as e:
            _fail(str(e))
        console.print(f"Deleted task {item_id}.")
        return
    try:
        note = app.planner.find_note(item_id)
    except TimeBlockError as e:
        _fail(str(e))
    if note is None:
        _fail(f"Note not found: {item_id}")
    ok = app.drawer.delete(note)
    if ok:
        console.print(f"Deleted note {item_id}.")
    _finish(app, ok=ok)


@main.command()
@click.argument("month", required=False)
@click.pass_context
def month(ctx: click.Context, month: t.Optional[str]) -> None:
    """Show the month grid (MONTH as YYYY-MM, default: this month)."""
    app = _app(ctx)
    if month:
        app.show_month(_parse_day(f"{month}-01"))
    try:
        cells = app.month_cells()
    except TimeBlockError as e:
        _fail(str(e))
    console.print(month_table(app.navigator.visible_month, cells))


@main.command()
@click.argument("day", required=False)
@click.pass_context
def day(ctx: click.Context, day: t.Optional[str]) -> None:
    """Show one day: its timeline and unscheduled tasks."""
    app = _app(ctx)
    selected = _parse_day(day) if day else app.today()
    app.click_date(selected)
    try:
        scheduled = app.planner.scheduled_tasks(selected)
        unscheduled = app.planner.unscheduled_tasks(selected)
    except TimeBlockError as e:
        _fail(str(e))
    console.print(day_header(selected))
    if scheduled:
        console.print(tasks_table("⏰ Timeline", scheduled))
    else:
        console.print("[dim]Nothing on the timeline. Drop a note into an hour with 'timeblock schedule'.[/dim]")
    if unscheduled:
        console.print(tasks_table("📌 Unscheduled", unscheduled))


@main.command()
@click.argument("day")
@click.argument("hour", type=click.IntRange(0, 23))
@click.pass_context
def hour(ctx: click.Context, day: str, hour: int) -> None:
    """Show the four 15-minute blocks of one hour."""
    app = _app(ctx)
    selected = _parse_day(day)
    app.click_date(selected)
    app.click_hour(hour)

    table = Table(
        title=f"{app.navigator.title()}",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Slot", style="yellow")
    table.add_column("Task", style="white")
    table.add_column("Until", style="dim")
    try:
        for quarter, slot in enumerate(quarter_slots(hour)):
            task = app.planner.task_for_quarter(selected, hour, quarter)
            if task is None:
                table.add_row(slot, "[dim]free[/dim]", "")
            else:
                table.add_row(slot, truncate_title(task.title), time_range(task))
    except TimeBlockError as e:
        _fail(str(e))
    console.print(table)


def _drop_zone_id(app: TimeBlockApp, selected: date, hour: t.Optional[int], quarter: t.Optional[int]) -> str:
    """Open the view that owns the target zone and return its id."""
    key = date_key(selected)
    if hour is None:
        if quarter is not None:
            _fail("--quarter needs --hour.")
        app.show_month(selected)
        return day_zone(key).zone_id
    app.click_date(selected)
    if quarter is None:
        return hour_zone(key, hour).zone_id
    app.click_hour(hour)
    return quarter_zone(key, hour, quarter).zone_id


@main.command()
@click.argument("note_id")
@click.argument("day")
@click.option("--hour", type=click.IntRange(0, 23), help="Drop into this hour (60 minute block).")
@click.option("--quarter", type=click.IntRange(0, 3), help="With --hour: drop into this 15 minute block.")
@click.pass_context
def schedule(ctx: click.Context, note_id: str, day: str, hour: t.Optional[int], quarter: t.Optional[int]) -> None:
    """Drag a note onto DAY, optionally at an hour and quarter."""
    app = _app(ctx)
    selected = _parse_day(day)
    zone_id = _drop_zone_id(app, selected, hour, quarter)
    try:
        started = app.drag_note(note_id)
    except TimeBlockError as e:
        _fail(str(e))
    if not started:
        note = app.planner.find_note(note_id)
        if note is not None and note.completed:
            console.print("[yellow]Completed notes cannot be scheduled.[/yellow]")
        _finish(app, ok=False)
    app.enter_zone(zone_id)
    task = app.drop_on(zone_id)
    if task is not None:
        where = time_range(task) if task.start_time else "unscheduled"
        console.print(f"[green]✓[/green] {truncate_title(task.title)} on {task.date} [dim]({where}, {task.id})[/dim]")
    _finish(app, ok=task is not None)


@main.command()
@click.argument("task_id")
@click.argument("day")
@click.option("--hour", type=click.IntRange(0, 23), help="Move into this hour.")
@click.option("--quarter", type=click.IntRange(0, 3), help="With --hour: move into this 15 minute block.")
@click.pass_context
def move(ctx: click.Context, task_id: str, day: str, hour: t.Optional[int], quarter: t.Optional[int]) -> None:
    """Move a task to another day, hour or quarter."""
    app = _app(ctx)
    selected = _parse_day(day)
    if hour is None:
        if quarter is not None:
            _fail("--quarter needs --hour.")
        # Month view does not drag tasks; unscheduling goes straight through the planner
        try:
            task = app.planner.find_task(task_id)
            if task is None:
                _fail(f"Task not found: {task_id}")
            moved = app.planner.reschedule_task(task, day_zone(date_key(selected)))
        except TimeBlockError as e:
            _fail(str(e))
        console.print(f"[green]✓[/green] {truncate_title(moved.title)} moved to {moved.date} (unscheduled)")
        _finish(app)
        return

    zone_id = _drop_zone_id(app, selected, hour, quarter)
    try:
        started = app.drag_task(task_id)
    except TimeBlockError as e:
        _fail(str(e))
    if not started:
        _finish(app, ok=False)
    app.enter_zone(zone_id)
    moved = app.drop_on(zone_id)
    if moved is not None:
        console.print(f"[green]✓[/green] {truncate_title(moved.title)} moved to {moved.date} {time_range(moved)}")
    _finish(app, ok=moved is not None)


@main.command()
@click.option("--skip", is_flag=True, help="Mark the walkthrough as done without showing it.")
@click.pass_context
def tour(ctx: click.Context, skip: bool) -> None:
    """Show the onboarding walkthrough."""
    try:
        app = create_app(ctx.obj["settings"])
    except TimeBlockError as e:
        _fail(str(e))
    walkthrough = app.walkthrough
    if skip:
        walkthrough.skip()
        console.print("[dim]Walkthrough skipped.[/dim]")
        return
    walkthrough.start()
    total = len(walkthrough.steps)
    while walkthrough.active:
        _print_step(walkthrough.current, total)
        walkthrough.next()
    console.print("[green]All set![/green] Start with 'timeblock add'.")


if __name__ == "__main__":
    main()
