from __future__ import annotations

import logging
import time
from datetime import date, timedelta
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import get_settings
from .logging_setup import setup_logging
from .models import Priority, Recur, Task, TaskDraft, TaskPatch, ViewKind, ViewSelector
from .state import AppState
from .storage import JsonFileStorage
from .timer import FocusTimer, TimerDurations, TimerMode, format_clock, run_timer
from .transfer import InvalidImportError, export_bytes, export_filename
from .views import all_labels, all_projects, view_title

app = typer.Typer(help="MyDo: tasks, views and a focus timer")
console = Console()
logger = logging.getLogger(__name__)

SHORT_ID = 8


def _open_state() -> AppState:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    timer = FocusTimer(
        TimerDurations(
            work_seconds=settings.work_minutes * 60,
            break_seconds=settings.break_minutes * 60,
        )
    )
    return AppState.open(JsonFileStorage(settings.data_dir), timer=timer)


def _parse_due(value: str | None, today: date) -> date | None:
    if not value:
        return None
    lowered = value.strip().lower()
    if lowered == "today":
        return today
    if lowered == "tomorrow":
        return today + timedelta(days=1)
    if lowered.endswith("d") and lowered[:-1].isdigit():
        return today + timedelta(days=int(lowered[:-1]))
    try:
        return date.fromisoformat(lowered)
    except ValueError as exc:
        raise ValueError("Due date must be YYYY-MM-DD, today, tomorrow or Nd, e.g. 3d") from exc


def _due_option(value: str | None, today: date) -> date | None:
    try:
        return _parse_due(value, today)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--due") from exc


def _require_task(state: AppState, ref: str) -> Task:
    task = state.store.resolve(ref)
    if task is None:
        console.print(f"No task matches '{escape(ref)}'")
        raise typer.Exit(code=1)
    return task


def _task_table(tasks: list[Task], today: date) -> Table:
    table = Table(show_header=True, header_style="bold", expand=False)
    table.add_column("ID", no_wrap=True)
    table.add_column("", no_wrap=True)
    table.add_column("Title")
    table.add_column("Project")
    table.add_column("Labels")
    table.add_column("Priority")
    table.add_column("Due")
    for task in tasks:
        mark = "x" if task.completed else " "
        due = task.due.isoformat() if task.due else ""
        if task.due and task.due < today and not task.completed:
            due = f"[red]{due}[/red]"
        if task.recur != Recur.NONE:
            due = f"{due} ({task.recur.value})"
        table.add_row(
            task.id[:SHORT_ID],
            escape(f"[{mark}]"),
            escape(task.title),
            escape(task.project or ""),
            escape(", ".join(f"#{label}" for label in task.labels)),
            task.priority.value,
            due,
        )
    return table


@app.command()
def add(
    title: str = typer.Argument(..., help="Task title"),
    notes: str | None = typer.Option(None, "--notes", help="Free-text notes"),
    project: str | None = typer.Option(None, "--project", help="Project name"),
    label: list[str] = typer.Option(None, "--label", help="Label (repeatable)"),
    priority: Priority = typer.Option(Priority.LOW, "--priority", case_sensitive=False),
    due: str | None = typer.Option(None, "--due", help="YYYY-MM-DD, today, tomorrow or Nd"),
    recur: Recur = typer.Option(Recur.NONE, "--recur", case_sensitive=False),
) -> None:
    """Capture a new task."""
    state = _open_state()
    draft = TaskDraft(
        title=title,
        notes=notes,
        project=project,
        labels=label or [],
        priority=priority,
        due=_due_option(due, state.clock.today()),
        recur=recur,
    )
    task = state.store.add(draft)
    if task is None:
        console.print("A task needs a non-empty title.")
        raise typer.Exit(code=1)
    console.print(f"Added {task.id[:SHORT_ID]}: {escape(task.title)}")


@app.command("list")
def list_tasks(
    view: ViewKind | None = typer.Argument(None, help="View to show; defaults to the last one used"),
    key: str | None = typer.Option(None, "--key", help="Project or label name for project/label views"),
    search: str = typer.Option("", "--search", "-s", help="Case-insensitive text filter"),
) -> None:
    """Show a view, grouped by due date."""
    if view is None and key is not None:
        raise typer.BadParameter("--key needs a project or label view argument", param_hint="--key")
    state = _open_state()
    if view is not None:
        try:
            state.select_view(ViewSelector(kind=view, key=key))
        except ValidationError as exc:
            raise typer.BadParameter(f"The {view.value} view needs --key", param_hint="--key") from exc
    state.set_query(search)

    today = state.clock.today()
    console.print(f"[bold]{escape(view_title(state.view))}[/bold]")
    groups = state.grouped_tasks()
    if not groups:
        console.print("Nothing here.")
        return
    for group in groups:
        console.print(f"\n{group.label}")
        console.print(_task_table(group.tasks, today))


@app.command()
def done(ref: str = typer.Argument(..., help="Task id or id prefix")) -> None:
    """Toggle completion. Completing a recurring task schedules the next one."""
    state = _open_state()
    task = _require_task(state, ref)
    known = {item.id for item in state.store}
    updated = state.store.toggle_complete(task.id)
    if updated is None:
        raise typer.Exit(code=1)
    verb = "Completed" if updated.completed else "Reopened"
    console.print(f"{verb} {task.id[:SHORT_ID]}: {escape(task.title)}")
    for spawned in state.store:
        if spawned.id not in known:
            console.print(f"Next occurrence {spawned.id[:SHORT_ID]} due {spawned.due.isoformat()}")


@app.command("rm")
def remove(ref: str = typer.Argument(..., help="Task id or id prefix")) -> None:
    """Delete a task permanently."""
    state = _open_state()
    task = _require_task(state, ref)
    state.store.remove(task.id)
    console.print(f"Removed {task.id[:SHORT_ID]}: {escape(task.title)}")


@app.command()
def archive(ref: str = typer.Argument(..., help="Task id or id prefix")) -> None:
    """Move a task to the archive."""
    state = _open_state()
    task = _require_task(state, ref)
    state.store.archive(task.id)
    console.print(f"Archived {task.id[:SHORT_ID]}: {escape(task.title)}")


@app.command()
def edit(
    ref: str = typer.Argument(..., help="Task id or id prefix"),
    title: str | None = typer.Option(None, "--title"),
    notes: str | None = typer.Option(None, "--notes"),
    project: str | None = typer.Option(None, "--project"),
    label: list[str] = typer.Option(None, "--label", help="Replace labels (repeatable)"),
    priority: Priority | None = typer.Option(None, "--priority", case_sensitive=False),
    due: str | None = typer.Option(None, "--due", help="YYYY-MM-DD, today, tomorrow or Nd"),
    clear_due: bool = typer.Option(False, "--clear-due", help="Remove the due date"),
    clear_labels: bool = typer.Option(False, "--clear-labels", help="Remove all labels"),
    clear_notes: bool = typer.Option(False, "--clear-notes", help="Remove the notes"),
    recur: Recur | None = typer.Option(None, "--recur", case_sensitive=False),
    unarchive: bool = typer.Option(False, "--unarchive", help="Bring an archived task back"),
    reset: bool = typer.Option(False, "--reset", help="Clear both completion and archive state"),
) -> None:
    """Change fields of a task. Only the options given are applied."""
    state = _open_state()
    task = _require_task(state, ref)
    changes: dict = {}
    if title is not None:
        changes["title"] = title
    if clear_notes:
        changes["notes"] = None
    elif notes is not None:
        changes["notes"] = notes or None
    if project is not None:
        changes["project"] = project or None
    if clear_labels:
        changes["labels"] = []
    elif label:
        changes["labels"] = label
    if priority is not None:
        changes["priority"] = priority
    if clear_due:
        changes["due"] = None
    elif due is not None:
        changes["due"] = _due_option(due, state.clock.today())
    if recur is not None:
        changes["recur"] = recur
    if unarchive or reset:
        changes["archived"] = False
    if reset:
        changes["completed_at"] = None
    if not changes:
        console.print("Nothing to change.")
        return
    updated = state.store.edit(task.id, TaskPatch(**changes))
    if updated is None:
        raise typer.Exit(code=1)
    console.print(f"Updated {task.id[:SHORT_ID]}: {escape(updated.title)}")


@app.command("complete-today")
def complete_today() -> None:
    """Complete every open task due today or overdue."""
    state = _open_state()
    count = state.store.bulk_complete_today()
    console.print(f"Completed {count} task(s).")


@app.command()
def counts() -> None:
    """Show how many tasks each view holds."""
    state = _open_state()
    for kind, count in state.counts().items():
        console.print(f"{kind.value}: {count}")


@app.command()
def projects() -> None:
    """List project names in use."""
    state = _open_state()
    names = all_projects(state.store.all())
    if not names:
        console.print("No projects yet")
    for name in names:
        console.print(escape(name))


@app.command()
def labels() -> None:
    """List labels in use."""
    state = _open_state()
    names = all_labels(state.store.all())
    if not names:
        console.print("No labels yet")
    for name in names:
        console.print(escape(f"#{name}"))


@app.command("export")
def export_tasks(
    output: Path | None = typer.Option(None, "--output", "-o", help="Target file; defaults to mydo-<date>.json"),
) -> None:
    """Write every task to a JSON export."""
    state = _open_state()
    target = output or Path(export_filename(state.clock.today()))
    target.write_bytes(export_bytes(state.store.all()))
    console.print(f"Exported {len(state.store)} task(s) to: {target}")


@app.command("import")
def import_tasks(path: Path = typer.Argument(..., help="Export file to load")) -> None:
    """Replace all tasks with the contents of an export file."""
    state = _open_state()
    try:
        count = state.import_tasks(path.read_bytes())
    except OSError as exc:
        raise typer.BadParameter(f"Cannot read {path}: {exc}") from exc
    except InvalidImportError as exc:
        console.print(f"Invalid file: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    console.print(f"Imported {count} task(s).")


@app.command()
def clear(yes: bool = typer.Option(False, "--yes", help="Skip confirmation")) -> None:
    """Delete all tasks."""
    if not yes:
        typer.confirm("This will delete all tasks", abort=True)
    state = _open_state()
    state.store.clear()
    console.print("All tasks deleted.")


@app.command()
def focus(
    work: int | None = typer.Option(None, "--work", help="Work minutes"),
    break_: int | None = typer.Option(None, "--break", help="Break minutes"),
    task: str | None = typer.Option(None, "--task", help="Bind the timer to a task id or prefix"),
    ticks: int | None = typer.Option(None, "--ticks", help="Stop after this many seconds"),
) -> None:
    """Run the focus timer in the foreground. Ctrl-C pauses and exits."""
    state = _open_state()
    timer = state.timer
    if work is not None or break_ is not None:
        work_seconds = work * 60 if work is not None else timer.durations.work_seconds
        break_seconds = break_ * 60 if break_ is not None else timer.durations.break_seconds
        try:
            timer.configure(work_seconds, break_seconds)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        timer.reset()
    if task is not None:
        bound = _require_task(state, task)
        timer.bind(bound.id)
        console.print(f"Focusing on {bound.id[:SHORT_ID]}: {escape(bound.title)}")

    def _status_text() -> str:
        shown = timer.display()
        return f"{shown.mode.value.upper()} {shown.clock}"

    timer.start()
    with console.status(_status_text()) as status:

        def _on_tick(current: FocusTimer, switched: bool) -> None:
            status.update(_status_text())
            if switched:
                phase = "Break time" if current.mode == TimerMode.BREAK else "Back to work"
                console.print(f"{phase}: {format_clock(current.seconds_remaining)}")

        try:
            run_timer(timer, sleep=time.sleep, on_tick=_on_tick, max_ticks=ticks)
        except KeyboardInterrupt:
            logger.debug("Focus timer interrupted")
        finally:
            timer.pause()
    console.print(f"Paused at {_status_text()}")


if __name__ == "__main__":
    app()
