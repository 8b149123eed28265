from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable

from .models import Task, ViewKind, ViewSelector

UPCOMING_DAYS = 7
NO_DUE_LABEL = "No due date"

COUNTED_VIEWS = [
    ViewKind.INBOX,
    ViewKind.TODAY,
    ViewKind.UPCOMING,
    ViewKind.COMPLETED,
    ViewKind.ARCHIVE,
]

VIEW_TITLES = {
    ViewKind.INBOX: "Inbox",
    ViewKind.TODAY: "Today",
    ViewKind.UPCOMING: "Upcoming (7 days)",
    ViewKind.COMPLETED: "Completed",
    ViewKind.ARCHIVE: "Archive",
}


@dataclass
class DueGroup:
    due: date | None
    tasks: list[Task] = field(default_factory=list)

    @property
    def label(self) -> str:
        if self.due is None:
            return NO_DUE_LABEL
        return self.due.strftime("%a %b %d %Y")


def search_text(task: Task) -> str:
    parts = [task.title, task.notes, task.project, *task.labels]
    return " ".join(part for part in parts if part).lower()


def matches_query(task: Task, query: str) -> bool:
    if not query:
        return True
    return query.lower() in search_text(task)


def is_due_today(task: Task, today: date) -> bool:
    """Due today or overdue."""
    return task.due is not None and task.due <= today


def is_upcoming(task: Task, today: date, days: int = UPCOMING_DAYS) -> bool:
    return task.due is not None and today <= task.due <= today + timedelta(days=days)


def matches_kind(task: Task, selector: ViewSelector, today: date) -> bool:
    kind = selector.kind
    if kind == ViewKind.COMPLETED:
        return task.completed
    if kind == ViewKind.ARCHIVE:
        return task.archived
    if task.completed:
        return False
    if kind == ViewKind.INBOX:
        return True
    if kind == ViewKind.TODAY:
        return is_due_today(task, today)
    if kind == ViewKind.UPCOMING:
        return is_upcoming(task, today)
    if kind == ViewKind.PROJECT:
        return task.project == selector.key
    if kind == ViewKind.LABEL:
        return selector.key in task.labels
    return False


def sort_key(task: Task) -> tuple[int, date, int, datetime]:
    # Missing due dates sort after every real date.
    return (
        1 if task.due is None else 0,
        task.due or date.max,
        -task.priority.rank,
        task.created_at,
    )


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=sort_key)


def filter_tasks(tasks: Iterable[Task], selector: ViewSelector, query: str, today: date) -> list[Task]:
    tasks = list(tasks)
    if selector.kind != ViewKind.ARCHIVE:
        tasks = [task for task in tasks if not task.archived]
    if query:
        tasks = [task for task in tasks if matches_query(task, query)]
    return [task for task in tasks if matches_kind(task, selector, today)]


def project_tasks(
    tasks: Iterable[Task],
    selector: ViewSelector,
    query: str = "",
    today: date | None = None,
) -> list[Task]:
    """Filter, then order tasks for a view.

    Archived tasks only appear in the archive view. Ordering is due date
    ascending (no due date last), then priority descending, then creation
    time ascending.
    """
    today = today or date.today()
    return sort_tasks(filter_tasks(tasks, selector, query, today))


def group_by_due(tasks: Iterable[Task]) -> list[DueGroup]:
    groups: dict[date | None, DueGroup] = {}
    for task in tasks:
        groups.setdefault(task.due, DueGroup(due=task.due)).tasks.append(task)
    return sorted(groups.values(), key=lambda group: (group.due is None, group.due or date.max))


def view_counts(tasks: Iterable[Task], today: date | None = None) -> dict[ViewKind, int]:
    today = today or date.today()
    tasks = list(tasks)
    return {
        kind: len(filter_tasks(tasks, ViewSelector(kind=kind), "", today))
        for kind in COUNTED_VIEWS
    }


def all_projects(tasks: Iterable[Task]) -> list[str]:
    return sorted({task.project for task in tasks if task.project})


def all_labels(tasks: Iterable[Task]) -> list[str]:
    return sorted({label for task in tasks for label in task.labels})


def view_title(selector: ViewSelector) -> str:
    if selector.kind == ViewKind.PROJECT:
        return f"Project: {selector.key}"
    if selector.kind == ViewKind.LABEL:
        return f"#{selector.key}"
    return VIEW_TITLES[selector.kind]
