from __future__ import annotations

import logging
import uuid
from typing import Iterable, Iterator

from pydantic import ValidationError

from .clock import Clock
from .models import Recur, Task, TaskDraft, TaskPatch
from .recurrence import next_occurrence
from .storage import BlobStorage

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"


def _new_id() -> str:
    return str(uuid.uuid4())


class TaskStore:
    """The task collection and every mutation allowed on it.

    Order of the collection is the order tasks are persisted and exported in;
    display order is the View Engine's business. Each mutation is written to
    ``storage`` right after the in-memory change. Unknown ids are ignored.
    """

    def __init__(
        self,
        tasks: Iterable[Task] | None = None,
        storage: BlobStorage | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._tasks: list[Task] = list(tasks or [])
        self.storage = storage
        self.clock = clock or Clock()

    @classmethod
    def load(cls, storage: BlobStorage, clock: Clock | None = None) -> TaskStore:
        raw = storage.load(TASKS_KEY, default=[])
        tasks: list[Task] = []
        if not isinstance(raw, list):
            logger.warning("Stored task collection is not a list; starting empty")
            raw = []
        for item in raw:
            try:
                tasks.append(Task.model_validate(item))
            except ValidationError:
                logger.warning("Skipping unreadable stored task: %r", item, exc_info=True)
        logger.debug("Loaded %d tasks", len(tasks))
        return cls(tasks, storage=storage, clock=clock)

    # ---- queries ----

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks))

    def all(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def resolve(self, ref: str) -> Task | None:
        """Find a task by full id or by an unambiguous id prefix."""
        ref = ref.strip()
        if not ref:
            return None
        exact = self.get(ref)
        if exact:
            return exact
        matches = [task for task in self._tasks if task.id.startswith(ref)]
        return matches[0] if len(matches) == 1 else None

    def _index(self, task_id: str) -> int | None:
        for position, task in enumerate(self._tasks):
            if task.id == task_id:
                return position
        return None

    # ---- mutations ----

    def add(self, draft: TaskDraft) -> Task | None:
        title = draft.title.strip()
        if not title:
            logger.debug("Rejected draft with empty title")
            return None
        task = Task(
            **draft.model_dump(exclude={"title"}),
            title=title,
            id=_new_id(),
            created_at=self.clock.now(),
        )
        self._tasks.insert(0, task)
        logger.debug("Added task %s", task.id)
        self._persist()
        return task

    def toggle_complete(self, task_id: str) -> Task | None:
        position = self._index(task_id)
        if position is None:
            return None
        task = self._tasks[position]
        if task.completed:
            updated = task.model_copy(update={"completed_at": None})
            self._tasks[position] = updated
            logger.debug("Reopened task %s", task_id)
        else:
            updated = task.model_copy(update={"completed_at": self.clock.now()})
            self._tasks[position] = updated
            logger.debug("Completed task %s", task_id)
            if task.recur != Recur.NONE:
                sibling = self._spawn_next(task)
                self._tasks.insert(position + 1, sibling)
                logger.debug("Task %s recurs as %s due %s", task_id, sibling.id, sibling.due)
        self._persist()
        return updated

    def _spawn_next(self, task: Task) -> Task:
        base = task.due or self.clock.today()
        return task.model_copy(
            update={
                "id": _new_id(),
                "created_at": self.clock.now(),
                "completed_at": None,
                "due": next_occurrence(base, task.recur),
            }
        )

    def remove(self, task_id: str) -> bool:
        position = self._index(task_id)
        if position is None:
            return False
        del self._tasks[position]
        logger.debug("Removed task %s", task_id)
        self._persist()
        return True

    def archive(self, task_id: str) -> Task | None:
        return self._replace(task_id, {"archived": True})

    def edit(self, task_id: str, patch: TaskPatch) -> Task | None:
        changes = patch.changes()
        if "title" in changes:
            title = (changes["title"] or "").strip()
            if title:
                changes["title"] = title
            else:
                del changes["title"]
        return self._replace(task_id, changes)

    def _replace(self, task_id: str, changes: dict) -> Task | None:
        position = self._index(task_id)
        if position is None:
            return None
        current = self._tasks[position]
        merged = {**current.model_dump(), **changes}
        updated = Task.model_validate(merged)
        self._tasks[position] = updated
        logger.debug("Updated task %s fields=%s", task_id, sorted(changes))
        self._persist()
        return updated

    def bulk_complete_today(self) -> int:
        """Complete every open task due today or earlier. Recurrence is not applied."""
        today = self.clock.today()
        now = self.clock.now()
        count = 0
        for position, task in enumerate(self._tasks):
            if task.completed or task.due is None or task.due > today:
                continue
            self._tasks[position] = task.model_copy(update={"completed_at": now})
            count += 1
        if count:
            logger.debug("Bulk completed %d tasks", count)
            self._persist()
        return count

    def replace_all(self, tasks: Iterable[Task]) -> None:
        self._tasks = list(tasks)
        logger.debug("Replaced collection with %d tasks", len(self._tasks))
        self._persist()

    def clear(self) -> None:
        self.replace_all([])

    # ---- persistence ----

    def to_records(self) -> list[dict]:
        return [task.to_record() for task in self._tasks]

    def _persist(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.save(TASKS_KEY, self.to_records())
        except OSError:
            logger.error("Failed to persist %d tasks; keeping in-memory state", len(self._tasks), exc_info=True)
