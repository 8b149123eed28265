from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

from .clock import Clock
from .models import Task, ViewKind, ViewSelector
from .storage import BlobStorage
from .store import TaskStore
from .timer import FocusTimer, TimerDisplay
from .transfer import import_bytes
from .views import DueGroup, group_by_due, project_tasks, view_counts

logger = logging.getLogger(__name__)

VIEW_KEY = "view"


@dataclass
class AppState:
    """Application root: the store, the active view and search, and the focus timer.

    Display outputs are recomputed from the current snapshot on every call.
    """

    store: TaskStore
    storage: BlobStorage | None = None
    clock: Clock = field(default_factory=Clock)
    timer: FocusTimer = field(default_factory=FocusTimer)
    view: ViewSelector = field(default_factory=ViewSelector)
    query: str = ""

    @classmethod
    def open(cls, storage: BlobStorage, clock: Clock | None = None, timer: FocusTimer | None = None) -> AppState:
        clock = clock or Clock()
        store = TaskStore.load(storage, clock=clock)
        raw_view = storage.load(VIEW_KEY, default=None)
        view = ViewSelector()
        if raw_view is not None:
            try:
                view = ViewSelector.model_validate(raw_view)
            except ValidationError:
                logger.warning("Ignoring unreadable stored view: %r", raw_view)
        return cls(store=store, storage=storage, clock=clock, timer=timer or FocusTimer(), view=view)

    def select_view(self, selector: ViewSelector) -> None:
        self.view = selector
        if self.storage is None:
            return
        try:
            self.storage.save(VIEW_KEY, selector.model_dump(mode="json"))
        except OSError:
            logger.error("Failed to persist selected view", exc_info=True)

    def set_query(self, query: str) -> None:
        self.query = query or ""

    def visible_tasks(self) -> list[Task]:
        return project_tasks(self.store.all(), self.view, self.query, self.clock.today())

    def grouped_tasks(self) -> list[DueGroup]:
        return group_by_due(self.visible_tasks())

    def counts(self) -> dict[ViewKind, int]:
        return view_counts(self.store.all(), self.clock.today())

    def timer_display(self) -> TimerDisplay:
        return self.timer.display()

    def import_tasks(self, data: bytes | str) -> int:
        """Replace the collection with an export. Raises InvalidImportError, leaving state alone."""
        tasks = import_bytes(data)
        self.store.replace_all(tasks)
        logger.info("Imported %d tasks", len(tasks))
        return len(tasks)
