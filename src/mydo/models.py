from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Priority(str, Enum):
    LOW = "Low"
    MED = "Med"
    HIGH = "High"
    URGENT = "Urgent"

    @property
    def rank(self) -> int:
        return PRIORITY_ORDER.index(self)


PRIORITY_ORDER = [Priority.LOW, Priority.MED, Priority.HIGH, Priority.URGENT]


class Recur(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ViewKind(str, Enum):
    INBOX = "inbox"
    TODAY = "today"
    UPCOMING = "upcoming"
    PROJECT = "project"
    LABEL = "label"
    COMPLETED = "completed"
    ARCHIVE = "archive"


KEYED_VIEWS = {ViewKind.PROJECT, ViewKind.LABEL}


def _collapse_labels(value: list[str] | None) -> list[str]:
    if isinstance(value, str):
        raise ValueError("labels must be a list")
    seen: list[str] = []
    for label in value or []:
        if not isinstance(label, str):
            raise ValueError("labels must be strings")
        label = label.strip()
        if label and label not in seen:
            seen.append(label)
    return seen


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Task(_Record):
    id: str
    title: str
    notes: str | None = None
    project: str | None = None
    labels: list[str] = Field(default_factory=list)
    priority: Priority = Priority.LOW
    due: date | None = None
    recur: Recur = Recur.NONE
    created_at: datetime = Field(alias="createdAt")
    completed_at: datetime | None = Field(default=None, alias="completedAt")
    archived: bool = False

    @field_validator("labels", mode="before")
    @classmethod
    def _labels(cls, value: list[str] | None) -> list[str]:
        return _collapse_labels(value)

    @field_validator("priority", "recur", "due", mode="before")
    @classmethod
    def _blank_is_unset(cls, value, info):
        # Older exports store "" for unset select fields.
        if value == "" or value is None:
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("created_at", "completed_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def completed(self) -> bool:
        return self.completed_at is not None

    def to_record(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class TaskDraft(_Record):
    """Fields a user may supply when capturing a task."""

    title: str = ""
    notes: str | None = None
    project: str | None = None
    labels: list[str] = Field(default_factory=list)
    priority: Priority = Priority.LOW
    due: date | None = None
    recur: Recur = Recur.NONE

    @field_validator("labels", mode="before")
    @classmethod
    def _labels(cls, value: list[str] | None) -> list[str]:
        return _collapse_labels(value)


NON_NULL_FIELDS = ("title", "labels", "priority", "recur", "archived")


class TaskPatch(_Record):
    """A partial update. Only fields explicitly set are applied."""

    title: str | None = None
    notes: str | None = None
    project: str | None = None
    labels: list[str] | None = None
    priority: Priority | None = None
    due: date | None = None
    recur: Recur | None = None
    completed_at: datetime | None = Field(default=None, alias="completedAt")
    archived: bool | None = None

    @field_validator("labels", mode="before")
    @classmethod
    def _labels(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return _collapse_labels(value)

    def changes(self) -> dict:
        changes = self.model_dump(exclude_unset=True)
        # These fields have no "unset" state on a task; None means "leave alone".
        for name in NON_NULL_FIELDS:
            if changes.get(name, "") is None:
                del changes[name]
        return changes


class ViewSelector(_Record):
    kind: ViewKind = ViewKind.TODAY
    key: str | None = None

    @model_validator(mode="after")
    def _key_required(self) -> ViewSelector:
        if self.kind in KEYED_VIEWS and not self.key:
            raise ValueError(f"A {self.kind.value} view needs a key")
        if self.kind not in KEYED_VIEWS:
            self.key = None
        return self
