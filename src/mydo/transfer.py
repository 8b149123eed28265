from __future__ import annotations

import json
from datetime import date
from typing import Any, Iterable

from pydantic import ValidationError

from .models import Task

EXPORT_VERSION = 1


class InvalidImportError(ValueError):
    """Raised when an import payload is not a task export."""


def export_filename(today: date) -> str:
    return f"mydo-{today.isoformat()}.json"


def export_document(tasks: Iterable[Task]) -> dict[str, Any]:
    return {"v": EXPORT_VERSION, "tasks": [task.to_record() for task in tasks]}


def export_bytes(tasks: Iterable[Task]) -> bytes:
    return json.dumps(export_document(tasks), indent=2, ensure_ascii=False).encode("utf-8")


def _extract_records(payload: Any) -> list[Any]:
    if isinstance(payload, dict) and isinstance(payload.get("tasks"), list):
        return payload["tasks"]
    # Exports older than the versioned wrapper were a bare list.
    if isinstance(payload, list):
        return payload
    raise InvalidImportError("Expected an object with a 'tasks' array or a bare array of tasks")


def parse_tasks(payload: Any) -> list[Task]:
    records = _extract_records(payload)
    tasks: list[Task] = []
    seen: set[str] = set()
    for position, record in enumerate(records):
        try:
            task = Task.model_validate(record)
        except ValidationError as exc:
            raise InvalidImportError(f"Task #{position + 1} is invalid: {exc.error_count()} error(s)") from exc
        if task.id in seen:
            raise InvalidImportError(f"Duplicate task id: {task.id}")
        seen.add(task.id)
        tasks.append(task)
    return tasks


def import_bytes(data: bytes | str) -> list[Task]:
    try:
        payload = json.loads(data)
    except ValueError as exc:
        raise InvalidImportError(f"Not valid JSON: {exc}") from exc
    return parse_tasks(payload)
