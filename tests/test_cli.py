import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from mydo.cli import app
from mydo.storage import read_json

runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch) -> Path:
    target = tmp_path / "data"
    monkeypatch.setenv("MYDO_DATA_DIR", str(target))
    monkeypatch.setenv("MYDO_LOG_LEVEL", "WARNING")
    return target


def _stored_tasks(data_dir: Path) -> list[dict]:
    return read_json(data_dir / "tasks.json")


def test_help_lists_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "focus" in result.stdout
    assert "complete-today" in result.stdout


def test_add_and_list(data_dir: Path):
    result = runner.invoke(app, ["add", "Buy milk", "--due", "today", "--label", "errand", "--priority", "high"])
    assert result.exit_code == 0, result.stdout
    assert "Added" in result.stdout

    stored = _stored_tasks(data_dir)
    assert stored[0]["title"] == "Buy milk"
    assert stored[0]["priority"] == "High"
    assert stored[0]["labels"] == ["errand"]

    listed = runner.invoke(app, ["list", "inbox"])
    assert listed.exit_code == 0
    assert "Inbox" in listed.stdout
    assert "milk" in listed.stdout
    assert read_json(data_dir / "view.json") == {"kind": "inbox", "key": None}


def test_blank_title_is_rejected(data_dir: Path):
    result = runner.invoke(app, ["add", "   "])
    assert result.exit_code == 1
    assert "non-empty title" in result.stdout
    assert not (data_dir / "tasks.json").exists()


def test_bad_due_is_a_usage_error(data_dir: Path):
    result = runner.invoke(app, ["add", "Something", "--due", "someday"])
    assert result.exit_code == 2


def test_done_on_recurring_task_schedules_next(data_dir: Path):
    runner.invoke(app, ["add", "Water plants", "--due", "2024-01-01", "--recur", "weekly"])
    task_id = _stored_tasks(data_dir)[0]["id"]

    result = runner.invoke(app, ["done", task_id[:8]])

    assert result.exit_code == 0, result.stdout
    assert "Next occurrence" in result.stdout
    stored = _stored_tasks(data_dir)
    assert len(stored) == 2
    assert stored[1]["due"] == "2024-01-08"


def test_unknown_ref_exits_with_error(data_dir: Path):
    result = runner.invoke(app, ["archive", "nope"])
    assert result.exit_code == 1
    assert "No task matches" in result.stdout


def test_edit_reset_and_project_view(data_dir: Path):
    runner.invoke(app, ["add", "Report", "--project", "Work"])
    task_id = _stored_tasks(data_dir)[0]["id"]
    runner.invoke(app, ["done", task_id])
    runner.invoke(app, ["archive", task_id])

    result = runner.invoke(app, ["edit", task_id, "--reset", "--title", "Quarterly report"])
    assert result.exit_code == 0, result.stdout

    stored = _stored_tasks(data_dir)[0]
    assert stored["archived"] is False
    assert stored["completedAt"] is None
    assert stored["title"] == "Quarterly report"

    listed = runner.invoke(app, ["list", "project", "--key", "Work"])
    assert "Project: Work" in listed.stdout
    assert "Quarterly" in listed.stdout


def test_project_view_without_key_is_rejected(data_dir: Path):
    result = runner.invoke(app, ["list", "project"])
    assert result.exit_code == 2


def test_invalid_import_keeps_tasks(data_dir: Path, tmp_path: Path):
    runner.invoke(app, ["add", "Keep me"])
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"foo": 1}))

    result = runner.invoke(app, ["import", str(bad)])

    assert result.exit_code == 1
    assert "Invalid file" in result.stdout
    assert [task["title"] for task in _stored_tasks(data_dir)] == ["Keep me"]


def test_export_then_import(data_dir: Path, tmp_path: Path):
    runner.invoke(app, ["add", "Exported"])
    target = tmp_path / "out.json"

    exported = runner.invoke(app, ["export", "--output", str(target)])
    assert exported.exit_code == 0
    assert json.loads(target.read_text())["v"] == 1

    runner.invoke(app, ["clear", "--yes"])
    assert _stored_tasks(data_dir) == []

    imported = runner.invoke(app, ["import", str(target)])
    assert imported.exit_code == 0
    assert [task["title"] for task in _stored_tasks(data_dir)] == ["Exported"]


def test_counts_and_catalogues(data_dir: Path):
    runner.invoke(app, ["add", "One", "--project", "Home", "--label", "quick"])
    runner.invoke(app, ["add", "Two", "--due", "today"])

    counts = runner.invoke(app, ["counts"])
    assert "inbox: 2" in counts.stdout
    assert "today: 1" in counts.stdout

    assert "Home" in runner.invoke(app, ["projects"]).stdout
    assert "#quick" in runner.invoke(app, ["labels"]).stdout


def test_complete_today(data_dir: Path):
    runner.invoke(app, ["add", "Due now", "--due", "today"])
    runner.invoke(app, ["add", "Later", "--due", "5d"])

    result = runner.invoke(app, ["complete-today"])

    assert "Completed 1 task(s)." in result.stdout


def test_focus_runs_with_fake_sleep(data_dir: Path, monkeypatch):
    slept: list[float] = []
    monkeypatch.setattr("mydo.cli.time.sleep", slept.append)
    runner.invoke(app, ["add", "Deep work"])
    task_id = _stored_tasks(data_dir)[0]["id"]

    result = runner.invoke(app, ["focus", "--work", "1", "--break", "1", "--task", task_id, "--ticks", "61"])

    assert result.exit_code == 0, result.stdout
    assert len(slept) == 61
    assert "Focusing on" in result.stdout
    assert "Break time: 01:00" in result.stdout
    assert "Paused at BREAK 00:59" in result.stdout


def test_key_without_view_is_rejected(data_dir: Path):
    result = runner.invoke(app, ["list", "--key", "Work"])
    assert result.exit_code == 2


def test_edit_clears_labels_and_notes(data_dir: Path):
    runner.invoke(app, ["add", "Groceries", "--label", "errand", "--notes", "oat milk"])
    task_id = _stored_tasks(data_dir)[0]["id"]

    result = runner.invoke(app, ["edit", task_id, "--clear-labels", "--clear-notes"])

    assert result.exit_code == 0, result.stdout
    stored = _stored_tasks(data_dir)[0]
    assert stored["labels"] == []
    assert stored["notes"] is None
