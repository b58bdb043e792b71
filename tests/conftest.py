# tests/conftest.py

from __future__ import annotations

import pytest

from controller.app_controller import AppController
from core.models import Task
from core.state import AppState

from .fakes import FakeBackend, RecordingNotifier


def task_record(id: int, status: str = "todo", project_id: int = 1, priority: int = 1, **extra) -> dict:
    record = {
        "id": id,
        "description": extra.pop("description", f"Task {id}"),
        "status": status,
        "project_id": project_id,
        "priority": priority,
        "done": status == "done",
    }
    record.update(extra)
    return record


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend(
        projects=[{"id": 1, "name": "Website"}, {"id": 2, "name": "Mobile"}],
        tasks=[
            task_record(5, "backlog"),
            task_record(7, "todo", description="Write release notes", category="docs"),
            task_record(8, "in_progress", priority=3, assignee="Dana"),
            task_record(9, "todo", project_id=2),
        ],
    )


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def state(backend: FakeBackend) -> AppState:
    """AppState already holding the backend's snapshot, as after a refresh."""
    tasks = [Task.from_dict(t) for t in backend.tasks]
    return AppState(tasks=list(tasks), confirmed_tasks=list(tasks), current_project_id=1)


@pytest.fixture()
def controller(backend: FakeBackend, notifier: RecordingNotifier) -> AppController:
    ctl = AppController(backend, notifier=notifier)  # type: ignore[arg-type]
    ctl.refresh()
    ctl.select_project(1)
    return ctl


@pytest.fixture()
def sample_tasks() -> list[Task]:
    return [
        Task(id=1, description="Fix login bug", status="todo", priority=0, project_id=1,
             category="Backend", assignee="Ana"),
        Task(id=2, description="Design landing page", status="in_progress", priority=2,
             project_id=1, category="UI"),
        Task(id=3, description="Write API docs", status="done", priority=1, project_id=2,
             assignee="bob"),
        Task(id=4, description="Release checklist", status="backlog", priority=3, project_id=None),
    ]
