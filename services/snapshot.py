"""Snapshot fetches from the backend. Tasks and time entries are installed by their services."""
from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, List

from core.exceptions import InvalidStatus
from core.models import Project, Task, TimeEntry
from core.ports import BoardBackend
from core.state import AppState

logger = logging.getLogger(__name__)


def parse_tasks(items: Iterable[Dict[str, Any]]) -> List[Task]:
    """Records with an unknown status are rejected (logged and left out)."""
    tasks: List[Task] = []
    for raw in items:
        try:
            tasks.append(Task.from_dict(raw))
        except InvalidStatus as e:
            logger.warning("Skipping task %s: %s", raw.get("id"), e)
    return tasks


def parse_time_entries(items: Iterable[Dict[str, Any]]) -> List[TimeEntry]:
    entries: List[TimeEntry] = []
    for raw in items:
        try:
            entries.append(TimeEntry.from_dict(raw))
        except ValueError as e:
            logger.warning("Skipping time entry %s: %s", raw.get("id"), e)
    return entries


def fetch_tasks(client: BoardBackend) -> List[Task]:
    return parse_tasks(client.list_tasks())


def pull_projects(client: BoardBackend, state: AppState) -> List[Project]:
    projects = [Project.from_dict(p) for p in client.list_projects()]
    state.projects = projects
    if state.current_project_id is not None and state.find_project(state.current_project_id) is None:
        logger.info("Project %s no longer exists; clearing board scope", state.current_project_id)
        state.current_project_id = None
    return projects


def fetch_time_entries(client: BoardBackend) -> List[TimeEntry]:
    return parse_time_entries(client.list_time_entries())
