"""Pure task filtering for the task list view.

Every criterion is optional; ``None`` means "not filtering on this field".
``priority=0`` is a real filter (LOW), so checks are ``is not None`` and
never truthiness.
"""
from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Iterable, List, Optional

from core.models import Task
from core.status import is_valid_status
from core.exceptions import InvalidStatus


@dataclass(frozen=True)
class TaskFilter:
    project_id: Optional[int] = None
    status: Optional[str] = None
    priority: Optional[int] = None
    search_text: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    @classmethod
    def from_form(cls, project: str = "", status: str = "", priority: str = "",
                  search: str = "") -> "TaskFilter":
        """Build criteria from raw form inputs; blank inputs mean no filter."""
        project = (project or "").strip()
        status = (status or "").strip()
        priority = (priority or "").strip()
        search = (search or "").strip()
        if status and not is_valid_status(status):
            raise InvalidStatus(status)
        return cls(
            project_id=int(project) if project else None,
            status=status or None,
            priority=int(priority) if priority != "" else None,
            search_text=search or None,
        )


def _matches_text(task: Task, needle: str) -> bool:
    for value in (task.description, task.category, task.assignee):
        if value and needle in value.lower():
            return True
    return False


def filter_tasks(tasks: Iterable[Task], criteria: Optional[TaskFilter] = None) -> List[Task]:
    """Return the tasks matching every active criterion (AND).

    Never mutates ``tasks``; always returns a new list.
    """
    result = list(tasks)
    if criteria is None or criteria.is_empty():
        return result
    if criteria.project_id is not None:
        result = [t for t in result if t.project_id == criteria.project_id]
    if criteria.status is not None:
        result = [t for t in result if t.status == criteria.status]
    if criteria.priority is not None:
        result = [t for t in result if t.priority == criteria.priority]
    if criteria.search_text is not None:
        needle = criteria.search_text.lower()
        result = [t for t in result if _matches_text(t, needle)]
    return result
