"""Board projection: tasks of one project grouped into status columns."""
from __future__ import annotations
from typing import Callable, Dict, Iterable, List, Optional

from core.models import Task
from core.status import STATUSES

Projection = Dict[str, List[Task]]


def empty_projection() -> Projection:
    return {status: [] for status in STATUSES}


def by_position(task: Task):
    return (task.position, task.id)


def project(tasks: Iterable[Task], project_id: Optional[int],
            sort_key: Optional[Callable[[Task], object]] = None) -> Projection:
    """Group ``tasks`` of ``project_id`` by status.

    Without a project every column is empty; the board is always scoped to
    one project. Column order is insertion order unless ``sort_key`` is
    given (``sorted`` is stable, so ties keep insertion order).
    """
    columns = empty_projection()
    if project_id is None:
        return columns
    for task in tasks:
        if task.project_id == project_id:
            columns[task.status].append(task)
    if sort_key is not None:
        for status in STATUSES:
            columns[status].sort(key=sort_key)
    return columns
