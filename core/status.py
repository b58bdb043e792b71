"""Task status lattice.

Five statuses, ordered for display. Any status may move to any other one;
``done`` is not terminal.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from core.exceptions import InvalidStatus
from core.models import Task

BACKLOG = "backlog"
TODO = "todo"
IN_PROGRESS = "in_progress"
IN_REVIEW = "in_review"
DONE = "done"

STATUSES: Tuple[str, ...] = (BACKLOG, TODO, IN_PROGRESS, IN_REVIEW, DONE)
HEADER_TITLES = {
    BACKLOG: "Backlog",
    TODO: "To Do",
    IN_PROGRESS: "In Progress",
    IN_REVIEW: "In Review",
    DONE: "Done",
}


def is_valid_status(status: object) -> bool:
    return isinstance(status, str) and status in STATUSES


def normalize_status(raw: Optional[str], done: bool = False) -> str:
    """Map a stored status to one of STATUSES.

    Legacy records carry no status; they are grouped by their ``done`` flag,
    the same way the backend builds its kanban view.
    """
    if not raw:
        return DONE if done else TODO
    if not is_valid_status(raw):
        raise InvalidStatus(raw)
    return raw


@dataclass(frozen=True)
class TransitionResult:
    task_id: int
    from_status: str
    to_status: str
    changed: bool


def transition(task: Task, from_status: str, to_status: str) -> TransitionResult:
    if not is_valid_status(to_status):
        raise InvalidStatus(to_status)
    return TransitionResult(
        task_id=task.id,
        from_status=from_status,
        to_status=to_status,
        changed=from_status != to_status,
    )
