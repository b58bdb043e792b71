from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from core.models import Project, Task, TimeEntry


@dataclass
class AppState:
    """Everything the client knows, owned by the controller.

    Collections are replaced wholesale, never mutated in place, so a reader
    on another thread always sees a consistent list.
    """
    projects: List[Project] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    time_entries: List[TimeEntry] = field(default_factory=list)
    current_project_id: Optional[int] = None
    active_timer: Optional[TimeEntry] = None

    # last task list confirmed by the backend; optimistic edits never touch it
    confirmed_tasks: List[Task] = field(default_factory=list)

    def find_task(self, task_id: int) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def find_project(self, project_id: Optional[int]) -> Optional[Project]:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None
