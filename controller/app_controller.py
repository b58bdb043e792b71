import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from core.board import Projection, project
from core.exceptions import BackendError, NetworkError, ValidationError
from core.filters import TaskFilter, filter_tasks
from core.models import Task, TimeEntry
from core.ports import LoggingNotifier, Notifier
from core.state import AppState
from core.status import DONE, TODO
from services.move_service import MoveResult, MoveService
from services.snapshot import fetch_tasks, fetch_time_entries, pull_projects
from services.timer_service import TimerSession
from storage.api_client import TaskApiClient

logger = logging.getLogger(__name__)


class AppController:
    """Coordina la UI con el backend (REST) y los servicios de dominio."""
    # Owns the AppState. Views read from it and call the commands below;
    # a refused command returns None instead of raising into the view.
    def __init__(self, client: TaskApiClient, notifier: Optional[Notifier] = None,
                 state: Optional[AppState] = None):
        self.client = client
        self.notifier = notifier or LoggingNotifier()
        self.state = state or AppState()
        self._listeners: List[Callable[[], None]] = []
        self._refresh_lock = threading.Lock()
        self.moves = MoveService(client, self.state, self.notifier, on_change=self._emit_change)
        self.timer = TimerSession(client, self.state, self.notifier)

    # ---- listeners ----
    def add_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def _emit_change(self) -> None:
        for callback in list(self._listeners):
            callback()

    def set_notifier(self, notifier: Notifier) -> None:
        self.notifier = notifier
        self.moves.notifier = notifier
        self.timer.notifier = notifier

    # ---- sync ----
    def refresh(self) -> bool:
        """Pull projects, tasks and time entries; reconcile the timer.

        A move or timer operation that lands while the snapshot is in
        transit wins over it (see MoveService.adopt_snapshot and
        TimerSession.adopt_entries).
        """
        with self._refresh_lock:
            tasks_mark = self.moves.snapshot_mark()
            timer_mark = self.timer.snapshot_mark()
            try:
                pull_projects(self.client, self.state)
                tasks = fetch_tasks(self.client)
                entries = fetch_time_entries(self.client)
            except (NetworkError, BackendError) as e:
                logger.warning("Refresh failed: %s", e)
                self.notifier.error(f"Sync failed: {e}")
                return False
            self.moves.adopt_snapshot(tasks, tasks_mark)
            self.timer.adopt_entries(entries, timer_mark)
        self._emit_change()
        return True

    # ---- board ----
    def select_project(self, project_id: Optional[int]) -> None:
        self.state.current_project_id = project_id
        self._emit_change()

    def board(self) -> Projection:
        return project(self.state.tasks, self.state.current_project_id)

    def request_move(self, task_id: int, target_status: str, position: int = 0,
                     old_status: Optional[str] = None) -> Optional[MoveResult]:
        try:
            return self.moves.request_move(task_id, target_status, position, old_status)
        except ValidationError as e:
            self.notifier.error(str(e))
            return None

    # ---- task list ----
    def filtered_tasks(self, criteria: Optional[TaskFilter] = None) -> List[Task]:
        return filter_tasks(self.state.tasks, criteria)

    def task_label(self, task_id: int) -> str:
        task = self.state.find_task(task_id)
        return task.description if task else "Unknown Task"

    # ---- timer ----
    def start_timer(self, task_id: Optional[int], note: Optional[str] = None) -> Optional[TimeEntry]:
        if not task_id:
            self.notifier.error("Please select a task")
            return None
        try:
            entry = self.timer.start(task_id, (note or "").strip() or None)
        except ValidationError as e:
            self.notifier.error(str(e))
            return None
        except (NetworkError, BackendError) as e:
            logger.warning("Start timer failed: %s", e)
            self.notifier.error(f"Failed to start timer: {e}")
            return None
        self._emit_change()
        return entry

    def stop_timer(self) -> Optional[int]:
        try:
            entry_id = self.timer.stop()
        except ValidationError as e:
            self.notifier.error(str(e))
            return None
        except (NetworkError, BackendError) as e:
            logger.warning("Stop timer failed: %s", e)
            self.notifier.error(f"Failed to stop timer: {e}")
            return None
        self._emit_change()
        return entry_id

    # ---- projects ----
    def add_project(self, name: str, description: Optional[str] = None,
                    color: Optional[str] = None) -> Optional[Dict[str, Any]]:
        name = (name or "").strip()
        if not name:
            self.notifier.error("Please enter a project name")
            return None
        created = self._mutate(
            "Project created",
            lambda: self.client.create_project(name=name, description=(description or "").strip() or None,
                                               color=color),
        )
        if created and created.get("id") and self.state.current_project_id is None:
            self.select_project(int(created["id"]))
        return created

    def delete_project(self, project_id: int) -> Optional[Dict[str, Any]]:
        return self._mutate("Project deleted", lambda: self.client.delete_project(project_id))

    # ---- generic CRUD (each followed by a full re-pull) ----
    def add_task(self, description: str, project_id: Optional[int] = None,
                 priority: int = 1, **extra) -> Optional[Dict[str, Any]]:
        description = (description or "").strip()
        if not description:
            self.notifier.error("Description is required")
            return None
        if project_id is None:
            project_id = self.state.current_project_id
        return self._mutate(
            "Task created",
            lambda: self.client.create_task(description=description, project_id=project_id,
                                            priority=priority, status=TODO, **extra),
        )

    def update_task(self, task_id: int, **fields) -> Optional[Dict[str, Any]]:
        return self._mutate("Task updated", lambda: self.client.update_task(task_id, **fields))

    def edit_task(self, original: Task, edited: Task) -> Optional[Dict[str, Any]]:
        """Save the edit form. Status is left to moves; a removed due date is cleared."""
        if not edited.description.strip():
            self.notifier.error("Description is required")
            return None
        fields = edited.to_dict()
        if original.due_date and not edited.due_date:
            fields["due_date"] = "clear"
        return self.update_task(original.id, **fields)

    def delete_task(self, task_id: int) -> Optional[Dict[str, Any]]:
        return self._mutate("Task deleted", lambda: self.client.delete_task(task_id))

    def toggle_done(self, task: Task) -> Optional[Dict[str, Any]]:
        if task.status == DONE or task.done:
            return self._mutate("Task reopened", lambda: self.client.mark_undone(task.id))
        return self._mutate("Task marked done", lambda: self.client.mark_done(task.id))

    def _mutate(self, success_message: str, call: Callable[[], Any]) -> Optional[Any]:
        try:
            result = call()
        except (NetworkError, BackendError) as e:
            logger.warning("Backend call refused (%s): %s", success_message, e)
            self.notifier.error(str(e))
            self.refresh()
            return None
        self.notifier.info(success_message)
        self.refresh()
        return result if result is not None else {}
