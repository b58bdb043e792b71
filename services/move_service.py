"""Kanban move transaction.

A move changes one task's status: it is applied to the local state first
(optimistic), sent to the backend as a single PUT, and then the board is
re-pulled from the backend. A failed move is rolled back by discarding the
local edit and re-rendering from the last confirmed server state; there is
no inverse transition and no automatic retry. A snapshot installed while a
move is in flight (a periodic sync, say) keeps that card in its target column.
"""
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional

from core.exceptions import BackendError, BoardError, InvalidTarget, MoveInFlight, NetworkError
from core.models import Task
from core.ports import BoardBackend, Notifier
from core.state import AppState
from core.status import DONE, is_valid_status, transition
from services.snapshot import fetch_tasks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveResult:
    task_id: int
    from_status: Optional[str]
    to_status: str
    ok: bool
    changed: bool
    error: Optional[BoardError] = None


class MoveService:
    def __init__(self, client: BoardBackend, state: AppState, notifier: Notifier,
                 on_change: Optional[Callable[[], None]] = None):
        self.client = client
        self.state = state
        self.notifier = notifier
        self.on_change = on_change
        # guards _pending, _installs and every write to state.tasks
        self._lock = threading.Lock()
        self._pending: Dict[int, str] = {}  # task id -> target of the move in flight
        self._installs = 0

    def request_move(self, task_id: int, target_status: str, position: int = 0,
                     old_status: Optional[str] = None) -> MoveResult:
        """Move a task to ``target_status``.

        ``old_status`` is the column the card was taken from; when omitted
        the task's current local status is used. Raises InvalidTarget (no
        request sent) or MoveInFlight; backend failures are reported in the
        returned MoveResult.
        """
        if not is_valid_status(target_status):
            raise InvalidTarget(target_status)

        task = self.state.find_task(task_id)
        if old_status is None and task is not None:
            old_status = task.status
        if task is not None and old_status is not None:
            if not transition(task, old_status, target_status).changed:
                return MoveResult(task_id, old_status, target_status, ok=True, changed=False)

        with self._lock:
            if task_id in self._pending:
                raise MoveInFlight(task_id)
            self._pending[task_id] = target_status
        try:
            return self._run(task_id, old_status, target_status, position)
        finally:
            with self._lock:
                self._pending.pop(task_id, None)

    def is_moving(self, task_id: int) -> bool:
        with self._lock:
            return task_id in self._pending

    def snapshot_mark(self) -> int:
        """Take before fetching tasks elsewhere; hand back to adopt_snapshot."""
        with self._lock:
            return self._installs

    def adopt_snapshot(self, tasks: List[Task], mark: int) -> bool:
        """Install a task list fetched outside a move.

        Refused when a move installed a newer list after ``mark`` was taken.
        Cards whose move is still in flight keep their optimistic status on
        top of the fetched list.
        """
        with self._lock:
            if mark != self._installs:
                logger.debug("Task snapshot superseded by a move, dropped")
                return False
            self._install(tasks)
            return True

    # ---------- internals ----------
    def _run(self, task_id: int, old_status: Optional[str], new_status: str,
             position: int) -> MoveResult:
        self._apply_optimistic()
        try:
            self.client.move_task(task_id, new_status, position)
        except (NetworkError, BackendError) as e:
            logger.warning("Move of task %s to %s failed: %s", task_id, new_status, e)
            self.notifier.error(f"Failed to move task: {e}")
            self._rollback(task_id)
            return MoveResult(task_id, old_status, new_status, ok=False, changed=False, error=e)

        logger.info("Task %s moved %s -> %s", task_id, old_status, new_status)
        self.notifier.info("Task moved successfully")
        try:
            tasks = fetch_tasks(self.client)
        except (NetworkError, BackendError) as e:
            # the move itself was accepted; keep the optimistic state
            logger.warning("Board refresh after move of task %s failed: %s", task_id, e)
            self.notifier.error(f"Failed to refresh board: {e}")
        else:
            with self._lock:
                self._install(tasks)
        self._changed()
        return MoveResult(task_id, old_status, new_status, ok=True, changed=True)

    def _apply_optimistic(self) -> None:
        with self._lock:
            self.state.tasks = [self._overlay(t) for t in self.state.tasks]
        self._changed()

    def _rollback(self, task_id: int) -> None:
        with self._lock:
            self._install(self.state.confirmed_tasks, settled=task_id)
        try:
            tasks = fetch_tasks(self.client)
        except (NetworkError, BackendError) as e:
            logger.warning("Re-pull after failed move failed, showing last confirmed board: %s", e)
        else:
            with self._lock:
                self._install(tasks, settled=task_id)
        self._changed()

    def _install(self, tasks: List[Task], settled: Optional[int] = None) -> None:
        # caller holds self._lock
        self.state.confirmed_tasks = list(tasks)
        self.state.tasks = [t if t.id == settled else self._overlay(t) for t in tasks]
        self._installs += 1

    def _overlay(self, task: Task) -> Task:
        target = self._pending.get(task.id)
        if target is None or target == task.status:
            return task
        return replace(task, status=target, done=(target == DONE))

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
