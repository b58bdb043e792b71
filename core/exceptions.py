from __future__ import annotations
from typing import Optional


class BoardError(Exception):
    """Base class for every error raised by the board client."""


# ---------- client-side validation (no request is sent) ----------
class ValidationError(BoardError):
    pass


class InvalidStatus(ValidationError):
    def __init__(self, status: object):
        super().__init__(f"Unknown status: {status!r}")
        self.status = status


class InvalidTarget(InvalidStatus):
    """Raised by a move whose target column is not a known status."""


class TimerAlreadyActive(ValidationError):
    def __init__(self, entry_id: Optional[int] = None):
        super().__init__("Please stop the current timer first")
        self.entry_id = entry_id


class NoActiveTimer(ValidationError):
    def __init__(self):
        super().__init__("No active timer")


class MoveInFlight(ValidationError):
    def __init__(self, task_id: int):
        super().__init__(f"Task {task_id} is already being moved")
        self.task_id = task_id


# ---------- transport / backend ----------
class NetworkError(BoardError):
    pass


class BackendUnavailable(NetworkError):
    pass


class BackendError(BoardError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TaskNotFound(BackendError):
    def __init__(self, message: str = "Task not found", status_code: Optional[int] = 404,
                 task_id: Optional[int] = None):
        super().__init__(message, status_code)
        self.task_id = task_id


# ---------- local consistency (non-fatal) ----------
class ConsistencyWarning(UserWarning):
    pass


class MultipleActiveTimers(ConsistencyWarning):
    pass
