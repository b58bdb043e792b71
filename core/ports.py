"""
Ports used by services and the controller.

Services depend on these Protocols, not on Tkinter or on requests, so the
GUI and the HTTP client are swappable and tests can use fakes.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Transient user-visible notification (status bar, toast)."""
    def info(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...


class BoardBackend(Protocol):
    def list_tasks(self) -> List[Dict[str, Any]]: ...
    def list_projects(self) -> List[Dict[str, Any]]: ...
    def list_time_entries(self, task_id: Optional[int] = None) -> List[Dict[str, Any]]: ...
    def move_task(self, task_id: int, new_status: str, position: int = 0) -> Any: ...
    def start_timer(self, task_id: int, note: Optional[str] = None) -> Dict[str, Any]: ...
    def stop_timer(self, entry_id: int) -> Any: ...


class LoggingNotifier:
    """Notifier for headless use: notifications only go to the log."""

    def info(self, message: str) -> None:
        logger.info("%s", message)

    def error(self, message: str) -> None:
        logger.error("%s", message)
