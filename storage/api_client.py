from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Type

import requests

from core.exceptions import BackendError, BackendUnavailable, TaskNotFound
from core.models import priority_label

logger = logging.getLogger(__name__)


class TaskApiClient:
    """Thin client over the task manager REST API.

    Responses come wrapped as ``{"success": bool, "data": ..., "message": ...}``;
    bodies without that envelope are returned as-is and judged by status
    code alone.
    """

    def __init__(self, base_url: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    # ---------- transport ----------
    def _request(self, method: str, path: str, *, params: Optional[Dict[str, Any]] = None,
                 json: Any = None, not_found: Type[BackendError] = BackendError) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s params=%s body=%s", method, url, params, json)
        try:
            r = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            raise BackendUnavailable(f"{method} {path} failed: {e}") from e

        body = _decode(r)
        enveloped = isinstance(body, dict) and "success" in body
        if not r.ok or (enveloped and body.get("success") is False):
            message = _message(body) or f"{r.status_code} {r.reason or 'API request failed'}"
            logger.warning("%s %s -> %s: %s", method, path, r.status_code, message)
            if r.status_code == 404:
                raise not_found(message, r.status_code)
            raise BackendError(message, r.status_code)
        if enveloped:
            return body.get("data")
        return body

    # ---------- projects ----------
    def list_projects(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/projects") or []

    def create_project(self, *, name: str, description: Optional[str] = None,
                       color: Optional[str] = None) -> Any:
        payload = {"name": name}
        if description:
            payload["description"] = description
        if color:
            payload["color"] = color
        return self._request("POST", "/projects", json=payload)

    def delete_project(self, project_id: int) -> Any:
        return self._request("DELETE", f"/projects/{project_id}")

    # ---------- tasks ----------
    def list_tasks(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/tasks") or []

    def create_task(self, *, description: str, project_id: Optional[int] = None,
                    priority: int = 1, status: str = "todo", **extra) -> Any:
        payload = {
            "description": description,
            "project_id": project_id or 0,
            "priority": priority_label(priority),  # parsed by name on the server
            "status": status,
        }
        payload.update({k: v for k, v in extra.items() if v is not None})
        return self._request("POST", "/tasks", json=payload)

    def update_task(self, task_id: int, **fields) -> Any:
        if "priority" in fields:
            fields["priority"] = priority_label(fields["priority"])
        return self._request("PUT", f"/tasks/{task_id}", json=fields, not_found=TaskNotFound)

    def delete_task(self, task_id: int) -> Any:
        return self._request("DELETE", f"/tasks/{task_id}", not_found=TaskNotFound)

    def mark_done(self, task_id: int) -> Any:
        return self._request("PUT", f"/tasks/{task_id}/done", not_found=TaskNotFound)

    def mark_undone(self, task_id: int) -> Any:
        return self._request("PUT", f"/tasks/{task_id}/undone", not_found=TaskNotFound)

    # ---------- kanban ----------
    def move_task(self, task_id: int, new_status: str, position: int = 0) -> Any:
        payload = {"task_id": task_id, "new_status": new_status, "position": position}
        return self._request("PUT", "/kanban/move", json=payload, not_found=TaskNotFound)

    # ---------- time tracking ----------
    def list_time_entries(self, task_id: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"task_id": task_id} if task_id else None
        return self._request("GET", "/time", params=params) or []

    def start_timer(self, task_id: int, note: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"task_id": task_id}
        if note:
            payload["note"] = note
        return self._request("POST", "/time/start", json=payload) or {}

    def stop_timer(self, entry_id: int) -> Any:
        return self._request("PUT", f"/time/{entry_id}/stop")


def _decode(r: requests.Response) -> Any:
    if not r.content:
        return None
    try:
        return r.json()
    except ValueError:
        return None


def _message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error")
        return str(msg) if msg else None
    return None
