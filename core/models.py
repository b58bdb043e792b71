from __future__ import annotations
import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

LOW, MEDIUM, HIGH, URGENT = 0, 1, 2, 3
PRIORITY_LABELS = ("low", "medium", "high", "urgent")


def priority_label(priority: int) -> str:
    if 0 <= priority < len(PRIORITY_LABELS):
        return PRIORITY_LABELS[priority]
    return "medium"


def parse_timestamp(raw: Any) -> Optional[dt.datetime]:
    """RFC3339 from the backend (nanoseconds and a trailing Z included)."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, dt.datetime):
        return raw
    text = str(raw)
    if text.startswith("0001-01-01"):  # zero time.Time
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # trim fractional seconds beyond microseconds
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        for ch in rest:
            if not ch.isdigit():
                break
            digits += ch
        text = head + "." + digits[:6].ljust(6, "0") + rest[len(digits):]
    parsed = dt.datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def format_due_date(value: Optional[dt.datetime]) -> str:
    """Calendar date in the form the backend's date parser accepts."""
    return value.strftime("%Y-%m-%d") if value else ""


def parse_due_date(text: str) -> Optional[dt.datetime]:
    """YYYY-MM-DD from a form field; blank means no due date. Raises ValueError."""
    text = (text or "").strip()
    if not text:
        return None
    return dt.datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=dt.timezone.utc)


@dataclass
class Project:
    id: int
    name: str
    description: Optional[str] = None
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Project":
        return cls(
            id=int(raw["id"]),
            name=raw.get("name") or "",
            description=raw.get("description") or None,
            color=raw.get("color") or None,
        )


@dataclass
class Task:
    id: int
    description: str
    status: str = "todo"
    priority: int = MEDIUM
    project_id: Optional[int] = None  # back-reference only, never ownership
    category: Optional[str] = None
    assignee: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    due_date: Optional[dt.datetime] = None
    estimated_hours: Optional[float] = None
    position: int = 0
    done: bool = False

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Task":
        from core.status import normalize_status  # local import to avoid cycle

        done = bool(raw.get("done"))
        project_id = raw.get("project_id")
        hours = raw.get("estimated_hours")
        return cls(
            id=int(raw["id"]),
            description=raw.get("description") or "",
            status=normalize_status(raw.get("status"), done),
            priority=int(raw.get("priority") or 0),
            # project_id 0 is the backend's "unassigned"
            project_id=int(project_id) if project_id else None,
            category=raw.get("category") or None,
            assignee=raw.get("assignee") or None,
            tags=list(raw.get("tags") or []),
            due_date=parse_timestamp(raw.get("due_date")),
            estimated_hours=float(hours) if hours else None,
            position=int(raw.get("position") or 0),
            done=done,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Editable fields as an update body. Status is changed by moves only."""
        payload: Dict[str, Any] = {
            "description": self.description,
            "priority": self.priority,
            "project_id": self.project_id or 0,
        }
        if self.category:
            payload["category"] = self.category
        if self.assignee:
            payload["assignee"] = self.assignee
        if self.tags:
            payload["tags"] = list(self.tags)
        if self.due_date:
            payload["due_date"] = format_due_date(self.due_date)
        if self.estimated_hours:
            payload["estimated_hours"] = self.estimated_hours
        return payload


@dataclass
class TimeEntry:
    id: int
    task_id: int
    start_time: dt.datetime
    end_time: Optional[dt.datetime] = None  # None = in progress
    note: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "TimeEntry":
        start = parse_timestamp(raw.get("start_time"))
        if start is None:
            raise ValueError(f"time entry {raw.get('id')} has no start_time")
        return cls(
            id=int(raw["id"]),
            task_id=int(raw.get("task_id") or 0),
            start_time=start,
            end_time=parse_timestamp(raw.get("end_time")),
            note=raw.get("note") or None,
        )
