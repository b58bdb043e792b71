"""Time tracking: at most one open time entry per client."""
from __future__ import annotations
import datetime as dt
import logging
import threading
import warnings
from typing import Callable, Iterable, List, Optional, Tuple

from core.exceptions import (BackendError, MultipleActiveTimers, NetworkError, NoActiveTimer,
                             TimerAlreadyActive)
from core.models import TimeEntry
from core.ports import BoardBackend, Notifier
from core.state import AppState
from core.timefmt import format_duration
from services.snapshot import fetch_time_entries

logger = logging.getLogger(__name__)


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def elapsed(entry: TimeEntry, reference_time: dt.datetime) -> int:
    """Whole seconds tracked by ``entry``.

    Open entries count up to ``reference_time``; closed ones are fixed at
    end - start. Clock skew never yields a negative duration.
    """
    end = entry.end_time if entry.end_time is not None else reference_time
    seconds = int((end - entry.start_time).total_seconds())
    return max(0, seconds)


def pick_active(entries: Iterable[TimeEntry]) -> Tuple[Optional[TimeEntry], List[TimeEntry]]:
    """Return the open entry to track and the other open entries, if any.

    The most recently started entry wins; ties go to the higher id.
    """
    open_entries = [e for e in entries if e.end_time is None]
    if not open_entries:
        return None, []
    latest = max(open_entries, key=lambda e: (e.start_time, e.id))
    return latest, [e for e in open_entries if e is not latest]


class TimerSession:
    def __init__(self, client: BoardBackend, state: AppState, notifier: Notifier,
                 clock: Callable[[], dt.datetime] = utcnow):
        self.client = client
        self.state = state
        self.notifier = notifier
        self.clock = clock
        self._lock = threading.Lock()
        self._generation = 0  # bumped by every start/stop the backend accepted

    def snapshot_mark(self) -> int:
        """Take before fetching time entries elsewhere; hand back to adopt_entries."""
        with self._lock:
            return self._generation

    def adopt_entries(self, entries: List[TimeEntry], mark: int) -> bool:
        """Install entries fetched outside a timer operation and reconcile.

        Refused when a start or stop went through after ``mark`` was taken,
        since the fetched list predates it.
        """
        with self._lock:
            if mark != self._generation:
                logger.debug("Time entries snapshot predates a timer operation, dropped")
                return False
            self.state.time_entries = list(entries)
            self._reconcile(self.state.time_entries)
            return True

    def reconcile(self, entries: Optional[Iterable[TimeEntry]] = None) -> Optional[TimeEntry]:
        """Pick the active timer from ``entries`` (default: state.time_entries)."""
        with self._lock:
            return self._reconcile(self.state.time_entries if entries is None else entries)

    def start(self, task_id: int, note: Optional[str] = None) -> Optional[TimeEntry]:
        with self._lock:
            if self.state.active_timer is not None:
                raise TimerAlreadyActive(self.state.active_timer.id)
            raw = self.client.start_timer(task_id, note)
            self._generation += 1
            entry = TimeEntry.from_dict(raw) if raw and raw.get("id") else None
            self.state.active_timer = entry
            logger.info("Timer started for task %s (entry %s)", task_id, entry.id if entry else "?")
            self.notifier.info("Timer started")
            self._refresh_entries()
            return self.state.active_timer

    def stop(self, timer_id: Optional[int] = None) -> int:
        """Stop the active timer; returns the entry id that was stopped."""
        with self._lock:
            active = self.state.active_timer
            if active is None:
                raise NoActiveTimer()
            entry_id = timer_id if timer_id is not None else active.id
            self.client.stop_timer(entry_id)
            self._generation += 1
            self.state.active_timer = None
            logger.info("Timer %s stopped after %ss", entry_id, elapsed(active, self.clock()))
            self.notifier.info("Timer stopped")
            self._refresh_entries()
            return entry_id

    def tick_text(self, now: Optional[dt.datetime] = None) -> str:
        active = self.state.active_timer
        if active is None:
            return ""
        return format_duration(elapsed(active, now or self.clock()))

    # lock held by the callers below
    def _reconcile(self, entries: Iterable[TimeEntry]) -> Optional[TimeEntry]:
        active, others = pick_active(entries)
        if others:
            ids = ", ".join(str(e.id) for e in [active] + others)
            message = f"{len(others) + 1} open time entries ({ids}); using {active.id}"
            self.notifier.error(message)
            warnings.warn(MultipleActiveTimers(message), stacklevel=3)
        self.state.active_timer = active
        return active

    def _refresh_entries(self) -> None:
        try:
            entries = fetch_time_entries(self.client)
        except (NetworkError, BackendError) as e:
            logger.warning("Could not refresh time entries: %s", e)
            return
        self.state.time_entries = entries
        self._reconcile(entries)
