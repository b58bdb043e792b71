import logging
import queue
import threading
import tkinter as tk
from tkinter import ttk, messagebox as mb, simpledialog
import datetime as dt
from typing import Callable, Dict, Optional

from core.config import QUEUE_POLL_MS, SYNC_INTERVAL_MS, TIMER_TICK_MS, TOPMOST, WINDOW_GEOMETRY
from core.exceptions import ValidationError
from core.filters import TaskFilter
from core.models import PRIORITY_LABELS
from core.status import STATUSES
from core.timefmt import format_duration
from controller.app_controller import AppController
from gui.task_dialog import TaskDialog
from gui.task_list import TaskColumn, TaskTable
from services.timer_service import elapsed, utcnow

logger = logging.getLogger(__name__)

ALL = "All"


class QueueNotifier:
    """Notifier usable from worker threads: messages are drained on the Tk thread."""
    def __init__(self, events: "queue.Queue"):
        self.events = events

    def info(self, message: str) -> None:
        self.events.put(("info", message))

    def error(self, message: str) -> None:
        self.events.put(("error", message))


class MainWindow(tk.Tk):
    def __init__(self, controller: AppController):
        super().__init__()
        self.controller = controller
        self.title("Task Board")
        self.geometry(WINDOW_GEOMETRY)
        self.configure(padx=8, pady=8)
        if TOPMOST:
            self.attributes("-topmost", True)

        # backend calls run on worker threads; everything Tk happens here
        self._events: "queue.Queue" = queue.Queue()
        self._render_pending = False
        controller.set_notifier(QueueNotifier(self._events))
        controller.add_listener(lambda: self._events.put(("render", None)))

        # Top bar
        top = ttk.Frame(self)
        top.pack(fill="x", pady=(0, 6))
        ttk.Label(top, text="Project:").pack(side="left")
        self.project_var = tk.StringVar()
        self.project_box = ttk.Combobox(top, textvariable=self.project_var, state="readonly", width=28)
        self.project_box.pack(side="left", padx=6)
        self.project_box.bind("<<ComboboxSelected>>", self._on_project_selected)
        ttk.Button(top, text="New project...", command=self._new_project).pack(side="left")
        ttk.Button(top, text="Delete project", command=self._delete_project).pack(side="left", padx=(6, 0))
        ttk.Button(top, text="Sync", command=self._sync_all).pack(side="right")
        self.status_var = tk.StringVar(value="Ready")
        self.status_lbl = ttk.Label(top, textvariable=self.status_var)
        self.status_lbl.pack(side="right", padx=12)
        self._project_ids: Dict[str, Optional[int]] = {}

        # Timer bar
        self.timer_bar = TimerBar(self, controller, self._submit)
        self.timer_bar.pack(fill="x", pady=(0, 6))

        # Notebook
        self.nb = ttk.Notebook(self)
        self.nb.pack(fill="both", expand=True)
        self.board_tab = BoardTab(self.nb, controller, self._submit)
        self.nb.add(self.board_tab, text="Kanban")
        self.tasks_tab = TasksTab(self.nb, controller, self._submit)
        self.nb.add(self.tasks_tab, text="Tasks")
        self.time_tab = TimeTab(self.nb, controller)
        self.nb.add(self.time_tab, text="Time")

        # timers / binds
        self.bind("<F5>", lambda e: self._sync_all())
        self.after(QUEUE_POLL_MS, self._drain_events)
        self.after(TIMER_TICK_MS, self._tick)
        self.after(SYNC_INTERVAL_MS, self._auto_sync)
        self._sync_all()

    # ---------- worker plumbing ----------
    def _submit(self, fn: Callable, *args, **kwargs) -> None:
        def run():
            try:
                fn(*args, **kwargs)
            except ValidationError as e:
                self._events.put(("error", str(e)))
            except Exception:
                logger.exception("Background task %s failed", getattr(fn, "__name__", fn))
                self._events.put(("error", "Unexpected error, see log"))
        threading.Thread(target=run, daemon=True).start()

    def _drain_events(self):
        try:
            while True:
                kind, payload = self._events.get_nowait()
                if kind == "render":
                    self._render_pending = True
                else:
                    self._notify(kind, payload)
        except queue.Empty:
            pass
        if self._render_pending:
            self._render_pending = False
            self._render()
        self.after(QUEUE_POLL_MS, self._drain_events)

    def _notify(self, kind: str, message: str):
        self.status_var.set(f"{dt.datetime.now().strftime('%H:%M:%S')} · {message}")
        self.status_lbl.configure(foreground="#B00020" if kind == "error" else "")

    # ---------- sync ----------
    def _sync_all(self):
        self._submit(self.controller.refresh)

    def _auto_sync(self):
        try:
            self._sync_all()
        finally:
            self.after(SYNC_INTERVAL_MS, self._auto_sync)

    def _tick(self):
        try:
            self.timer_bar.tick()
        finally:
            self.after(TIMER_TICK_MS, self._tick)

    # ---------- render ----------
    def _render(self):
        state = self.controller.state
        labels = ["Select a project..."] + [f"{p.id} · {p.name}" for p in state.projects]
        self._project_ids = {labels[0]: None}
        self._project_ids.update({f"{p.id} · {p.name}": p.id for p in state.projects})
        self.project_box.configure(values=labels)
        current = next((k for k, v in self._project_ids.items() if v == state.current_project_id), labels[0])
        self.project_var.set(current)

        self.board_tab.render()
        self.tasks_tab.render()
        self.time_tab.render()
        self.timer_bar.render()

    def _on_project_selected(self, event=None):
        self.controller.select_project(self._project_ids.get(self.project_var.get()))

    def _new_project(self):
        name = simpledialog.askstring("New project", "Project name:", parent=self)
        if name is not None:
            self._submit(self.controller.add_project, name)

    def _delete_project(self):
        project = self.controller.state.find_project(self.controller.state.current_project_id)
        if project is None:
            self._notify("error", "Select a project first")
            return
        if not mb.askyesno("Delete project", f"Delete project '{project.name}' and its tasks?", parent=self):
            return
        self._submit(self.controller.delete_project, project.id)


def open_task_editor(master, controller: AppController, submit: Callable, task_id: int) -> None:
    task = controller.state.find_task(task_id)
    if task is None:
        return
    TaskDialog(master, task, controller.state.projects,
               on_save=lambda original, edited: submit(controller.edit_task, original, edited))


class BoardTab(ttk.Frame):
    def __init__(self, parent, controller: AppController, submit: Callable):
        super().__init__(parent)
        self.controller = controller
        self.submit = submit
        self.columns: Dict[str, TaskColumn] = {}
        for idx, status in enumerate(STATUSES):
            col = TaskColumn(self, status, on_move=self._on_move, on_open=self._on_open)
            col.grid(row=0, column=idx, sticky="nsew", padx=2)
            self.columnconfigure(idx, weight=1, uniform="board")
            self.columns[status] = col
        self.rowconfigure(0, weight=1)

    def render(self):
        if self.controller.state.current_project_id is None:
            for col in self.columns.values():
                col.show_placeholder("Select a project")
            return
        projection = self.controller.board()
        moving = {t.id for t in self.controller.state.tasks if self.controller.moves.is_moving(t.id)}
        for status, col in self.columns.items():
            col.set_tasks(projection[status], moving)

    def _on_move(self, task_id: int, old_status: str, new_status: str, position: int):
        self.submit(self.controller.request_move, task_id, new_status, position, old_status)

    def _on_open(self, task_id: int):
        open_task_editor(self, self.controller, self.submit, task_id)


class TasksTab(ttk.Frame):
    def __init__(self, parent, controller: AppController, submit: Callable):
        super().__init__(parent)
        self.controller = controller
        self.submit = submit

        # Header: quick add
        header = ttk.Frame(self)
        header.pack(fill="x", pady=(6, 4))
        ttk.Label(header, text="New task:").pack(side="left")
        self.entry = ttk.Entry(header)
        self.entry.pack(side="left", fill="x", expand=True, padx=6)
        self.entry.bind("<Return>", self._on_add)
        self.new_priority = tk.StringVar(value=PRIORITY_LABELS[1])
        ttk.Combobox(header, textvariable=self.new_priority, values=PRIORITY_LABELS,
                     state="readonly", width=8).pack(side="left")
        ttk.Button(header, text="Add", command=self._on_add).pack(side="left", padx=(6, 0))

        # Filters
        filters = ttk.Frame(self)
        filters.pack(fill="x", pady=(0, 4))
        self.f_project = tk.StringVar(value=ALL)
        self.f_status = tk.StringVar(value=ALL)
        self.f_priority = tk.StringVar(value=ALL)
        self.f_search = tk.StringVar()
        ttk.Label(filters, text="Project").pack(side="left")
        self.project_box = ttk.Combobox(filters, textvariable=self.f_project, state="readonly", width=18)
        self.project_box.pack(side="left", padx=(4, 10))
        ttk.Label(filters, text="Status").pack(side="left")
        ttk.Combobox(filters, textvariable=self.f_status, state="readonly", width=12,
                     values=[ALL] + list(STATUSES)).pack(side="left", padx=(4, 10))
        ttk.Label(filters, text="Priority").pack(side="left")
        ttk.Combobox(filters, textvariable=self.f_priority, state="readonly", width=10,
                     values=[ALL] + list(PRIORITY_LABELS)).pack(side="left", padx=(4, 10))
        ttk.Label(filters, text="Search").pack(side="left")
        ttk.Entry(filters, textvariable=self.f_search).pack(side="left", fill="x", expand=True, padx=4)
        for var in (self.f_project, self.f_status, self.f_priority, self.f_search):
            var.trace_add("write", lambda *a: self.render())

        self.table = TaskTable(self, on_toggle=self._on_toggle, on_open=self._on_open)
        self.table.pack(fill="both", expand=True)
        self.table.tree.bind("<Delete>", self._on_delete)

    def _criteria(self) -> TaskFilter:
        project = self.f_project.get()
        status = self.f_status.get()
        priority = self.f_priority.get()
        return TaskFilter.from_form(
            project="" if project == ALL else project.split(" · ", 1)[0],
            status="" if status == ALL else status,
            priority="" if priority == ALL else str(PRIORITY_LABELS.index(priority)),
            search=self.f_search.get(),
        )

    def render(self):
        state = self.controller.state
        self.project_box.configure(values=[ALL] + [f"{p.id} · {p.name}" for p in state.projects])
        names = {p.id: p.name for p in state.projects}
        self.table.set_tasks(self.controller.filtered_tasks(self._criteria()), names)

    def _on_add(self, event=None):
        text = self.entry.get().strip()
        if not text:
            return
        priority = PRIORITY_LABELS.index(self.new_priority.get())
        self.entry.delete(0, "end")
        self.submit(self.controller.add_task, text, None, priority)

    def _on_toggle(self, task_id: int):
        task = self.controller.state.find_task(task_id)
        if task:
            self.submit(self.controller.toggle_done, task)

    def _on_open(self, task_id: int):
        open_task_editor(self, self.controller, self.submit, task_id)

    def _on_delete(self, event=None):
        sel = self.table.tree.selection()
        if not sel:
            return
        task_id = int(sel[0])
        label = self.controller.task_label(task_id)
        if mb.askyesno("Delete task", f"Are you sure you want to delete this task?\n\n{label}", parent=self):
            self.submit(self.controller.delete_task, task_id)


class TimerBar(ttk.Frame):
    def __init__(self, parent, controller: AppController, submit: Callable):
        super().__init__(parent)
        self.controller = controller
        self.submit = submit
        self._task_ids: Dict[str, int] = {}

        ttk.Label(self, text="Track:").pack(side="left")
        self.task_var = tk.StringVar()
        self.task_box = ttk.Combobox(self, textvariable=self.task_var, state="readonly", width=36)
        self.task_box.pack(side="left", padx=6)
        self.note = ttk.Entry(self, width=30)
        self.note.pack(side="left", padx=6)
        ttk.Button(self, text="Start", command=self._start).pack(side="left")
        ttk.Button(self, text="Stop", command=self._stop).pack(side="left", padx=(6, 0))
        self.active_var = tk.StringVar(value="No active timer")
        ttk.Label(self, textvariable=self.active_var, font=("TkFixedFont", 10)).pack(side="right")

    def render(self):
        open_tasks = [t for t in self.controller.state.tasks if not t.done]
        self._task_ids = {f"{t.id} · {t.description}": t.id for t in open_tasks}
        self.task_box.configure(values=list(self._task_ids))
        self.tick()

    def tick(self):
        active = self.controller.state.active_timer
        if active is None:
            self.active_var.set("No active timer")
            return
        label = self.controller.task_label(active.task_id)
        self.active_var.set(f"{label}  {self.controller.timer.tick_text()}")

    def _start(self):
        task_id = self._task_ids.get(self.task_var.get())
        note = self.note.get()
        self.note.delete(0, "end")
        self.submit(self.controller.start_timer, task_id, note)

    def _stop(self):
        self.submit(self.controller.stop_timer)


class TimeTab(ttk.Frame):
    """Time entries, newest first; open entries show as "In progress"."""
    COLUMNS = ("task", "note", "started", "ended", "duration")

    def __init__(self, parent, controller: AppController):
        super().__init__(parent)
        self.controller = controller
        self.tree = ttk.Treeview(self, columns=self.COLUMNS, show="headings")
        widths = {"task": 300, "note": 260, "started": 140, "ended": 140, "duration": 90}
        for col in self.COLUMNS:
            self.tree.heading(col, text=col.capitalize())
            self.tree.column(col, width=widths[col], anchor="center" if col == "duration" else "w")
        vbar = ttk.Scrollbar(self, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=vbar.set)
        self.tree.grid(row=0, column=0, sticky="nsew", pady=(6, 0))
        vbar.grid(row=0, column=1, sticky="ns", pady=(6, 0))
        self.rowconfigure(0, weight=1)
        self.columnconfigure(0, weight=1)

    def render(self):
        now = utcnow()
        self.tree.delete(*self.tree.get_children(""))
        entries = sorted(self.controller.state.time_entries, key=lambda e: (e.start_time, e.id), reverse=True)
        for e in entries:
            self.tree.insert("", "end", iid=str(e.id), values=(
                self.controller.task_label(e.task_id),
                e.note or "",
                _local(e.start_time),
                _local(e.end_time) if e.end_time else "In progress",
                format_duration(elapsed(e, now)),
            ))


def _local(ts: dt.datetime) -> str:
    return ts.astimezone().strftime("%Y-%m-%d %H:%M")
