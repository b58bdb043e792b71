"""
Kanban column and task table widgets for Tkinter
------------------------------------------------
- TaskColumn: one status column (header with count + Treeview of cards).
  Cards can be dragged to another column, moved with Ctrl+Left/Ctrl+Right,
  or moved from the right-click "Move to" menu. All three end in the same
  ``on_move(task_id, old_status, new_status, position)`` callback.
  Double-click hands the card to ``on_open``.
- TaskTable: flat list of tasks for the filtered task view (Space or
  double-click toggles done, Return opens the editor).

The widgets are view-only: they never talk to the controller directly.
"""
from __future__ import annotations
from typing import Callable, Dict, List, Optional
import tkinter as tk
from tkinter import ttk

from core.models import Task, priority_label
from core.status import HEADER_TITLES, STATUSES

PRIORITY_COLORS = {0: "#38BDF8", 1: "#22C55E", 2: "#EAB308", 3: "#EF4444"}

MoveCallback = Callable[[int, str, str, int], None]


class TaskColumn(ttk.Frame):
    """A single status column of the board."""
    def __init__(
        self,
        master,
        status: str,
        on_move: Optional[MoveCallback] = None,
        on_open: Optional[Callable[[int], None]] = None,
    ):
        super().__init__(master, padding=(4, 4))
        self.status = status
        self._on_move = on_move
        self._on_open = on_open
        self._drag_task: Optional[int] = None

        self.header_var = tk.StringVar(value=HEADER_TITLES[status])
        ttk.Label(self, textvariable=self.header_var, font=("TkDefaultFont", 10, "bold")).pack(anchor="w")

        self.tree = ttk.Treeview(self, columns=("priority",), show="tree headings", selectmode="browse")
        self.tree.heading("#0", text="Task")
        self.tree.heading("priority", text="Pri")
        self.tree.column("#0", anchor="w", width=170, stretch=True)
        self.tree.column("priority", anchor="center", width=60, stretch=False)
        for pri, bg in PRIORITY_COLORS.items():
            self.tree.tag_configure(f"p{pri}", foreground=_ideal_text_color(bg), background=bg)
        self.tree.pack(fill="both", expand=True)

        self.tree.bind("<ButtonPress-1>", self._drag_start)
        self.tree.bind("<ButtonRelease-1>", self._drag_drop)
        self.tree.bind("<Double-1>", self._open)
        self.tree.bind("<Button-3>", self._menu)
        self.tree.bind("<Control-Right>", lambda e: self._move_adjacent(+1))
        self.tree.bind("<Control-Left>", lambda e: self._move_adjacent(-1))

    # --- Public API ---
    def set_tasks(self, tasks: List[Task], moving: Optional[set] = None):
        self.tree.delete(*self.tree.get_children(""))
        for task in tasks:
            text = task.description or "<untitled>"
            if moving and task.id in moving:
                text += "  (moving...)"
            meta = [m for m in (task.category, task.assignee) if m]
            if meta:
                text += f"  [{' · '.join(meta)}]"
            self.tree.insert("", "end", iid=str(task.id), text=text,
                             values=(priority_label(task.priority),), tags=(f"p{task.priority}",))
        self.header_var.set(f"{HEADER_TITLES[self.status]} ({len(tasks)})")

    def show_placeholder(self, text: str):
        self.tree.delete(*self.tree.get_children(""))
        self.tree.insert("", "end", iid="__empty__", text=text, values=("",))
        self.header_var.set(HEADER_TITLES[self.status])

    # --- Internals ---
    def _selected_task(self) -> Optional[int]:
        sel = self.tree.selection()
        if not sel or not sel[0].isdigit():
            return None
        return int(sel[0])

    def _drag_start(self, event):
        iid = self.tree.identify_row(event.y)
        self._drag_task = int(iid) if iid.isdigit() else None

    def _drag_drop(self, event):
        task_id, self._drag_task = self._drag_task, None
        if task_id is None:
            return
        target = self.winfo_containing(event.x_root, event.y_root)
        while target is not None and not isinstance(target, TaskColumn):
            target = target.master
        if target is None or target is self:
            return
        position = len(target.tree.get_children(""))  # append
        self._emit_move(task_id, target.status, position)

    def _move_adjacent(self, step: int):
        task_id = self._selected_task()
        if task_id is None:
            return "break"
        idx = STATUSES.index(self.status) + step
        if 0 <= idx < len(STATUSES):
            self._emit_move(task_id, STATUSES[idx], 0)
        return "break"

    def _menu(self, event):
        iid = self.tree.identify_row(event.y)
        if not iid.isdigit():
            return
        self.tree.selection_set(iid)
        menu = tk.Menu(self, tearoff=False)
        move_to = tk.Menu(menu, tearoff=False)
        for status in STATUSES:
            if status == self.status:
                continue
            move_to.add_command(label=HEADER_TITLES[status],
                                command=lambda s=status: self._emit_move(int(iid), s, 0))
        menu.add_cascade(label="Move to", menu=move_to)
        try:
            menu.tk_popup(event.x_root, event.y_root)
        finally:
            menu.grab_release()

    def _open(self, event):
        task_id = self._selected_task()
        if task_id is not None and self._on_open:
            self._on_open(task_id)

    def _emit_move(self, task_id: int, new_status: str, position: int):
        if self._on_move:
            self._on_move(task_id, self.status, new_status, position)


class TaskTable(ttk.Frame):
    """Filtered task list."""
    COLUMNS = ("id", "description", "status", "priority", "project", "category", "assignee")

    def __init__(self, master, on_toggle: Optional[Callable[[int], None]] = None,
                 on_open: Optional[Callable[[int], None]] = None, **kwargs):
        super().__init__(master, **kwargs)
        self._on_toggle = on_toggle
        self._on_open = on_open
        self.tree = ttk.Treeview(self, columns=self.COLUMNS, show="headings")
        widths = {"id": 50, "description": 320, "status": 100, "priority": 80,
                  "project": 140, "category": 110, "assignee": 110}
        for col in self.COLUMNS:
            self.tree.heading(col, text=col.capitalize())
            self.tree.column(col, width=widths[col], anchor="w")
        vbar = ttk.Scrollbar(self, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=vbar.set)
        self.tree.grid(row=0, column=0, sticky="nsew")
        vbar.grid(row=0, column=1, sticky="ns")
        self.rowconfigure(0, weight=1)
        self.columnconfigure(0, weight=1)
        self.tree.bind("<Double-1>", self._toggle)
        self.tree.bind("<space>", self._toggle)
        self.tree.bind("<Return>", self._open)

    def set_tasks(self, tasks: List[Task], project_names: Dict[int, str]):
        self.tree.delete(*self.tree.get_children(""))
        for t in tasks:
            self.tree.insert("", "end", iid=str(t.id), values=(
                t.id,
                t.description,
                HEADER_TITLES.get(t.status, t.status),
                priority_label(t.priority),
                project_names.get(t.project_id, "") if t.project_id else "",
                t.category or "",
                t.assignee or "",
            ))

    def _toggle(self, event=None):
        sel = self.tree.selection()
        if sel and self._on_toggle:
            self._on_toggle(int(sel[0]))

    def _open(self, event=None):
        sel = self.tree.selection()
        if sel and self._on_open:
            self._on_open(int(sel[0]))


# --- Utility: pick readable text color for a given bg ---
def _ideal_text_color(bg_hex: str) -> str:
    """Return black or white depending on background brightness."""
    bg_hex = bg_hex.strip().lstrip('#')
    if len(bg_hex) == 3:
        bg_hex = ''.join(c*2 for c in bg_hex)
    try:
        r = int(bg_hex[0:2], 16)
        g = int(bg_hex[2:4], 16)
        b = int(bg_hex[4:6], 16)
    except ValueError:
        return "black"
    luminance = 0.299*r + 0.587*g + 0.114*b
    return "black" if luminance > 186 else "white"
