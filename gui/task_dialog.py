"""
Task edit form
--------------
Modal Toplevel with the fields a task carries besides its status
(description, priority, project, category, assignee, due date, estimate,
tags). Status is changed on the board only.
"""
from __future__ import annotations
import dataclasses
from typing import Callable, Dict, Optional, Sequence
import tkinter as tk
from tkinter import ttk, messagebox as mb

from core.models import PRIORITY_LABELS, Project, Task, format_due_date, parse_due_date, priority_label

NO_PROJECT = "No project"

SaveCallback = Callable[[Task, Task], None]


class TaskDialog(tk.Toplevel):
    """Calls ``on_save(original, edited)`` with an edited copy of the task."""

    def __init__(self, master, task: Task, projects: Sequence[Project], on_save: SaveCallback):
        super().__init__(master)
        self.title(f"Edit task #{task.id}")
        self.transient(master)
        self.resizable(False, False)
        self.task = task
        self._on_save = on_save
        self._project_ids: Dict[str, Optional[int]] = {NO_PROJECT: None}
        self._project_ids.update({f"{p.id} · {p.name}": p.id for p in projects})
        project_key = next((k for k, v in self._project_ids.items() if v == task.project_id), NO_PROJECT)

        self.vars = {
            "description": tk.StringVar(value=task.description),
            "priority": tk.StringVar(value=priority_label(task.priority)),
            "project": tk.StringVar(value=project_key),
            "category": tk.StringVar(value=task.category or ""),
            "assignee": tk.StringVar(value=task.assignee or ""),
            "due_date": tk.StringVar(value=format_due_date(task.due_date)),
            "estimated_hours": tk.StringVar(value=f"{task.estimated_hours:g}" if task.estimated_hours else ""),
            "tags": tk.StringVar(value=", ".join(task.tags)),
        }

        form = ttk.Frame(self, padding=10)
        form.pack(fill="both", expand=True)
        description = ttk.Entry(form, textvariable=self.vars["description"], width=42)
        rows = [
            ("Description", description),
            ("Priority", ttk.Combobox(form, textvariable=self.vars["priority"], values=PRIORITY_LABELS,
                                      state="readonly", width=12)),
            ("Project", ttk.Combobox(form, textvariable=self.vars["project"], values=list(self._project_ids),
                                     state="readonly", width=28)),
            ("Category", ttk.Entry(form, textvariable=self.vars["category"])),
            ("Assignee", ttk.Entry(form, textvariable=self.vars["assignee"])),
            ("Due date (YYYY-MM-DD)", ttk.Entry(form, textvariable=self.vars["due_date"])),
            ("Estimated hours", ttk.Entry(form, textvariable=self.vars["estimated_hours"])),
            ("Tags (comma separated)", ttk.Entry(form, textvariable=self.vars["tags"])),
        ]
        for row, (label, widget) in enumerate(rows):
            ttk.Label(form, text=label).grid(row=row, column=0, sticky="w", pady=2)
            widget.grid(row=row, column=1, sticky="ew", pady=2, padx=(8, 0))
        form.columnconfigure(1, weight=1)

        buttons = ttk.Frame(form)
        buttons.grid(row=len(rows), column=0, columnspan=2, sticky="e", pady=(8, 0))
        ttk.Button(buttons, text="Cancel", command=self.destroy).pack(side="right")
        ttk.Button(buttons, text="Save", command=self._save).pack(side="right", padx=(0, 6))
        self.bind("<Return>", lambda e: self._save())
        self.bind("<Escape>", lambda e: self.destroy())

        description.focus_set()
        self.grab_set()

    def _save(self):
        values = {k: var.get().strip() for k, var in self.vars.items()}
        try:
            due_date = parse_due_date(values["due_date"])
            hours = float(values["estimated_hours"]) if values["estimated_hours"] else None
        except ValueError:
            mb.showerror("Edit task", "Due date must be YYYY-MM-DD and hours a number.", parent=self)
            return
        edited = dataclasses.replace(
            self.task,
            description=values["description"],
            priority=PRIORITY_LABELS.index(values["priority"]),
            project_id=self._project_ids.get(values["project"]),
            category=values["category"] or None,
            assignee=values["assignee"] or None,
            due_date=due_date,
            estimated_hours=hours,
            tags=[t.strip() for t in values["tags"].split(",") if t.strip()],
        )
        self.destroy()
        self._on_save(self.task, edited)
