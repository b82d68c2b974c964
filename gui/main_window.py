import datetime as dt
import logging
import tkinter as tk
from tkinter import ttk, messagebox as mb
from typing import Optional

from controller.app_controller import AppController
from core.models import FILTERS, Task
from gui.auth_panel import AuthPanel
from gui.task_list import ScrollableTaskList

log = logging.getLogger(__name__)


def _fmt(ts: Optional[dt.datetime]) -> str:
    if ts is None:
        return "-"
    return ts.astimezone().strftime("%Y-%m-%d %H:%M")


def task_row(task: Task) -> dict:
    return {
        "id": task.id,
        "text": task.description,
        "status": task.status,
        "pending": task.is_pending,
        "meta": f"Created: {_fmt(task.created_at)} · Deadline: {_fmt(task.deadline)}",
    }


class MainWindow(tk.Tk):
    def __init__(self, controller: AppController):
        super().__init__()
        self.controller = controller
        self.title("Todo App")
        self.geometry(controller.config.window_geometry)
        self.configure(padx=8, pady=8)
        if controller.config.topmost:
            self.attributes("-topmost", True)

        self.auth_panel = AuthPanel(self, controller.auth, on_change=self.render)
        self.task_panel = TaskPanel(self, controller)

        self.bind("<F5>", lambda e: self.task_panel.reload())
        self.render()

    def render(self):
        if self.controller.auth.is_authenticated:
            self.auth_panel.pack_forget()
            self.task_panel.pack(fill="both", expand=True)
            self.task_panel.render()
        else:
            self.task_panel.pack_forget()
            self.auth_panel.pack(fill="both", expand=True)
            self.auth_panel.render()


class TaskPanel(ttk.Frame):
    def __init__(self, parent: MainWindow, controller: AppController):
        super().__init__(parent)
        self.window = parent
        self.controller = controller
        self.filter = "all"
        self.last_sync: Optional[dt.datetime] = None

        # Header: user + sign out
        header = ttk.Frame(self)
        header.pack(fill="x", pady=(0, 6))
        ttk.Label(header, text="📝 My Todo List", font=("Segoe UI", 14, "bold")).pack(side="left")
        ttk.Button(header, text="Sign Out", command=self._on_sign_out).pack(side="right")
        self.user_var = tk.StringVar()
        ttk.Label(header, textvariable=self.user_var).pack(side="right", padx=6)

        self.error_var = tk.StringVar()
        ttk.Label(self, textvariable=self.error_var, foreground="#B00020", wraplength=500).pack(fill="x")

        # Quick add
        add = ttk.Frame(self)
        add.pack(fill="x", pady=(6, 4))
        self.entry = ttk.Entry(add)
        self.entry.pack(side="left", fill="x", expand=True, padx=(0, 6))
        self.entry.bind("<Return>", self._on_add)
        self.add_btn = ttk.Button(add, text="Add Task", command=self._on_add)
        self.add_btn.pack(side="left")

        # Filters
        bar = ttk.Frame(self)
        bar.pack(fill="x", pady=(0, 4))
        self.filter_btns = {}
        for name in FILTERS:
            btn = ttk.Button(bar, command=lambda n=name: self._on_filter(n))
            btn.pack(side="left", padx=(0, 4))
            self.filter_btns[name] = btn

        self.task_list = ScrollableTaskList(self, on_complete=self._on_complete, on_delete=self._on_delete)
        self.task_list.pack(fill="both", expand=True)

        self.status_var = tk.StringVar(value="Ready")
        ttk.Label(self, textvariable=self.status_var, foreground="#6B7280").pack(anchor="w", pady=(4, 0))

    # ---------- render ----------
    def render(self):
        tasks = self.controller.tasks
        self.user_var.set(self.controller.auth.username or "")
        self.error_var.set(self.controller.error)
        counts = tasks.counts()
        for name, btn in self.filter_btns.items():
            label = f"{name.capitalize()} ({counts[name]})"
            btn.configure(text=f"• {label}" if name == self.filter else label)
        rows = [task_row(t) for t in tasks.filtered_by(self.filter)]
        self.task_list.set_tasks(rows, enabled=not tasks.loading)
        if self.last_sync:
            self.status_var.set(f"Synced {self.last_sync.strftime('%H:%M:%S')} · {counts['all']} items")

    def _done(self, ok: bool):
        if ok:
            self.last_sync = dt.datetime.now()
        self.window.render()

    def _busy(self):
        self.status_var.set("Loading tasks...")
        self.add_btn.configure(state="disabled")
        self.update_idletasks()

    def _idle(self):
        self.add_btn.configure(state="normal")

    # ---------- actions ----------
    def reload(self):
        if not self.controller.auth.is_authenticated:
            return
        self._busy()
        try:
            self._done(self.controller.tasks.load())
        finally:
            self._idle()

    def _on_add(self, event=None):
        self._busy()
        try:
            ok = self.controller.tasks.create(self.entry.get())
            if ok:
                self.entry.delete(0, "end")
            self._done(ok)
        finally:
            self._idle()

    def _on_complete(self, task_id: str):
        self._busy()
        try:
            self._done(self.controller.tasks.complete(task_id))
        finally:
            self._idle()

    def _on_delete(self, task_id: str):
        task = self.controller.tasks.get(task_id)
        text = task.description if task else task_id

        def confirm() -> bool:
            return mb.askyesno("Delete", f"Are you sure you want to delete this task?\n\n{text}", parent=self)

        self._busy()
        try:
            self._done(self.controller.tasks.remove(task_id, confirm))
        finally:
            self._idle()

    def _on_filter(self, name: str):
        self.filter = name
        self.render()

    def _on_sign_out(self):
        self.controller.auth.sign_out()
        self.last_sync = None
        self.window.render()
