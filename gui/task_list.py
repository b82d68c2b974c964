"""
Scrollable task list widget
---------------------------
Each task is its own row (a Frame) inside a scrollable Canvas, with:
- the description and a colored status tag
- Created / Deadline line
- "✓ Complete" (only for Pending tasks) and "🗑 Delete" buttons

The widget holds view state only. Actions go back to the caller through the
``on_complete`` / ``on_delete`` callbacks; rows are rebuilt with ``set_tasks()``.
"""
from __future__ import annotations
from typing import Callable, Dict, List, Optional
import tkinter as tk
from tkinter import ttk

STATUS_COLORS = {
    "pending": "#F59E0B",
    "completed": "#10B981",
    "expired": "#B00020",
}


class TaskRow(ttk.Frame):
    def __init__(
        self,
        master,
        task_id: str,
        text: str,
        status: str,
        meta: str = "",
        pending: bool = False,
        on_complete: Optional[Callable[[str], None]] = None,
        on_delete: Optional[Callable[[str], None]] = None,
        wrap: int = 400,
        enabled: bool = True,
    ):
        super().__init__(master)
        self.task_id = task_id
        self._on_complete = on_complete
        self._on_delete = on_delete
        self.columnconfigure(0, weight=1)

        self.lbl = ttk.Label(self, text=text, wraplength=wrap, anchor="w", justify="left",
                             style=f"Task.{status.capitalize()}.TLabel")
        self.lbl.grid(row=0, column=0, sticky="we", padx=(8, 6), pady=(4, 0))

        info = ttk.Frame(self)
        info.grid(row=1, column=0, sticky="w", padx=(8, 6), pady=(2, 4))
        color = STATUS_COLORS.get(status.lower(), "#CBD5E1")
        tk.Label(info, text=status, bg=color, fg=_ideal_text_color(color), padx=4, pady=1).pack(side="left")
        if meta:
            ttk.Label(info, text=meta, foreground="#6B7280").pack(side="left", padx=(6, 0))

        state = "normal" if enabled else "disabled"
        col = 1
        if pending:
            self.complete_btn = ttk.Button(self, text="✓ Complete", command=self._complete, state=state)
            self.complete_btn.grid(row=0, column=col, rowspan=2, padx=(0, 4))
            col += 1
        self.delete_btn = ttk.Button(self, text="🗑 Delete", command=self._delete, state=state)
        self.delete_btn.grid(row=0, column=col, rowspan=2, padx=(0, 8))

    def _complete(self):
        if self._on_complete:
            self._on_complete(self.task_id)

    def _delete(self):
        if self._on_delete:
            self._on_delete(self.task_id)


class ScrollableTaskList(ttk.Frame):
    """Canvas + interior Frame with mousewheel support."""
    def __init__(
        self,
        master,
        on_complete: Optional[Callable[[str], None]] = None,
        on_delete: Optional[Callable[[str], None]] = None,
        row_wrap: int = 400,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._on_complete = on_complete
        self._on_delete = on_delete
        self._row_wrap = row_wrap
        self._rows: Dict[str, TaskRow] = {}
        self._empty: Optional[ttk.Label] = None

        style = ttk.Style(self)
        style.configure("Task.Pending.TLabel")
        style.configure("Task.Completed.TLabel", foreground="#888888")
        style.configure("Task.Expired.TLabel", foreground="#B00020")

        self.canvas = tk.Canvas(self, highlightthickness=0)
        self.vbar = ttk.Scrollbar(self, orient="vertical", command=self.canvas.yview)
        self.canvas.configure(yscrollcommand=self.vbar.set)
        self.canvas.grid(row=0, column=0, sticky="nsew")
        self.vbar.grid(row=0, column=1, sticky="ns")
        self.rowconfigure(0, weight=1)
        self.columnconfigure(0, weight=1)

        self.interior = ttk.Frame(self.canvas)
        self.interior.columnconfigure(0, weight=1)
        self._win_id = self.canvas.create_window(0, 0, window=self.interior, anchor="nw")

        self.interior.bind("<Configure>", lambda _: self._update_scrollregion())
        self.canvas.bind("<Configure>", self._on_canvas_configure)
        self.canvas.bind_all("<MouseWheel>", self._on_mousewheel_windows_mac, add="+")
        self.canvas.bind_all("<Button-4>", self._on_mousewheel_linux, add="+")
        self.canvas.bind_all("<Button-5>", self._on_mousewheel_linux, add="+")

    # --- Public API ---
    def set_tasks(self, tasks: List[Dict], enabled: bool = True, empty_text: str = "No tasks found"):
        """Replace all rows. Each dict: {'id', 'text', 'status', 'meta'}."""
        for row in list(self._rows.values()):
            row.destroy()
        self._rows.clear()
        if self._empty is not None:
            self._empty.destroy()
            self._empty = None

        if not tasks:
            self._empty = ttk.Label(self.interior, text=empty_text, foreground="#6B7280")
            self._empty.grid(row=0, column=0, pady=24)

        for i, task in enumerate(tasks):
            row = TaskRow(
                self.interior,
                task_id=task["id"],
                text=task.get("text", ""),
                status=task.get("status", ""),
                meta=task.get("meta", ""),
                pending=task.get("pending", False),
                on_complete=self._on_complete,
                on_delete=self._on_delete,
                wrap=self._row_wrap,
                enabled=enabled,
            )
            row.grid(row=i, column=0, sticky="we", padx=(4, 4), pady=2)
            self._rows[task["id"]] = row
        self._update_scrollregion()

    # --- Internals ---
    def _update_scrollregion(self):
        self.canvas.configure(scrollregion=self.canvas.bbox("all"))

    def _on_canvas_configure(self, event):
        self.canvas.itemconfigure(self._win_id, width=event.width)
        for row in self._rows.values():
            row.lbl.configure(wraplength=max(event.width - 220, 120))  # room for buttons

    def _on_mousewheel_windows_mac(self, event):
        self.canvas.yview_scroll(int(-1 * (event.delta / 120)), "units")

    def _on_mousewheel_linux(self, event):
        if event.num == 4:
            self.canvas.yview_scroll(-1, "units")
        elif event.num == 5:
            self.canvas.yview_scroll(1, "units")


def _ideal_text_color(bg_hex: str) -> str:
    """Black or white depending on background brightness."""
    bg_hex = bg_hex.strip().lstrip('#')
    if len(bg_hex) == 3:
        bg_hex = ''.join(c * 2 for c in bg_hex)
    try:
        r = int(bg_hex[0:2], 16)
        g = int(bg_hex[2:4], 16)
        b = int(bg_hex[4:6], 16)
    except ValueError:
        return "black"
    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    return "black" if luminance > 186 else "white"
