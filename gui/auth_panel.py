import tkinter as tk
from tkinter import ttk
from typing import Callable

from controller.auth_controller import AuthController
from core.models import SessionState


class AuthPanel(ttk.Frame):
    """Sign in / sign up / confirmation form."""
    def __init__(self, parent, auth: AuthController, on_change: Callable[[], None]):
        super().__init__(parent, padding=16)
        self.auth = auth
        self._on_change = on_change
        self.is_sign_up = False

        ttk.Label(self, text="📝 Todo App", font=("Segoe UI", 16, "bold")).pack(pady=(0, 6))
        self.title_var = tk.StringVar()
        ttk.Label(self, textvariable=self.title_var, font=("Segoe UI", 12)).pack(pady=(0, 8))

        self.error_var = tk.StringVar()
        self.error_lbl = ttk.Label(self, textvariable=self.error_var, foreground="#B00020", wraplength=360)
        self.error_lbl.pack(fill="x")
        self.info_var = tk.StringVar()
        ttk.Label(self, textvariable=self.info_var, foreground="#2563EB", wraplength=360).pack(fill="x")

        # credentials
        self.creds = ttk.Frame(self)
        ttk.Label(self.creds, text="Email").pack(anchor="w")
        self.email = ttk.Entry(self.creds, width=36)
        self.email.pack(fill="x", pady=(0, 6))
        ttk.Label(self.creds, text="Password").pack(anchor="w")
        self.password = ttk.Entry(self.creds, width=36, show="•")
        self.password.pack(fill="x", pady=(0, 6))
        self.password.bind("<Return>", self._submit)

        # confirmation
        self.confirm_frame = ttk.Frame(self)
        ttk.Label(self.confirm_frame, text="Confirmation Code").pack(anchor="w")
        self.code = ttk.Entry(self.confirm_frame, width=36)
        self.code.pack(fill="x", pady=(0, 6))
        self.code.bind("<Return>", self._submit)

        self.submit_btn = ttk.Button(self, command=self._submit)
        self.toggle_btn = ttk.Button(self, command=self._toggle)
        self.render()

    # ---------- render ----------
    def render(self):
        pending = self.auth.state == SessionState.PENDING_CONFIRMATION
        for w in (self.creds, self.confirm_frame, self.submit_btn, self.toggle_btn):
            w.pack_forget()
        if pending:
            self.title_var.set("Confirm Account")
            self.confirm_frame.pack(fill="x", pady=(8, 0))
            self.submit_btn.configure(text="Confirm Account")
            self.toggle_btn.configure(text="Back to Sign In")
        else:
            self.title_var.set("Sign Up" if self.is_sign_up else "Sign In")
            self.creds.pack(fill="x", pady=(8, 0))
            self.submit_btn.configure(text="Sign Up" if self.is_sign_up else "Sign In")
            self.toggle_btn.configure(
                text="Already have an account? Sign In" if self.is_sign_up else "Don't have an account? Sign Up")
        self.submit_btn.pack(fill="x", pady=(4, 4))
        self.toggle_btn.pack()
        busy = "disabled" if self.auth.busy else "normal"
        self.submit_btn.configure(state=busy)
        self.error_var.set(self.auth.error)
        self.info_var.set(self.auth.message)

    # ---------- actions ----------
    def _submit(self, event=None):
        if self.auth.busy:
            return
        self.submit_btn.configure(state="disabled", text="Loading...")
        self.update_idletasks()
        email, password = self.email.get(), self.password.get()
        if self.auth.state == SessionState.PENDING_CONFIRMATION:
            self.auth.confirm(email, self.code.get())
            if self.auth.state != SessionState.PENDING_CONFIRMATION:
                self.code.delete(0, "end")
        elif self.is_sign_up:
            self.auth.sign_up(email, password)
        else:
            self.auth.sign_in(email, password)
        self._after_action()

    def _toggle(self):
        if self.auth.state == SessionState.PENDING_CONFIRMATION:
            self.auth.back_to_sign_in()
            self.is_sign_up = False
        else:
            self.is_sign_up = not self.is_sign_up
            self.auth.error = ""
            self.auth.message = ""
        self._after_action()

    def _after_action(self):
        if self.auth.is_authenticated:
            self.password.delete(0, "end")
        self.render()
        self._on_change()
