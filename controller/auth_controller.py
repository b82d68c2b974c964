from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from core.exceptions import AuthError, TodoError, ValidationError
from core.models import SessionState
from services.cognito_service import STEP_CONFIRM_SIGN_UP, CognitoClient, identity_from_tokens
from services.session_store import SessionStore

log = logging.getLogger(__name__)

MSG_CODE_SENT = "A confirmation code has been sent to your email."
MSG_NOT_CONFIRMED = "Your account is not confirmed. Please enter the confirmation code sent to your email."
MSG_SIGN_IN_INCOMPLETE = "Sign in incomplete. Please try again."
MSG_CONFIRMED = "Account confirmed. Please sign in."

Listener = Callable[[SessionState], None]


class AuthController:
    """Máquina de estados de sesión: Anonymous -> PendingConfirmation -> Authenticated.

    Every public action returns the resulting state. Failures end up in
    ``error`` (last one wins) and never propagate to the caller.
    """

    def __init__(self, provider: CognitoClient, session_store: SessionStore):
        self.provider = provider
        self.session_store = session_store
        self.state = SessionState.ANONYMOUS
        self.error = ""
        self.message = ""
        self.busy = False
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []
        # kept in memory only, for the sign-in that follows a confirmation
        self._pending_email: Optional[str] = None
        self._pending_password: Optional[str] = None

    # ---- listeners ----
    def add_listener(self, callback: Listener) -> None:
        self._listeners.append(callback)

    def _set_state(self, state: SessionState) -> None:
        if state == self.state:
            return
        log.info("Session state %s -> %s", self.state.value, state.value)
        self.state = state
        for cb in list(self._listeners):
            cb(state)

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED

    @property
    def username(self) -> Optional[str]:
        identity = self.session_store.current_identity()
        return identity.username if identity else None

    @property
    def pending_email(self) -> Optional[str]:
        return self._pending_email

    # ---- runner ----
    def _run(self, action: str, fn: Callable[[], None], default_error: str) -> SessionState:
        if not self._lock.acquire(blocking=False):
            log.warning("Ignoring %s: another auth action is in progress", action)
            return self.state
        self.busy = True
        self.error = ""
        self.message = ""
        try:
            fn()
        except TodoError as e:
            self.error = str(e) or default_error
            log.error("%s error: %s", action, self.error)
        finally:
            self.busy = False
            self._lock.release()
        return self.state

    # ---- actions ----
    def sign_up(self, email: str, password: str) -> SessionState:
        def do():
            e, p = _require(email, password)
            result = self.provider.sign_up(e, p, e)
            log.info("Sign up result: complete=%s next=%s", result.is_complete, result.next_step)
            if result.is_complete:
                self._sign_in(e, p)
            elif result.next_step == STEP_CONFIRM_SIGN_UP:
                self._remember(e, p)
                self._set_state(SessionState.PENDING_CONFIRMATION)
                self.message = MSG_CODE_SENT
        return self._run("Sign up", do, "Failed to sign up. Please try again.")

    def confirm(self, email: str, code: str) -> SessionState:
        def do():
            if self.state != SessionState.PENDING_CONFIRMATION:
                raise ValidationError("There is no sign up waiting for confirmation.")
            e = (email or self._pending_email or "").strip()
            c = (code or "").strip()
            if not e or not c:
                raise ValidationError("Email and confirmation code are required.")
            self.provider.confirm_sign_up(e, c)
            password = self._pending_password
            if password and self._pending_email == e:
                # the account is confirmed now; a failed sign-in goes back to the sign-in form
                try:
                    self._sign_in(e, password)
                except TodoError:
                    self._forget()
                    self._set_state(SessionState.ANONYMOUS)
                    raise
            else:
                self._forget()
                self._set_state(SessionState.ANONYMOUS)
                self.message = MSG_CONFIRMED
        return self._run("Confirmation", do, "Invalid confirmation code.")

    def sign_in(self, email: str, password: str) -> SessionState:
        def do():
            e, p = _require(email, password)
            try:
                self._sign_in(e, p)
            except TodoError:
                self._set_state(SessionState.ANONYMOUS)
                raise
        return self._run("Sign in", do, "Failed to sign in. Please check your credentials.")

    def sign_out(self) -> SessionState:
        def do():
            try:
                if self.session_store.refresh_token().ok:
                    identity = self.session_store.current_identity()
                    self.provider.global_sign_out(identity.tokens.access_token)
            except TodoError as e:
                # local sign out still happens
                log.warning("Global sign out failed: %s", e)
            finally:
                self.session_store.clear()
                self._forget()
                self._set_state(SessionState.ANONYMOUS)
            self.message = "Signed out."
        return self._run("Sign out", do, "Failed to sign out.")

    def check_user(self) -> SessionState:
        """Restore a previous session at startup; no user-visible error if there is none."""
        def do():
            identity = self.session_store.current_identity() or self.session_store.restore()
            if identity is None:
                self._set_state(SessionState.ANONYMOUS)
                return
            result = self.session_store.refresh_token()
            if result.ok:
                self.session_store.set_identity(identity_from_tokens(identity.username, identity.tokens))
                self._set_state(SessionState.AUTHENTICATED)
            elif result.no_session:
                self._set_state(SessionState.ANONYMOUS)
            else:
                # token service unreachable: keep the local session, the first API call reports it
                log.warning("Could not verify restored session: %s", result.error)
                self._set_state(SessionState.AUTHENTICATED)
        return self._run("Session check", do, "Could not restore the session.")

    def back_to_sign_in(self) -> SessionState:
        def do():
            self._forget()
            self._set_state(SessionState.ANONYMOUS)
        return self._run("Back to sign in", do, "")

    # ---- helpers ----
    def _sign_in(self, email: str, password: str) -> None:
        result = self.provider.sign_in(email, password)
        log.info("Sign in result: signed_in=%s next=%s", result.is_signed_in, result.next_step)
        if result.is_signed_in:
            self.session_store.set_identity(result.identity)
            self._forget()
            self._set_state(SessionState.AUTHENTICATED)
        elif result.next_step == STEP_CONFIRM_SIGN_UP:
            self._remember(email, password)
            self._set_state(SessionState.PENDING_CONFIRMATION)
            self.error = MSG_NOT_CONFIRMED
        else:
            # MFA and other challenges are not supported
            raise AuthError(MSG_SIGN_IN_INCOMPLETE, result.next_step)

    def _remember(self, email: str, password: str) -> None:
        self._pending_email = email
        self._pending_password = password

    def _forget(self) -> None:
        self._pending_email = None
        self._pending_password = None


def _require(email: str, password: str):
    e = (email or "").strip()
    if not e or not password:
        raise ValidationError("Email and password are required.")
    return e, password
