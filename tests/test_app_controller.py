# tests/test_app_controller.py

from __future__ import annotations

from controller.app_controller import AppController
from core.models import SessionState

from .fakes import FakeCognito, FakeTaskBackend


def test_sign_in_loads_items_verbatim(app: AppController, backend: FakeTaskBackend) -> None:
    backend.add("write report")
    backend.add("pay rent", "Completed")

    assert app.auth.sign_in("ann@example.com", "Secret123!") == SessionState.AUTHENTICATED

    assert backend.count("GET", "/tasks") == 1
    assert [t.raw for t in app.tasks.tasks] == backend.items
    assert app.error == ""


def test_sign_out_clears_tasks(app: AppController, backend: FakeTaskBackend, cognito: FakeCognito) -> None:
    backend.add("write report")
    app.auth.sign_in("ann@example.com", "Secret123!")
    assert app.tasks.tasks

    app.auth.sign_out()

    assert app.tasks.tasks == []
    assert "global_sign_out" in cognito.calls
    assert app.tasks.load() is False


def test_unconfirmed_sign_in_never_loads(app: AppController, backend: FakeTaskBackend,
                                         cognito: FakeCognito) -> None:
    cognito.add_user("eve@example.com", "Passw0rd!", confirmed=False)
    app.auth.sign_in("eve@example.com", "Passw0rd!")
    assert app.auth.state == SessionState.PENDING_CONFIRMATION
    assert app.error
    assert backend.requests == []


def test_start_without_session_is_anonymous(app: AppController) -> None:
    assert app.start() == SessionState.ANONYMOUS
    assert app.error == ""


def test_task_error_shown_when_authenticated(app: AppController, backend: FakeTaskBackend) -> None:
    app.auth.sign_in("ann@example.com", "Secret123!")
    backend.fail["GET"] = 503
    app.tasks.load()
    assert "HTTP 503" in app.error
