# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from controller.app_controller import AppController
from controller.auth_controller import AuthController
from controller.task_controller import TaskController
from core.config import AppConfig
from services.session_store import SessionStore
from storage.task_api import TaskApiClient

from .fakes import FakeCognito, FakeTaskBackend

API_URL = "https://api.example.com/prod"


@pytest.fixture()
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        user_pool_id="eu-north-1_TEST",
        client_id="client123",
        region="eu-north-1",
        api_url=API_URL,
        http_timeout=5.0,
        session_file=None,
        log_dir=tmp_path / "logs",
    )


@pytest.fixture()
def cognito() -> FakeCognito:
    idp = FakeCognito()
    idp.add_user("ann@example.com", "Secret123!", confirmed=True)
    return idp


@pytest.fixture()
def backend() -> FakeTaskBackend:
    return FakeTaskBackend(API_URL)


@pytest.fixture()
def session_store(cognito: FakeCognito) -> SessionStore:
    return SessionStore(cognito)


@pytest.fixture()
def auth(cognito: FakeCognito, session_store: SessionStore) -> AuthController:
    return AuthController(cognito, session_store)


@pytest.fixture()
def api(config: AppConfig, session_store: SessionStore, backend: FakeTaskBackend) -> TaskApiClient:
    return TaskApiClient(config, session_store, session=backend)


@pytest.fixture()
def tasks(api: TaskApiClient, auth: AuthController) -> TaskController:
    return TaskController(api, lambda: auth.is_authenticated)


@pytest.fixture()
def signed_in(auth: AuthController, tasks: TaskController) -> TaskController:
    """TaskController with ann@example.com already signed in."""
    auth.sign_in("ann@example.com", "Secret123!")
    assert auth.is_authenticated
    return tasks


@pytest.fixture()
def app(config: AppConfig, cognito: FakeCognito, backend: FakeTaskBackend) -> AppController:
    return AppController(config, http=backend, provider=cognito)
