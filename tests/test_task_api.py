# tests/test_task_api.py

from __future__ import annotations

import pytest

from controller.auth_controller import AuthController
from core.exceptions import AuthExpired, HttpError, TransportError
from storage.task_api import TaskApiClient

from .fakes import FakeCognito, FakeResponse, FakeTaskBackend


@pytest.fixture()
def ready(auth: AuthController) -> None:
    auth.sign_in("ann@example.com", "Secret123!")


def test_every_call_refreshes_and_attaches_token(ready, api: TaskApiClient, backend: FakeTaskBackend,
                                                cognito: FakeCognito) -> None:
    backend.add("one")
    api.list_tasks()
    api.list_tasks()

    assert cognito.calls.count("refresh") == 2
    tokens = [headers["Authorization"] for _, _, _, headers in backend.requests]
    assert all(tokens)
    assert tokens[0] != tokens[1]
    assert not tokens[0].startswith("Bearer ")


def test_crud_paths_and_bodies(ready, api: TaskApiClient, backend: FakeTaskBackend) -> None:
    created = api.create_task("buy milk")
    task_id = created["SK"].split("#")[1]
    api.update_status(task_id, "Completed")
    assert api.delete_task(task_id) is None

    methods = [(m, p, body) for m, p, body, _ in backend.requests]
    assert methods == [
        ("POST", "/tasks", {"Description": "buy milk"}),
        ("PUT", f"/tasks/{task_id}", {"Status": "Completed"}),
        ("DELETE", f"/tasks/{task_id}", None),
    ]
    assert backend.requests[0][3]["Content-Type"] == "application/json"
    assert "Content-Type" not in backend.requests[2][3]


def test_non_2xx_is_http_error_with_server_detail(ready, api: TaskApiClient, backend: FakeTaskBackend) -> None:
    backend.fail["GET"] = 500
    with pytest.raises(HttpError) as exc:
        api.list_tasks()
    assert exc.value.status == 500
    assert "Failed to fetch tasks" in str(exc.value)
    assert "Internal server error" in str(exc.value)


def test_connection_error_is_transport_error(ready, api: TaskApiClient, backend: FakeTaskBackend) -> None:
    backend.raise_transport = True
    with pytest.raises(TransportError):
        api.list_tasks()


def test_no_session_raises_auth_expired_without_request(api: TaskApiClient, backend: FakeTaskBackend) -> None:
    with pytest.raises(AuthExpired):
        api.list_tasks()
    assert backend.requests == []


def test_token_service_outage_is_transport_error(ready, api: TaskApiClient, backend: FakeTaskBackend,
                                                 cognito: FakeCognito) -> None:
    cognito.refresh_failure = "transport"
    with pytest.raises(TransportError):
        api.list_tasks()
    assert backend.requests == []


@pytest.mark.parametrize("response", [
    FakeResponse(200, [{"SK": "TASK#1"}]),
    FakeResponse(200, {"Items": "nope"}),
    FakeResponse(200, text="<html>gateway</html>"),
])
def test_malformed_task_list_is_http_error(ready, api: TaskApiClient, backend: FakeTaskBackend,
                                           response: FakeResponse) -> None:
    backend.replies[("GET", "/tasks")] = response
    with pytest.raises(HttpError) as exc:
        api.list_tasks()
    assert exc.value.status == 200
    assert "unexpected response" in str(exc.value)
