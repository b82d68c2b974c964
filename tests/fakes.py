# tests/fakes.py

from __future__ import annotations

import base64
import json
import uuid
from dataclasses import dataclass, field
from typing import Any

import requests

from core.exceptions import AuthError, TransportError
from core.models import Tokens
from services.cognito_service import (
    STEP_CONFIRM_SIGN_UP,
    STEP_DONE,
    SignInResult,
    SignUpResult,
    identity_from_tokens,
)


def make_jwt(claims: dict[str, Any]) -> str:
    def enc(obj: dict[str, Any]) -> str:
        raw = base64.urlsafe_b64encode(json.dumps(obj).encode()).decode()
        return raw.rstrip("=")

    return f"{enc({'alg': 'none'})}.{enc(claims)}.sig"


class FakeResponse:
    """Just enough of requests.Response for the clients."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        if text is not None:
            self.content = text.encode()
        elif payload is None:
            self.content = b""
        else:
            self.content = json.dumps(payload).encode()

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        return json.loads(self.content.decode())


@dataclass
class FakeUser:
    password: str
    confirmed: bool = False
    code: str = "123456"
    sub: str = field(default_factory=lambda: str(uuid.uuid4()))


class FakeCognito:
    """
    In-memory identity provider with the CognitoClient interface.

    - users: email -> FakeUser
    - require_confirmation: new sign-ups start unconfirmed
    - refresh_failure: None | "auth" | "transport"
    - challenge: if set, sign_in returns this next step (MFA etc.)
    """

    def __init__(self, require_confirmation: bool = True) -> None:
        self.users: dict[str, FakeUser] = {}
        self.require_confirmation = require_confirmation
        self.refresh_failure: str | None = None
        self.sign_out_failure: Exception | None = None
        self.challenge: str | None = None
        self.calls: list[str] = []
        self.signed_out: list[str] = []
        self._refresh_tokens: dict[str, str] = {}

    def add_user(self, email: str, password: str, confirmed: bool = True) -> FakeUser:
        user = FakeUser(password=password, confirmed=confirmed)
        self.users[email] = user
        return user

    def _tokens(self, email: str) -> Tokens:
        user = self.users[email]
        refresh = self._refresh_tokens.setdefault(email, f"refresh-{uuid.uuid4().hex}")
        return Tokens(
            id_token=make_jwt({"sub": user.sub, "email": email, "cognito:username": email, "n": uuid.uuid4().hex}),
            access_token=f"access-{uuid.uuid4().hex}",
            refresh_token=refresh,
        )

    def sign_up(self, username: str, password: str, email: str) -> SignUpResult:
        self.calls.append("sign_up")
        if username in self.users:
            raise AuthError("User already exists", "UsernameExistsException")
        user = self.add_user(username, password, confirmed=not self.require_confirmation)
        if user.confirmed:
            return SignUpResult(is_complete=True, next_step=STEP_DONE, user_sub=user.sub)
        return SignUpResult(is_complete=False, next_step=STEP_CONFIRM_SIGN_UP, user_sub=user.sub)

    def confirm_sign_up(self, username: str, code: str) -> bool:
        self.calls.append("confirm_sign_up")
        user = self.users.get(username)
        if user is None or user.code != code:
            raise AuthError("Invalid verification code provided, please try again.", "CodeMismatchException")
        user.confirmed = True
        return True

    def sign_in(self, username: str, password: str) -> SignInResult:
        self.calls.append("sign_in")
        user = self.users.get(username)
        if user is None or user.password != password:
            raise AuthError("Incorrect username or password.", "NotAuthorizedException")
        if not user.confirmed:
            return SignInResult(is_signed_in=False, next_step=STEP_CONFIRM_SIGN_UP)
        if self.challenge:
            return SignInResult(is_signed_in=False, next_step=self.challenge)
        return SignInResult(is_signed_in=True, next_step=STEP_DONE,
                            identity=identity_from_tokens(username, self._tokens(username)))

    def refresh(self, refresh_token: str) -> Tokens:
        self.calls.append("refresh")
        if self.refresh_failure == "transport":
            raise TransportError("connection refused")
        if self.refresh_failure == "auth":
            raise AuthError("Refresh Token has expired", "NotAuthorizedException")
        for email, token in self._refresh_tokens.items():
            if token == refresh_token:
                return self._tokens(email)
        raise AuthError("Invalid Refresh Token", "NotAuthorizedException")

    def global_sign_out(self, access_token: str) -> None:
        self.calls.append("global_sign_out")
        if self.sign_out_failure is not None:
            raise self.sign_out_failure
        self.signed_out.append(access_token)


class FakeTaskBackend:
    """
    Fake requests.Session serving the task API from memory.

    Items are stored the way the backend does: SK = "TASK#<id>".
    ``fail`` maps a method to a status code returned once by the next matching call.
    """

    def __init__(self, base_url: str = "https://api.example.com/prod") -> None:
        self.base_url = base_url
        self.items: list[dict[str, Any]] = []
        self.requests: list[tuple[str, str, Any, dict[str, str]]] = []
        self.fail: dict[str, int] = {}
        self.raise_transport: bool = False
        # (method, path) -> canned response, e.g. a malformed body
        self.replies: dict[tuple[str, str], FakeResponse] = {}

    def add(self, description: str, status: str = "Pending") -> dict[str, Any]:
        task_id = uuid.uuid4().hex[:8]
        item = {
            "PK": "USER#u1",
            "SK": f"TASK#{task_id}",
            "Description": description,
            "Status": status,
            "Date": "2025-01-01T10:00:00Z",
            "Deadline": "2025-01-02T10:00:00Z",
        }
        self.items.append(item)
        return item

    def count(self, method: str, path: str | None = None) -> int:
        return sum(1 for m, p, _, _ in self.requests if m == method and (path is None or p == path))

    def request(self, method: str, url: str, json: Any = None, headers: dict[str, str] | None = None,
                timeout: float | None = None) -> FakeResponse:
        path = url[len(self.base_url):]
        self.requests.append((method, path, json, dict(headers or {})))
        if self.raise_transport:
            raise requests.ConnectionError("connection refused")
        if method in self.fail:
            return FakeResponse(self.fail.pop(method), {"message": "Internal server error"})
        if (method, path) in self.replies:
            return self.replies[(method, path)]

        if path == "/tasks" and method == "GET":
            return FakeResponse(200, {"Items": [dict(i) for i in self.items], "Count": len(self.items)})
        if path == "/tasks" and method == "POST":
            return FakeResponse(201, self.add(json["Description"]))

        task_id = path.rsplit("/", 1)[-1]
        item = next((i for i in self.items if i["SK"] == f"TASK#{task_id}"), None)
        if item is None:
            return FakeResponse(404, {"message": "Task not found"})
        if method == "PUT":
            item["Status"] = json["Status"]
            return FakeResponse(200, item)
        if method == "DELETE":
            self.items.remove(item)
            return FakeResponse(204)
        return FakeResponse(405, {"message": "Method not allowed"})


class FakeCognitoHttp:
    """Fake requests.Session for CognitoClient: queue of responses, records posted operations."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.posts: list[tuple[str, dict[str, Any], dict[str, str]]] = []

    def post(self, url: str, data: str = "", headers: dict[str, str] | None = None,
             timeout: float | None = None) -> FakeResponse:
        self.posts.append((url, json.loads(data), dict(headers or {})))
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt
