from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from core.config import AppConfig
from core.exceptions import AuthExpired, HttpError, TransportError
from services.session_store import SessionStore

log = logging.getLogger(__name__)


class TaskApiClient:
    """Authorized fetcher for the task API: fresh token on every call, no retries."""

    def __init__(self, config: AppConfig, session_store: SessionStore, session: Optional[requests.Session] = None):
        self.base_url = config.api_url.rstrip("/")
        self.timeout = config.http_timeout
        self.session_store = session_store
        self.session = session or requests.Session()
        self.last_status: Optional[int] = None

    # ---------- core ----------
    def call(self, method: str, path: str, body: Optional[Dict[str, Any]] = None,
             error_message: str = "Request failed") -> Any:
        result = self.session_store.refresh_token()
        if not result.ok:
            if result.no_session:
                raise AuthExpired()
            raise TransportError(f"Could not refresh the session token: {result.error}")

        # API Gateway's Cognito authorizer takes the raw JWT
        headers = {"Authorization": result.token}
        if body is not None:
            headers["Content-Type"] = "application/json"

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            r = self.session.request(method, url, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            log.error("%s %s transport error: %s", method, path, e)
            raise TransportError(f"{error_message}: {e}") from e
        self.last_status = r.status_code

        if not r.ok:
            detail = self._detail_of(r)
            log.warning("%s %s -> %s %s", method, path, r.status_code, detail or "")
            raise HttpError(r.status_code, f"{error_message}: {detail}" if detail else error_message)

        if r.status_code == 204 or not r.content:
            return None
        try:
            return r.json()
        except ValueError:
            log.warning("%s %s -> %s with a non-JSON body", method, path, r.status_code)
            raise HttpError(r.status_code, f"{error_message}: unexpected response")

    @staticmethod
    def _detail_of(r: requests.Response) -> Optional[str]:
        try:
            data = r.json()
        except ValueError:
            return None
        if isinstance(data, dict):
            return data.get("message") or data.get("Message") or data.get("error")
        return None

    # ---------- tasks ----------
    def list_tasks(self) -> List[Dict[str, Any]]:
        data = self.call("GET", "/tasks", error_message="Failed to fetch tasks")
        if data is None:
            return []
        items = (data.get("Items") or []) if isinstance(data, dict) else None
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise HttpError(self.last_status, "Failed to fetch tasks: unexpected response")
        return items

    def create_task(self, description: str) -> Dict[str, Any]:
        return self.call("POST", "/tasks", {"Description": description}, error_message="Failed to create task")

    def update_status(self, task_id: str, status: str) -> Dict[str, Any]:
        return self.call("PUT", f"/tasks/{task_id}", {"Status": status}, error_message="Failed to update task")

    def delete_task(self, task_id: str) -> None:
        self.call("DELETE", f"/tasks/{task_id}", error_message="Failed to delete task")
