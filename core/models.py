from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

SORT_KEY_SEPARATOR = "#"


class SessionState(str, Enum):
    ANONYMOUS = "Anonymous"
    PENDING_CONFIRMATION = "PendingConfirmation"
    AUTHENTICATED = "Authenticated"


class TaskStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    EXPIRED = "Expired"


FILTERS = ("all", "pending", "completed", "expired")


@dataclass
class Tokens:
    id_token: str
    access_token: str
    refresh_token: Optional[str] = None

    @classmethod
    def from_auth_result(cls, result: Dict[str, Any], refresh_token: Optional[str] = None) -> "Tokens":
        # REFRESH_TOKEN_AUTH does not return a new refresh token
        return cls(
            id_token=result["IdToken"],
            access_token=result["AccessToken"],
            refresh_token=result.get("RefreshToken") or refresh_token,
        )


@dataclass
class Identity:
    username: str
    user_id: Optional[str] = None  # Cognito sub
    email: Optional[str] = None
    tokens: Optional[Tokens] = None


@dataclass
class TokenResult:
    """Outcome of a forced token refresh.

    ``token`` is set on success; ``no_session`` tells "not signed in" apart
    from ``error`` (the token service could not be reached).
    """
    token: Optional[str] = None
    no_session: bool = False
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.token is not None


def task_id_from_sort_key(sort_key: str) -> str:
    """Task id embedded in the backend sort key.

    The API stores tasks under ``SK = "TASK#<id>"``; the id is the second
    ``#``-separated component. Keys without a separator are returned as-is.
    """
    parts = (sort_key or "").split(SORT_KEY_SEPARATOR)
    if len(parts) < 2:
        return sort_key or ""
    return parts[1]


def parse_timestamp(value: Any) -> Optional[dt.datetime]:
    if not value:
        return None
    try:
        return dt.datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass
class Task:
    id: str
    description: str
    status: str
    sort_key: str = ""
    created_at: Optional[dt.datetime] = None
    deadline: Optional[dt.datetime] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Task":
        sort_key = item.get("SK") or ""
        task_id = item.get("TaskId") or task_id_from_sort_key(sort_key)
        return cls(
            id=task_id,
            description=item.get("Description") or "",
            status=item.get("Status") or TaskStatus.PENDING.value,
            sort_key=sort_key,
            created_at=parse_timestamp(item.get("Date")),
            deadline=parse_timestamp(item.get("Deadline")),
            raw=dict(item),
        )

    @property
    def is_pending(self) -> bool:
        return self.status == TaskStatus.PENDING.value

    def matches(self, criterion: str) -> bool:
        return criterion.lower() == "all" or self.status.lower() == criterion.lower()
