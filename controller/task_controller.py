from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterator, List, Optional

from core.exceptions import AuthError, BusyError, TodoError, ValidationError
from core.models import FILTERS, Task, TaskStatus
from storage.task_api import TaskApiClient

log = logging.getLogger(__name__)

Confirm = Callable[[], bool]


class TaskController:
    """View model of the task list: cached tasks, filters, and the four operations.

    The cached list is only ever replaced by a full ``load()``. A failed
    operation leaves it untouched and records ``error`` instead.
    """

    def __init__(self, api: TaskApiClient, is_authenticated: Callable[[], bool]):
        self.api = api
        self._is_authenticated = is_authenticated
        self.tasks: List[Task] = []
        self.loading = False
        self.error = ""
        self._lock = threading.Lock()

    # ---------- runner ----------
    def _run(self, action: str, fn: Callable[[], None]) -> bool:
        if not self._lock.acquire(blocking=False):
            self.error = str(BusyError("Another operation is in progress."))
            log.warning("Rejected %s: %s", action, self.error)
            return False
        self.loading = True
        self.error = ""
        try:
            if not self._is_authenticated():
                raise AuthError("You must be signed in.")
            fn()
            return True
        except TodoError as e:
            self.error = str(e)
            log.error("Error %s: %s", action, e)
            return False
        finally:
            self.loading = False
            self._lock.release()

    def _fetch(self) -> None:
        items = self.api.list_tasks()
        self.tasks = [Task.from_item(i) for i in items]
        log.debug("Loaded %d tasks", len(self.tasks))

    # ---------- operations ----------
    def load(self) -> bool:
        return self._run("loading tasks", self._fetch)

    def create(self, description: str) -> bool:
        text = (description or "").strip()
        if not text:
            self.error = str(ValidationError("Task description cannot be empty."))
            return False

        def do():
            self.api.create_task(text)
            self._fetch()
        return self._run("creating task", do)

    def set_status(self, task_id: str, status: str) -> bool:
        def do():
            self.api.update_status(task_id, _status_value(status))
            self._fetch()
        return self._run("updating task", do)

    def complete(self, task_id: str) -> bool:
        return self.set_status(task_id, TaskStatus.COMPLETED.value)

    def remove(self, task_id: str, confirm: Confirm) -> bool:
        """Delete after ``confirm()`` says yes; no request at all otherwise.

        The prompt is skipped when the delete could not run anyway.
        """
        if not self._is_authenticated():
            self.error = str(AuthError("You must be signed in."))
            return False
        if self._lock.locked():
            self.error = str(BusyError("Another operation is in progress."))
            log.warning("Rejected deleting task: %s", self.error)
            return False
        if not confirm():
            log.debug("Delete of %s cancelled", task_id)
            return False

        def do():
            self.api.delete_task(task_id)
            self._fetch()
        return self._run("deleting task", do)

    def clear(self) -> None:
        self.tasks = []
        self.error = ""

    # ---------- views ----------
    def filtered_by(self, criterion: str = "all") -> Iterator[Task]:
        if (criterion or "").lower() not in FILTERS:
            raise ValidationError(f"Unknown filter: {criterion}")
        return (t for t in self.tasks if t.matches(criterion))

    def counts(self) -> Dict[str, int]:
        out = {name: 0 for name in FILTERS}
        out["all"] = len(self.tasks)
        for t in self.tasks:
            key = t.status.lower()
            if key in out and key != "all":
                out[key] += 1
        return out

    def get(self, task_id: str) -> Optional[Task]:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None


def _status_value(status: str) -> str:
    for s in TaskStatus:
        if s.value.lower() == (status or "").lower():
            return s.value
    raise ValidationError(f"Unknown status: {status}")
