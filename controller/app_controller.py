import logging
from typing import Optional

import requests

from controller.auth_controller import AuthController
from controller.task_controller import TaskController
from core.config import AppConfig
from core.models import SessionState
from services.cognito_service import CognitoClient
from services.session_store import SessionStore
from storage.task_api import TaskApiClient

log = logging.getLogger(__name__)


class AppController:
    """Coordina la UI con Cognito, la sesión y el API de tareas."""
    def __init__(self, config: AppConfig, http: Optional[requests.Session] = None,
                 provider: Optional[CognitoClient] = None):
        self.config = config
        http = http or requests.Session()
        self.provider = provider or CognitoClient(config, session=http)
        self.session_store = SessionStore(self.provider, session_file=config.session_file)
        self.api = TaskApiClient(config, self.session_store, session=http)
        self.auth = AuthController(self.provider, self.session_store)
        self.tasks = TaskController(self.api, lambda: self.auth.is_authenticated)
        self.auth.add_listener(self._on_session_change)

    # ---- session -> tasks ----
    def _on_session_change(self, state: SessionState):
        if state == SessionState.AUTHENTICATED:
            self.tasks.load()
        elif state == SessionState.ANONYMOUS:
            self.tasks.clear()

    def start(self) -> SessionState:
        return self.auth.check_user()

    @property
    def error(self) -> str:
        """Error to show: the most relevant of auth and task errors."""
        if self.auth.is_authenticated:
            return self.tasks.error or self.auth.error
        return self.auth.error
