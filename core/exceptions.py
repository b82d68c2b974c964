from typing import Optional


class TodoError(Exception):
    """Base de todos los errores de la app."""


class ConfigError(TodoError):
    pass


class ValidationError(TodoError):
    """Input rejected before any network call."""


class BusyError(TodoError):
    """Another operation is still running."""


class AuthError(TodoError):
    """Identity provider rejected the request (bad credentials, unconfirmed account, ...)."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class AuthExpired(AuthError):
    """No usable session: the user is effectively signed out."""

    def __init__(self, message: str = "Your session has expired. Please sign in again.", code: Optional[str] = None):
        super().__init__(message, code)


class HttpError(TodoError):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status

    def __str__(self) -> str:
        return f"{self.args[0]} (HTTP {self.status})"


class TransportError(TodoError):
    """DNS, timeout, connection refused..."""
