"""Configuración inmutable leída del entorno (+ .env opcional) una sola vez al arrancar."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from core.exceptions import ConfigError

ENV_PREFIX = "TODO"
DEFAULT_REGION = "eu-north-1"
DEFAULT_TIMEOUT = 10.0
DEFAULT_GEOMETRY = "560x640"


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _first(env: Mapping[str, str], *names: str, default: str = "") -> str:
    for n in names:
        v = env.get(n)
        if v is not None and v.strip() != "":
            return v.strip()
    return default


def _as_bool(raw: str, default: bool) -> bool:
    if not raw:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _as_float(raw: str, default: float) -> float:
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class AppConfig:
    # ---- identity provider ----
    user_pool_id: str
    client_id: str
    region: str

    # ---- task API ----
    api_url: str
    http_timeout: float = DEFAULT_TIMEOUT

    # ---- local ----
    session_file: Optional[Path] = None
    log_dir: Path = Path(".local/todo")

    # ---- UI ----
    topmost: bool = False
    window_geometry: str = DEFAULT_GEOMETRY

    @property
    def cognito_endpoint(self) -> str:
        return f"https://cognito-idp.{self.region}.amazonaws.com/"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build the config from ``environ`` (defaults to ``os.environ`` after loading .env).

        The ``REACT_APP_*`` names used by the web deployment are accepted as fallbacks.
        """
        if environ is None:
            load_dotenv(override=False)
            environ = os.environ

        session_raw = _first(environ, _k("SESSION_FILE"))
        return cls(
            user_pool_id=_first(environ, _k("USER_POOL_ID"), "REACT_APP_USER_POOL_ID"),
            client_id=_first(environ, _k("USER_POOL_CLIENT_ID"), "REACT_APP_USER_POOL_CLIENT_ID"),
            region=_first(environ, _k("REGION"), "REACT_APP_REGION", default=DEFAULT_REGION),
            api_url=_first(environ, _k("API_URL"), "REACT_APP_API_URL").rstrip("/"),
            http_timeout=_as_float(_first(environ, _k("HTTP_TIMEOUT")), DEFAULT_TIMEOUT),
            session_file=Path(session_raw).expanduser() if session_raw else None,
            log_dir=Path(_first(environ, _k("LOG_DIR"), default=".local/todo")).expanduser(),
            topmost=_as_bool(_first(environ, _k("TOPMOST")), False),
            window_geometry=_first(environ, _k("WINDOW_GEOMETRY"), default=DEFAULT_GEOMETRY),
        )

    def missing(self) -> List[str]:
        names = []
        if not self.user_pool_id:
            names.append(_k("USER_POOL_ID"))
        if not self.client_id:
            names.append(_k("USER_POOL_CLIENT_ID"))
        if not self.api_url:
            names.append(_k("API_URL"))
        return names

    def validate(self) -> "AppConfig":
        missing = self.missing()
        if missing:
            raise ConfigError(f"Missing configuration: {', '.join(missing)}")
        return self
