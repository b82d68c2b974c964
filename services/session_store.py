from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from core.exceptions import AuthError, TransportError
from core.models import Identity, TokenResult, Tokens
from services.cognito_service import CognitoClient

log = logging.getLogger(__name__)


class SessionStore:
    """Dueño exclusivo de la identidad actual. Nadie más la modifica."""

    def __init__(self, provider: CognitoClient, session_file: Optional[Path] = None):
        self.provider = provider
        self.session_file = session_file
        self._identity: Optional[Identity] = None

    # ---------- identity ----------
    def current_identity(self) -> Optional[Identity]:
        return self._identity

    def set_identity(self, identity: Identity) -> None:
        self._identity = identity
        self._save()

    def clear(self) -> None:
        self._identity = None
        if self.session_file and self.session_file.exists():
            try:
                self.session_file.unlink()
            except OSError as e:
                log.warning("Could not remove session file %s: %s", self.session_file, e)

    # ---------- tokens ----------
    def refresh_token(self) -> TokenResult:
        """Force a refresh and return the new id token, or why there is none."""
        identity = self._identity
        if identity is None or identity.tokens is None or not identity.tokens.refresh_token:
            return TokenResult(no_session=True)
        try:
            tokens = self.provider.refresh(identity.tokens.refresh_token)
        except TransportError as e:
            log.warning("Token refresh unavailable: %s", e)
            return TokenResult(error=e)
        except AuthError as e:
            # refresh token revoked/expired: signed out
            log.info("Token refresh rejected (%s); clearing session", e.code)
            self.clear()
            return TokenResult(no_session=True, error=e)
        identity.tokens = tokens
        return TokenResult(token=tokens.id_token)

    def get_token(self) -> Optional[str]:
        """Id token or None; "not signed in" and "token service down" look the same here."""
        return self.refresh_token().token

    # ---------- persistence ----------
    def _save(self) -> None:
        if not self.session_file or self._identity is None or self._identity.tokens is None:
            return
        data = {
            "username": self._identity.username,
            "user_id": self._identity.user_id,
            "email": self._identity.email,
            "refresh_token": self._identity.tokens.refresh_token,
        }
        try:
            self.session_file.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.session_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(json.dumps(data))
            # O_CREAT mode does not apply to a file that already existed
            os.chmod(self.session_file, 0o600)
        except OSError as e:
            log.warning("Could not persist session to %s: %s", self.session_file, e)

    def restore(self) -> Optional[Identity]:
        """Load a persisted session (without tokens other than the refresh token)."""
        if not self.session_file or not self.session_file.exists():
            return None
        try:
            data = json.loads(self.session_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable session file %s: %s", self.session_file, e)
            return None
        refresh = data.get("refresh_token")
        if not refresh or not data.get("username"):
            return None
        self._identity = Identity(
            username=data["username"],
            user_id=data.get("user_id"),
            email=data.get("email"),
            tokens=Tokens(id_token="", access_token="", refresh_token=refresh),
        )
        return self._identity
