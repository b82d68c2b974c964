from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from core.config import AppConfig
from core.exceptions import AuthError, TransportError
from core.models import Identity, Tokens

log = logging.getLogger(__name__)

TARGET_PREFIX = "AWSCognitoIdentityProviderService"
CONTENT_TYPE = "application/x-amz-json-1.1"

# next steps reported to the auth controller
STEP_DONE = "DONE"
STEP_CONFIRM_SIGN_UP = "CONFIRM_SIGN_UP"

NOT_CONFIRMED = "UserNotConfirmedException"
NOT_AUTHORIZED = "NotAuthorizedException"


@dataclass
class SignUpResult:
    is_complete: bool
    next_step: str
    user_sub: Optional[str] = None
    destination: Optional[str] = None


@dataclass
class SignInResult:
    is_signed_in: bool
    next_step: str
    identity: Optional[Identity] = None


def decode_claims(jwt: str) -> Dict[str, Any]:
    """Payload of a JWT without verifying it (the API verifies; we only read sub/email)."""
    try:
        payload = jwt.split(".")[1]
        payload += "=" * (-len(payload) % 4)
        return json.loads(base64.urlsafe_b64decode(payload.encode("ascii")))
    except (IndexError, ValueError):
        return {}


def identity_from_tokens(username: str, tokens: Tokens) -> Identity:
    claims = decode_claims(tokens.id_token)
    return Identity(
        username=claims.get("cognito:username") or username,
        user_id=claims.get("sub"),
        email=claims.get("email") or (username if "@" in username else None),
        tokens=tokens,
    )


class CognitoClient:
    """Cliente mínimo del API JSON de Cognito User Pools (operaciones públicas, sin secret)."""

    def __init__(self, config: AppConfig, session: Optional[requests.Session] = None):
        self.endpoint = config.cognito_endpoint
        self.client_id = config.client_id
        self.timeout = config.http_timeout
        self.session = session or requests.Session()

    # ---------- transport ----------
    def _call(self, operation: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "Content-Type": CONTENT_TYPE,
            "X-Amz-Target": f"{TARGET_PREFIX}.{operation}",
        }
        try:
            r = self.session.post(self.endpoint, data=json.dumps(payload), headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            log.error("Cognito %s transport error: %s", operation, e)
            raise TransportError(f"Could not reach the identity provider: {e}") from e
        if not r.ok:
            code, message = self._error_of(r)
            log.info("Cognito %s failed: %s %s", operation, r.status_code, code)
            raise AuthError(message, code)
        if not r.content:
            return {}
        try:
            data = r.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            log.error("Cognito %s returned a body that is not a JSON object", operation)
            raise AuthError("Identity provider returned an invalid response")
        return data

    @staticmethod
    def _error_of(r: requests.Response):
        try:
            data = r.json()
        except ValueError:
            return None, f"Identity provider error ({r.status_code})"
        code = (data.get("__type") or "").split("#")[-1] or None
        message = data.get("message") or data.get("Message") or f"Identity provider error ({r.status_code})"
        return code, message

    # ---------- sign up ----------
    def sign_up(self, username: str, password: str, email: str) -> SignUpResult:
        data = self._call("SignUp", {
            "ClientId": self.client_id,
            "Username": username,
            "Password": password,
            "UserAttributes": [{"Name": "email", "Value": email}],
        })
        confirmed = bool(data.get("UserConfirmed"))
        return SignUpResult(
            is_complete=confirmed,
            next_step=STEP_DONE if confirmed else STEP_CONFIRM_SIGN_UP,
            user_sub=data.get("UserSub"),
            destination=(data.get("CodeDeliveryDetails") or {}).get("Destination"),
        )

    def confirm_sign_up(self, username: str, code: str) -> bool:
        self._call("ConfirmSignUp", {
            "ClientId": self.client_id,
            "Username": username,
            "ConfirmationCode": code,
        })
        return True

    # ---------- sign in ----------
    def sign_in(self, username: str, password: str) -> SignInResult:
        try:
            data = self._call("InitiateAuth", {
                "ClientId": self.client_id,
                "AuthFlow": "USER_PASSWORD_AUTH",
                "AuthParameters": {"USERNAME": username, "PASSWORD": password},
            })
        except AuthError as e:
            if e.code == NOT_CONFIRMED:
                return SignInResult(is_signed_in=False, next_step=STEP_CONFIRM_SIGN_UP)
            raise
        result = data.get("AuthenticationResult")
        if not result:
            # MFA, NEW_PASSWORD_REQUIRED...
            return SignInResult(is_signed_in=False, next_step=data.get("ChallengeName") or "UNKNOWN")
        tokens = Tokens.from_auth_result(result)
        return SignInResult(is_signed_in=True, next_step=STEP_DONE, identity=identity_from_tokens(username, tokens))

    def refresh(self, refresh_token: str) -> Tokens:
        data = self._call("InitiateAuth", {
            "ClientId": self.client_id,
            "AuthFlow": "REFRESH_TOKEN_AUTH",
            "AuthParameters": {"REFRESH_TOKEN": refresh_token},
        })
        result = data.get("AuthenticationResult")
        if not result:
            raise AuthError("Token refresh returned no tokens", NOT_AUTHORIZED)
        return Tokens.from_auth_result(result, refresh_token=refresh_token)

    # ---------- session ----------
    def global_sign_out(self, access_token: str) -> None:
        self._call("GlobalSignOut", {"AccessToken": access_token})
