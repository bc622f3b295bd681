"""
adapters/firebase_auth.py
──────────────────────────────────────────────────────────────────────────────
Implements AuthPort using the Firebase Authentication REST API.

Endpoints:
  accounts:signInWithPassword  → sign_in
  accounts:signUp              → sign_up
  securetoken v1/token         → refresh (refresh_token grant)

Provider error codes (``{"error": {"message": "EMAIL_EXISTS"}}``) are mapped
to user-facing messages; the raw code stays on AuthenticationError.code.

Required env vars:
  FIREBASE_API_KEY — Web API key of the Firebase project
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import requests

from hsclassify.config.settings import Settings
from hsclassify.domain.exceptions import AuthenticationError
from hsclassify.domain.models import AuthSession, Credentials

logger = logging.getLogger(__name__)

_IDENTITY_URL = "https://identitytoolkit.googleapis.com/v1/accounts"
_SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

# Firebase id tokens live for one hour unless the response says otherwise.
TOKEN_TTL_SECONDS: int = 3600

_WRONG_CREDENTIALS = "The email or password is incorrect."
_SESSION_EXPIRED = "Your session has expired. Please sign in again."

_ERROR_MESSAGES: dict[str, str] = {
    "EMAIL_NOT_FOUND": _WRONG_CREDENTIALS,
    "INVALID_PASSWORD": _WRONG_CREDENTIALS,
    "INVALID_LOGIN_CREDENTIALS": _WRONG_CREDENTIALS,
    "EMAIL_EXISTS": "This email is already registered.",
    "INVALID_EMAIL": "The email format is not valid.",
    "WEAK_PASSWORD": "The password is too weak.",
    "USER_DISABLED": "This account has been disabled.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
    "TOKEN_EXPIRED": _SESSION_EXPIRED,
    "INVALID_REFRESH_TOKEN": _SESSION_EXPIRED,
    "USER_NOT_FOUND": _SESSION_EXPIRED,
}
_DEFAULT_MESSAGE = "Could not process your request."


def _error_code(resp: requests.Response) -> str:
    """Extract the provider code, e.g. 'WEAK_PASSWORD : Password should…' → 'WEAK_PASSWORD'."""
    try:
        message = resp.json().get("error", {}).get("message", "")
    except ValueError:
        return ""
    return message.split(" ", 1)[0].strip() if message else ""


class FirebaseAuthAdapter:
    """Email/password sign-in against Firebase Authentication.

    Usage (injected by container.py — do not instantiate manually):
        auth = FirebaseAuthAdapter(settings)
        session = auth.sign_in(Credentials(email=…, password=…))
    """

    def __init__(self, settings: Settings) -> None:
        if not settings.firebase_api_key:
            raise AuthenticationError(
                "FIREBASE_API_KEY is not set. "
                "Add it to your .env file or environment.",
                code="CONFIGURATION",
            )
        self._settings = settings
        self._params = {"key": settings.firebase_api_key}
        logger.debug("FirebaseAuthAdapter initialised")

    # ── AuthPort implementation ────────────────────────────────────────────

    def sign_in(self, credentials: Credentials) -> AuthSession:
        data = self._post_identity("signInWithPassword", credentials)
        logger.info("Signed in | uid=%s", data.get("localId"))
        return self._session_from_identity(data)

    def sign_up(self, credentials: Credentials) -> AuthSession:
        data = self._post_identity("signUp", credentials)
        logger.info("Signed up | uid=%s", data.get("localId"))
        return self._session_from_identity(data)

    def refresh(self, session: AuthSession) -> AuthSession:
        """Exchange the refresh token for a new id token.

        Raises:
            AuthenticationError: If the refresh token was revoked or expired.
        """
        logger.info("Refreshing id token | uid=%s", session.uid)
        data = self._post(
            _SECURE_TOKEN_URL,
            data={
                "grant_type": "refresh_token",
                "refresh_token": session.refresh_token,
            },
        )
        if "id_token" not in data:
            raise AuthenticationError(_SESSION_EXPIRED, code="MALFORMED_RESPONSE")
        return AuthSession(
            uid=data.get("user_id", session.uid),
            email=session.email,
            id_token=data["id_token"],
            refresh_token=data.get("refresh_token", session.refresh_token),
            expires_at=_expiry(data.get("expires_in")),
        )

    # ── Private helpers ────────────────────────────────────────────────────

    def _post_identity(self, action: str, credentials: Credentials) -> dict:
        return self._post(
            f"{_IDENTITY_URL}:{action}",
            json={
                "email": credentials.email,
                "password": credentials.password,
                "returnSecureToken": True,
            },
        )

    def _post(self, url: str, **kwargs) -> dict:
        """POST to a Firebase endpoint; return the JSON body or raise AuthenticationError."""
        try:
            resp = requests.post(
                url,
                params=self._params,
                timeout=self._settings.auth_timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            logger.error("Firebase auth request failed: %s", exc)
            raise AuthenticationError(
                "Could not reach the authentication service.", code="NETWORK"
            ) from exc

        if not resp.ok:
            code = _error_code(resp)
            logger.warning("Firebase auth HTTP %d: %s", resp.status_code, code or resp.text[:200])
            raise AuthenticationError(_ERROR_MESSAGES.get(code, _DEFAULT_MESSAGE), code=code)

        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("Firebase auth returned a non-JSON body: %s", resp.text[:200])
            raise AuthenticationError(_DEFAULT_MESSAGE, code="MALFORMED_RESPONSE") from exc
        if not isinstance(data, dict):
            raise AuthenticationError(_DEFAULT_MESSAGE, code="MALFORMED_RESPONSE")
        return data

    @staticmethod
    def _session_from_identity(data: dict) -> AuthSession:
        try:
            return AuthSession(
                uid=data["localId"],
                email=data.get("email", ""),
                id_token=data.get("idToken", ""),
                refresh_token=data.get("refreshToken", ""),
                expires_at=_expiry(data.get("expiresIn")),
            )
        except KeyError as exc:
            raise AuthenticationError(_DEFAULT_MESSAGE, code="MALFORMED_RESPONSE") from exc


def _expiry(expires_in: str | int | None) -> datetime:
    """Firebase returns the TTL in seconds as a string."""
    try:
        ttl = int(expires_in) if expires_in is not None else TOKEN_TTL_SECONDS
    except (TypeError, ValueError):
        ttl = TOKEN_TTL_SECONDS
    return datetime.now(timezone.utc) + timedelta(seconds=ttl)
