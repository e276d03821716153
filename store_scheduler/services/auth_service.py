"""Admin session issuing and validation."""

from __future__ import annotations

import secrets
from threading import RLock
from typing import Optional

from store_scheduler.utils.config import Settings, get_settings


class AuthenticationError(Exception):
    """Base authentication failure."""


class AdminSecretNotConfiguredError(AuthenticationError):
    """Raised when ADMIN_SECRET is missing."""


class InvalidAdminSecretError(AuthenticationError):
    """Raised when the provided admin secret is wrong."""


class AuthService:
    """Exchanges the admin secret for session tokens carried in a cookie."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._sessions: set[str] = set()
        self._lock = RLock()

    @property
    def auth_enabled(self) -> bool:
        return bool(self._settings.admin_secret)

    @property
    def cookie_name(self) -> str:
        return self._settings.admin_cookie_name

    def _expected_secret(self) -> str:
        if not self._settings.admin_secret:
            raise AdminSecretNotConfiguredError(
                "ADMIN_SECRET is not configured. Set ADMIN_SECRET in environment variables."
            )
        return self._settings.admin_secret

    def login(self, provided_secret: str) -> str:
        expected = self._expected_secret()
        if not secrets.compare_digest(provided_secret.encode(), expected.encode()):
            raise InvalidAdminSecretError("Invalid admin secret")
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions.add(token)
        return token

    def logout(self, session_token: Optional[str]) -> None:
        if not session_token:
            return
        with self._lock:
            self._sessions.discard(session_token)

    def is_admin_session(self, cookie: Optional[str]) -> bool:
        if not self.auth_enabled:
            return True
        if not cookie:
            return False
        with self._lock:
            sessions = list(self._sessions)
        return any(secrets.compare_digest(cookie.encode(), token.encode()) for token in sessions)
