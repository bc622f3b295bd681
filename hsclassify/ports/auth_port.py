"""
ports/auth_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for the hosted authentication provider.

The core only consumes ``AuthSession.uid`` (the history partition key);
everything else is used by the login screen.

Current implementation: FirebaseAuthAdapter (Identity Toolkit REST API)
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from hsclassify.domain.models import AuthSession, Credentials


@runtime_checkable
class AuthPort(Protocol):
    """Contract for an email/password identity provider."""

    def sign_in(self, credentials: Credentials) -> AuthSession:
        """Sign an existing user in.

        Raises:
            AuthenticationError: With a user-facing message on failure.
        """
        ...

    def sign_up(self, credentials: Credentials) -> AuthSession:
        """Register a new user and sign them in.

        Raises:
            AuthenticationError: With a user-facing message on failure.
        """
        ...

    def refresh(self, session: AuthSession) -> AuthSession:
        """Exchange the refresh token for a fresh id token.

        Raises:
            AuthenticationError: If the refresh token is no longer valid.
        """
        ...
