"""
domain/exceptions.py
──────────────────────────────────────────────────────────────────────────────
Custom exception hierarchy.

All exceptions are rooted at HSClassifierError so callers can catch broadly
(except HSClassifierError) or narrowly (except PredictionError).

Form validation problems are NOT exceptions: validate_submission() reports
them as a structured ValidationOutcome.

Where each one is turned into a user-facing message:
  LLMError / PredictionError / ExplanationError → generic classify error
  DatabaseError                                 → "not saved" notice
  AuthenticationError                           → login form message
  ConfigurationError                            → startup failure
"""
from __future__ import annotations


class HSClassifierError(Exception):
    """Base exception for all application errors."""


class ConfigurationError(HSClassifierError):
    """Raised when required configuration is missing or invalid."""


class AuthenticationError(HSClassifierError):
    """Raised when sign-in, sign-up or token refresh fails.

    ``code`` carries the provider's error code (e.g. ``EMAIL_EXISTS``) when
    one was returned; ``str(exc)`` is safe to show to the user.
    """

    def __init__(self, message: str, code: str = "") -> None:
        super().__init__(message)
        self.code = code


class LLMError(HSClassifierError):
    """Raised when the LLM API call fails or returns unparseable output."""


class PredictionError(LLMError):
    """Raised when the HS code prediction call fails or is malformed."""


class ExplanationError(LLMError):
    """Raised when the explanation call fails or is malformed."""


class DatabaseError(HSClassifierError):
    """Raised when a history store operation fails."""
