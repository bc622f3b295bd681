"""
domain/models.py
──────────────────────────────────────────────────────────────────────────────
Pure domain objects — Pydantic models with no imports from adapters or ports.

These models are the lingua franca of the entire system:
  • adapters produce and consume them
  • services orchestrate them
  • interfaces (CLI, Streamlit) serialise them

JSON field names follow the provider contract: the HS code is ``hsCode`` on
the wire and ``hs_code`` in Python.  Dump with ``by_alias=True`` whenever the
output leaves the process (history documents, exports).
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

MIN_DESCRIPTION_LENGTH = 10
MIN_PASSWORD_LENGTH = 6

SIGN_IN_REQUIRED = "You must be signed in to save classifications."

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Field name → label used in human-readable validation messages
_FIELD_LABELS = {
    "brand": "Brand",
    "description": "Description",
    "user_id": "User",
    "email": "Email",
    "password": "Password",
}


# ── Input ──────────────────────────────────────────────────────────────────────

class ClassificationRequest(BaseModel):
    """Validated product submission.  Built per request, never mutated."""

    model_config = ConfigDict(frozen=True)

    brand: str = Field("", max_length=200,
                       description="Product brand; may be empty")
    description: str = Field(..., max_length=4000,
                             description="Free-text product description")
    user_id: Optional[str] = Field(None,
                                   description="Signed-in user id (persistence partition key)")

    @field_validator("brand")
    @classmethod
    def strip_brand(cls, v: str) -> str:
        return v.strip()

    @field_validator("description")
    @classmethod
    def check_description_length(cls, v: str) -> str:
        if len(v) < MIN_DESCRIPTION_LENGTH:
            raise PydanticCustomError(
                "description_too_short",
                "Description must be at least {min_length} characters.",
                {"min_length": MIN_DESCRIPTION_LENGTH},
            )
        return v

    @field_validator("user_id")
    @classmethod
    def blank_user_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ValidationOutcome(BaseModel):
    """Result of validate_submission(): a request or a list of messages."""

    request: Optional[ClassificationRequest] = None
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.request is not None and not self.errors


def validation_messages(exc: ValidationError) -> list[str]:
    """Turn a pydantic ValidationError into form-level messages."""
    messages = []
    for err in exc.errors():
        field = str(err["loc"][0]) if err.get("loc") else ""
        label = _FIELD_LABELS.get(field, field or "Input")
        if err["type"] == "missing":
            messages.append(f"{label} is required.")
        elif err["type"] in ("description_too_short", "invalid_email", "password_too_short"):
            messages.append(err["msg"])
        else:
            messages.append(f"{label}: {err['msg']}")
    return messages


def validate_submission(
    raw: Mapping[str, Any],
    require_user: bool = False,
) -> ValidationOutcome:
    """Validate a raw form submission without raising.

    Args:
        raw:          Mapping with ``brand``, ``description`` and optionally
                      ``user_id``.
        require_user: When True a non-empty ``user_id`` is mandatory.

    Returns:
        ValidationOutcome holding either the typed request or the messages.
    """
    errors: list[str] = []
    request: Optional[ClassificationRequest] = None
    try:
        request = ClassificationRequest.model_validate(dict(raw))
    except ValidationError as exc:
        errors.extend(validation_messages(exc))

    if require_user and not str(raw.get("user_id") or "").strip():
        errors.append(SIGN_IN_REQUIRED)

    if errors:
        return ValidationOutcome(errors=errors)
    return ValidationOutcome(request=request)


# ── Provider outputs ───────────────────────────────────────────────────────────

def _reject_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v


class PredictionResult(BaseModel):
    """Output of the prediction call: ``{hsCode, explanation}``.

    Text is kept exactly as the provider returned it; blank values are
    rejected, never trimmed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    hs_code: str = Field(..., alias="hsCode", min_length=1)
    explanation: str = Field(..., min_length=1)

    @field_validator("hs_code", "explanation")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        return _reject_blank(v)


class ExplanationResult(BaseModel):
    """Output of the explanation call: ``{explanation}``."""

    model_config = ConfigDict(frozen=True)

    explanation: str = Field(..., min_length=1)

    @field_validator("explanation")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        return _reject_blank(v)


class ResultData(BaseModel):
    """Both provider outputs of one classification run, verbatim."""

    model_config = ConfigDict(frozen=True)

    prediction: PredictionResult
    explanation: ExplanationResult

    @property
    def hs_code(self) -> str:
        return self.prediction.hs_code


# ── History ────────────────────────────────────────────────────────────────────

class HistoryItem(BaseModel):
    """One persisted classification record, owned by exactly one user."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id:          str
    user_id:     str = Field(..., alias="userId")
    brand:       str = ""
    description: str
    result:      ResultData
    timestamp:   datetime

    @property
    def label(self) -> str:
        """Short sidebar label: brand (if any) + HS code."""
        prefix = f"{self.brand} · " if self.brand else ""
        return f"{prefix}{self.result.hs_code}"

    def to_dict(self) -> dict:
        """Serialise to a JSON-safe dict with wire field names."""
        return self.model_dump(mode="json", by_alias=True)


# ── Pipeline output ────────────────────────────────────────────────────────────

class ActionResponse(BaseModel):
    """Structured outcome of ClassifierPipeline.classify().

    ``success`` is False only when no result could be produced.  A result
    that was computed but could not be written to history comes back with
    ``success=True``, ``saved=False`` and a notice in ``error``.
    """

    success:      bool
    data:         Optional[ResultData]  = None
    error:        Optional[str]         = None
    saved:        bool                  = False
    history_item: Optional[HistoryItem] = None

    @classmethod
    def failure(cls, error: str) -> "ActionResponse":
        return cls(success=False, error=error)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ── Authentication ─────────────────────────────────────────────────────────────

class Credentials(BaseModel):
    """Email/password pair entered in the login dialog."""

    email:    str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip()
        if not _EMAIL_RE.match(v):
            raise PydanticCustomError(
                "invalid_email", "Please enter a valid email address."
            )
        return v

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise PydanticCustomError(
                "password_too_short",
                "Password must be at least {min_length} characters.",
                {"min_length": MIN_PASSWORD_LENGTH},
            )
        return v


class AuthSession(BaseModel):
    """A signed-in user as issued by the authentication provider."""

    uid:           str
    email:         str = ""
    id_token:      str = Field("", repr=False)
    refresh_token: str = Field("", repr=False)
    expires_at:    datetime = Field(
                       default_factory=lambda: datetime.now(timezone.utc)
                   )

    def needs_refresh(self, margin_seconds: int = 120) -> bool:
        """True when the id token expires within ``margin_seconds``."""
        deadline = datetime.now(timezone.utc) + timedelta(seconds=margin_seconds)
        return self.expires_at <= deadline
