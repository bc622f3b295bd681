"""
tests/unit/test_models.py
──────────────────────────────────────────────────────────────────────────────
Unit tests for domain model validation (Pydantic).

Tests cover:
  • validate_submission: description length rule, user requirement,
    structured (non-raising) failures
  • hsCode alias on PredictionResult
  • HistoryItem / ActionResponse serialisation
  • Credentials rules and AuthSession expiry
"""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from hsclassify.domain.models import (
    MIN_DESCRIPTION_LENGTH,
    SIGN_IN_REQUIRED,
    ActionResponse,
    AuthSession,
    ClassificationRequest,
    Credentials,
    ExplanationResult,
    HistoryItem,
    PredictionResult,
    ResultData,
    validate_submission,
    validation_messages,
)

LENGTH_MESSAGE = "Description must be at least 10 characters."


class TestValidateSubmission:
    @pytest.mark.parametrize("length", [10, 11, 50, 400])
    def test_accepts_description_of_min_length_or_more(self, length):
        outcome = validate_submission({"brand": "Acme", "description": "x" * length})
        assert outcome.ok
        assert outcome.errors == []
        assert outcome.request.description == "x" * length

    @pytest.mark.parametrize("length", [0, 1, 5, 9])
    def test_rejects_short_description_with_length_message(self, length):
        outcome = validate_submission({"brand": "Acme", "description": "x" * length})
        assert not outcome.ok
        assert outcome.request is None
        assert outcome.errors == [LENGTH_MESSAGE]

    def test_min_length_constant(self):
        assert MIN_DESCRIPTION_LENGTH == 10

    def test_brand_may_be_empty(self):
        outcome = validate_submission({"brand": "", "description": "Cotton t-shirt, knitted"})
        assert outcome.ok
        assert outcome.request.brand == ""

    def test_brand_defaults_to_empty(self):
        outcome = validate_submission({"description": "Cotton t-shirt, knitted"})
        assert outcome.request.brand == ""

    def test_brand_is_stripped(self):
        outcome = validate_submission({"brand": "  Acme ", "description": "Cotton t-shirt, knitted"})
        assert outcome.request.brand == "Acme"

    def test_missing_description_reported(self):
        outcome = validate_submission({"brand": "Acme"})
        assert outcome.errors == ["Description is required."]

    def test_user_required_when_persisting(self):
        outcome = validate_submission(
            {"description": "Cotton t-shirt, knitted", "user_id": "  "},
            require_user=True,
        )
        assert not outcome.ok
        assert outcome.errors == [SIGN_IN_REQUIRED]

    def test_user_not_required_by_default(self):
        outcome = validate_submission({"description": "Cotton t-shirt, knitted"})
        assert outcome.ok
        assert outcome.request.user_id is None

    def test_blank_user_becomes_none(self):
        outcome = validate_submission({"description": "Cotton t-shirt, knitted", "user_id": ""})
        assert outcome.request.user_id is None

    def test_all_messages_collected(self):
        outcome = validate_submission({"description": "short"}, require_user=True)
        assert outcome.errors == [LENGTH_MESSAGE, SIGN_IN_REQUIRED]

    def test_never_raises_on_wrong_types(self):
        outcome = validate_submission({"description": None, "brand": 42})
        assert not outcome.ok
        assert len(outcome.errors) == 2


class TestClassificationRequest:
    def test_is_immutable(self):
        r = ClassificationRequest(description="Cotton t-shirt, knitted")
        with pytest.raises(ValidationError):
            r.description = "changed description"  # type: ignore[misc]

    def test_direct_construction_rejects_short_description(self):
        with pytest.raises(ValidationError) as excinfo:
            ClassificationRequest(description="short")
        assert validation_messages(excinfo.value) == [LENGTH_MESSAGE]


class TestPredictionResult:
    def test_accepts_wire_alias(self):
        p = PredictionResult.model_validate({"hsCode": "8471.30", "explanation": "Laptop"})
        assert p.hs_code == "8471.30"

    def test_accepts_python_name(self):
        p = PredictionResult(hs_code="8471.30", explanation="Laptop")
        assert p.hs_code == "8471.30"

    def test_dumps_wire_alias(self):
        p = PredictionResult(hs_code="8471.30", explanation="Laptop")
        assert p.model_dump(by_alias=True) == {"hsCode": "8471.30", "explanation": "Laptop"}

    def test_empty_code_rejected(self):
        with pytest.raises(ValidationError):
            PredictionResult.model_validate({"hsCode": "  ", "explanation": "Laptop"})

    def test_missing_explanation_rejected(self):
        with pytest.raises(ValidationError):
            PredictionResult.model_validate({"hsCode": "8471.30"})


class TestExplanationResult:
    def test_text_kept_verbatim(self):
        assert ExplanationResult(explanation="  Fine goods.\n").explanation == "  Fine goods.\n"

    def test_blank_rejected(self):
        with pytest.raises(ValidationError):
            ExplanationResult(explanation=" \n ")

    def test_empty_rejected(self):
        with pytest.raises(ValidationError):
            ExplanationResult(explanation="")


class TestHistoryItem:
    def _make_item(self, sample_result, brand="Acme") -> HistoryItem:
        return HistoryItem(
            id="7",
            user_id="uid-1",
            brand=brand,
            description="Portable laptop computer",
            result=sample_result,
            timestamp=datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
        )

    def test_label_with_brand(self, sample_result):
        assert self._make_item(sample_result).label == "Acme · 8471.30"

    def test_label_without_brand(self, sample_result):
        assert self._make_item(sample_result, brand="").label == "8471.30"

    def test_to_dict_uses_wire_names(self, sample_result):
        d = self._make_item(sample_result).to_dict()
        assert d["userId"] == "uid-1"
        assert d["result"]["prediction"]["hsCode"] == "8471.30"
        assert d["timestamp"].startswith("2024-05-01T10:00:00")

    def test_to_dict_is_json_serialisable(self, sample_result):
        serialised = json.dumps(self._make_item(sample_result).to_dict())
        assert "8471.30" in serialised

    def test_result_data_hs_code_shortcut(self, sample_result):
        assert sample_result.hs_code == "8471.30"


class TestActionResponse:
    def test_failure_factory(self):
        r = ActionResponse.failure("boom")
        assert r.success is False
        assert r.data is None
        assert r.error == "boom"
        assert r.saved is False

    def test_to_dict_success(self, sample_result):
        d = ActionResponse(success=True, data=sample_result).to_dict()
        assert d["success"] is True
        assert d["data"]["prediction"]["hsCode"] == "8471.30"


class TestCredentials:
    def test_valid(self):
        c = Credentials(email=" user@example.com ", password="secret1")
        assert c.email == "user@example.com"

    def test_invalid_email(self):
        with pytest.raises(ValidationError) as excinfo:
            Credentials(email="not-an-email", password="secret1")
        assert validation_messages(excinfo.value) == ["Please enter a valid email address."]

    def test_short_password(self):
        with pytest.raises(ValidationError) as excinfo:
            Credentials(email="user@example.com", password="12345")
        assert validation_messages(excinfo.value) == ["Password must be at least 6 characters."]


class TestAuthSession:
    def test_fresh_session_needs_no_refresh(self):
        s = AuthSession(
            uid="u1",
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )
        assert s.needs_refresh() is False

    def test_session_close_to_expiry_needs_refresh(self):
        s = AuthSession(
            uid="u1",
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=30),
        )
        assert s.needs_refresh() is True

    def test_tokens_hidden_from_repr(self):
        s = AuthSession(uid="u1", id_token="secret-token", refresh_token="secret-refresh")
        assert "secret" not in repr(s)
