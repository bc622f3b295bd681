"""
tests/conftest.py
──────────────────────────────────────────────────────────────────────────────
Shared pytest fixtures and mock adapter implementations.

Mock adapters implement the Port Protocols via structural subtyping — they do
NOT inherit from any base class.  pytest uses them to test service logic
without any real LLM, database or auth connections.

Fixture hierarchy:
  mock_llm           → implements LLMPort (canned prediction + explanation JSON)
  failing_llm        → implements LLMPort (prediction call returns None)
  history_store      → implements HistoryPort (in-memory, ordered timestamps)
  failing_history    → implements HistoryPort (every call raises DatabaseError)
  predictor/explainer→ real services wired with mock_llm
  pipeline           → ClassifierPipeline wired with mock_llm + history_store
"""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from hsclassify.config.prompts import EXPLAIN_SYSTEM, PREDICT_SYSTEM
from hsclassify.config.settings import Settings
from hsclassify.domain.exceptions import DatabaseError
from hsclassify.domain.models import HistoryItem, ResultData
from hsclassify.services.classifier import ClassifierPipeline
from hsclassify.services.explainer import HSCodeExplainer
from hsclassify.services.predictor import HSCodePredictor

HS_CODE = "8471.30"
JUSTIFICATION = "Portable automatic data-processing machine weighing under 10 kg."
RETRO_EXPLANATION = "Behold, a marvel of modern calculation, light enough for any valise!"


# ── Settings fixture ───────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def settings() -> Settings:
    """Return a Settings instance with sane test defaults."""
    return Settings(
        llm_provider="gemini",
        gemini_api_key="test-gemini-key",
        gemini_model="gemini-test",
        openai_api_key="sk-test-key",
        openai_llm_model="gpt-4o",
        https_proxy="",
        db_dsn="dbname=hs_classifier_test",
        history_table="classification_history_test",
        firebase_api_key="test-firebase-key",
        llm_timeout=5,
        auth_timeout=5,
        llm_retries=1,
    )


# ── Mock adapters ──────────────────────────────────────────────────────────

class MockLLMAdapter:
    """Returns canned JSON for the prediction and explanation prompts.

    Every call is recorded in ``calls`` as (system_prompt, user_message,
    response_schema) so tests can assert on ordering and content.
    """

    model_name = "mock-llm"

    PREDICTION = json.dumps({"hsCode": HS_CODE, "explanation": JUSTIFICATION})
    EXPLANATION = json.dumps({"explanation": RETRO_EXPLANATION})

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, Optional[dict]]] = []

    def generate_json(
        self,
        system_prompt: str,
        user_message: str,
        response_schema: Optional[dict] = None,
    ) -> str | None:
        self.calls.append((system_prompt, user_message, response_schema))
        if system_prompt == PREDICT_SYSTEM:
            return self.PREDICTION
        if system_prompt == EXPLAIN_SYSTEM:
            return self.EXPLANATION
        return None


class FailingPredictionLLM(MockLLMAdapter):
    """Simulates the provider failing on the prediction call."""

    model_name = "mock-llm-failing"

    def generate_json(self, system_prompt, user_message, response_schema=None):
        self.calls.append((system_prompt, user_message, response_schema))
        if system_prompt == PREDICT_SYSTEM:
            return None
        return self.EXPLANATION


class InMemoryHistoryStore:
    """In-memory fake history store with strictly increasing timestamps."""

    _EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __init__(self) -> None:
        self._items: list[HistoryItem] = []
        self._next_id = 1

    def save(self, user_id: str, brand: str, description: str, result: ResultData) -> HistoryItem:
        item = HistoryItem(
            id=str(self._next_id),
            user_id=user_id,
            brand=brand,
            description=description,
            result=result,
            timestamp=self._EPOCH + timedelta(seconds=self._next_id),
        )
        self._next_id += 1
        self._items.append(item)
        return item

    def list(self, user_id: str) -> list[HistoryItem]:
        own = [i for i in self._items if i.user_id == user_id]
        return sorted(own, key=lambda i: i.timestamp, reverse=True)

    def clear_all(self, user_id: str) -> int:
        before = len(self._items)
        self._items = [i for i in self._items if i.user_id != user_id]
        return before - len(self._items)


class FailingHistoryStore:
    """Every operation fails like an unreachable database."""

    def save(self, user_id, brand, description, result):
        raise DatabaseError("Could not save the query to history.")

    def list(self, user_id):
        raise DatabaseError("Could not load the query history.")

    def clear_all(self, user_id):
        raise DatabaseError("Could not clear the history.")


# ── pytest fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def mock_llm():
    return MockLLMAdapter()


@pytest.fixture
def failing_llm():
    return FailingPredictionLLM()


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()


@pytest.fixture
def failing_history():
    return FailingHistoryStore()


@pytest.fixture
def predictor(mock_llm):
    return HSCodePredictor(mock_llm)


@pytest.fixture
def explainer(mock_llm):
    return HSCodeExplainer(mock_llm)


@pytest.fixture
def pipeline(predictor, explainer, history_store):
    return ClassifierPipeline(
        predictor=predictor,
        explainer=explainer,
        history=history_store,
    )


@pytest.fixture
def sample_result() -> ResultData:
    return ResultData.model_validate(
        {
            "prediction": {"hsCode": HS_CODE, "explanation": JUSTIFICATION},
            "explanation": {"explanation": RETRO_EXPLANATION},
        }
    )
