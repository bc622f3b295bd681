"""
tests/integration/test_gemini_llm.py
──────────────────────────────────────────────────────────────────────────────
Integration tests for GeminiLLMAdapter and the two HS code services on top.

Requires:
  • Network access to generativelanguage.googleapis.com
  • GEMINI_API_KEY (and optionally GEMINI_MODEL) set

Run with:
  pytest -m integration hsclassify/tests/integration/test_gemini_llm.py -v

IMPORTANT: These tests make real API calls and consume quota.
"""
from __future__ import annotations

import json
import re

import pytest

from hsclassify.config.prompts import (
    PREDICT_OUTPUT_SCHEMA,
    PREDICT_SYSTEM,
    build_predict_message,
)

pytestmark = pytest.mark.integration

_HS_CODE_RE = re.compile(r"^\d{4}(\.?\d{2}){0,3}$")


@pytest.fixture(scope="module")
def llm():
    from hsclassify.adapters.gemini_llm import GeminiLLMAdapter
    from hsclassify.config.settings import get_settings
    return GeminiLLMAdapter(get_settings())


class TestGenerateJson:
    def test_response_is_valid_json(self, llm):
        raw = llm.generate_json(
            PREDICT_SYSTEM,
            build_predict_message("Logitech", "Wireless optical mouse with USB receiver"),
            response_schema=PREDICT_OUTPUT_SCHEMA,
        )
        assert raw is not None, "Gemini returned None — check GEMINI_API_KEY and model"
        parsed = json.loads(raw)
        assert set(parsed) >= {"hsCode", "explanation"}

    def test_model_name_property(self, llm):
        assert len(llm.model_name) > 0


class TestServices:
    def test_predict_then_explain(self, llm):
        from hsclassify.services.explainer import HSCodeExplainer
        from hsclassify.services.predictor import HSCodePredictor

        prediction = HSCodePredictor(llm).predict("", "Stainless steel kitchen knife")
        assert _HS_CODE_RE.match(prediction.hs_code.replace(" ", ""))
        assert prediction.explanation

        explanation = HSCodeExplainer(llm).explain(
            "", "Stainless steel kitchen knife", prediction.hs_code
        )
        assert explanation.explanation
