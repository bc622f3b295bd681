"""
services/explainer.py
──────────────────────────────────────────────────────────────────────────────
Explanation client: brand + description + predicted code → {explanation}.

Same delegation pattern as services/predictor.py with the second, retro
catalogue-style template.  Failures surface as ExplanationError.
"""
from __future__ import annotations

import logging

from hsclassify.config.prompts import (
    EXPLAIN_OUTPUT_SCHEMA,
    EXPLAIN_SYSTEM,
    build_explain_message,
)
from hsclassify.domain.exceptions import ExplanationError, HSClassifierError
from hsclassify.domain.models import ExplanationResult
from hsclassify.ports.llm_port import LLMPort
from hsclassify.services.llm_output import parse_llm_json

logger = logging.getLogger(__name__)


class HSCodeExplainer:
    """Explain an already predicted HS code with an LLM."""

    def __init__(self, llm: LLMPort) -> None:
        self._llm = llm

    @property
    def model_name(self) -> str:
        return self._llm.model_name

    def explain(self, brand: str, description: str, hs_code: str) -> ExplanationResult:
        logger.info("explain | hs_code=%s", hs_code)
        user = build_explain_message(brand, description, hs_code)
        try:
            raw = self._llm.generate_json(
                EXPLAIN_SYSTEM, user, response_schema=EXPLAIN_OUTPUT_SCHEMA
            )
        except HSClassifierError as exc:
            raise ExplanationError(f"Explanation call failed: {exc}") from exc
        return parse_llm_json(raw, ExplanationResult, ExplanationError)
