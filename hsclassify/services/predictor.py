"""
services/predictor.py
──────────────────────────────────────────────────────────────────────────────
Prediction client: brand + description → {hsCode, explanation}.

Responsibilities:
  1. Build the prediction prompt (via config/prompts.py).
  2. Call the LLMPort, declaring PREDICT_OUTPUT_SCHEMA as the output shape.
  3. Parse and validate the response into a PredictionResult.

No retry happens here; any failure surfaces as PredictionError.
"""
from __future__ import annotations

import logging

from hsclassify.config.prompts import (
    PREDICT_OUTPUT_SCHEMA,
    PREDICT_SYSTEM,
    build_predict_message,
)
from hsclassify.domain.exceptions import HSClassifierError, PredictionError
from hsclassify.domain.models import PredictionResult
from hsclassify.ports.llm_port import LLMPort
from hsclassify.services.llm_output import parse_llm_json

logger = logging.getLogger(__name__)


class HSCodePredictor:
    """Predict an HS code with an LLM.

    Args:
        llm: Any object satisfying LLMPort.
    """

    def __init__(self, llm: LLMPort) -> None:
        self._llm = llm

    @property
    def model_name(self) -> str:
        return self._llm.model_name

    def predict(self, brand: str, description: str) -> PredictionResult:
        """Predict the HS code of a product.

        Args:
            brand:       Product brand (may be empty).
            description: Free-text product description.

        Returns:
            PredictionResult with the code and a short justification.

        Raises:
            PredictionError: Provider unavailable or malformed output.
        """
        logger.info("predict | brand=%r description=%r", brand, description[:80])
        user = build_predict_message(brand, description)
        try:
            raw = self._llm.generate_json(
                PREDICT_SYSTEM, user, response_schema=PREDICT_OUTPUT_SCHEMA
            )
        except HSClassifierError as exc:
            raise PredictionError(f"Prediction call failed: {exc}") from exc

        result = parse_llm_json(raw, PredictionResult, PredictionError)
        logger.info("predict | hs_code=%s", result.hs_code)
        return result
