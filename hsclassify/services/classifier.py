"""
services/classifier.py
──────────────────────────────────────────────────────────────────────────────
Orchestration action: wires validation, prediction, explanation and history
persistence into a single classify(submission) → ActionResponse call.

This is the primary entry point for all interfaces (CLI, Streamlit).
It knows nothing about infrastructure — it only speaks in domain objects.

Flow (strictly sequential, the explanation consumes the predicted code):
  validate → predict → explain → assemble ResultData → save (if user id)

Failure policy:
  - validation errors      → success=False, messages joined with ", "
  - any provider failure   → success=False, one generic message, logged
  - history save failure   → success=True, saved=False, notice in ``error``
                             (the result is shown but not saved)
  Nothing is raised to the caller and no partial result is ever returned.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from hsclassify.domain.models import (
    ActionResponse,
    ClassificationRequest,
    ResultData,
    validate_submission,
)
from hsclassify.ports.history_port import HistoryPort
from hsclassify.services.explainer import HSCodeExplainer
from hsclassify.services.predictor import HSCodePredictor

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An unexpected error occurred. Please try again."
SAVE_FAILED = "Could not save the query to history."


class ClassifierPipeline:
    """Two-hop HS code classification pipeline.

    Inject via services/container.py — do not instantiate directly in
    application code.

    Args:
        predictor: HSCodePredictor (first LLM call).
        explainer: HSCodeExplainer (second LLM call).
        history:   Optional HistoryPort; without one nothing is persisted.
    """

    def __init__(
        self,
        predictor: HSCodePredictor,
        explainer: HSCodeExplainer,
        history: Optional[HistoryPort] = None,
    ) -> None:
        self._predictor = predictor
        self._explainer = explainer
        self._history = history

    @property
    def history(self) -> Optional[HistoryPort]:
        return self._history

    # ── Public API ─────────────────────────────────────────────────────────

    def classify(
        self,
        submission: Union[Mapping[str, Any], ClassificationRequest],
        require_user: bool = False,
    ) -> ActionResponse:
        """Predict, explain and (for signed-in users) persist one product.

        Args:
            submission:   Raw form data (``brand``, ``description``,
                          ``user_id``) or an already built request.
            require_user: Reject the submission when no user id is given.

        Returns:
            ActionResponse — see the module docstring for the failure policy.
        """
        raw = (
            submission.model_dump()
            if isinstance(submission, ClassificationRequest)
            else submission
        )
        outcome = validate_submission(raw, require_user=require_user)
        if not outcome.ok:
            logger.info("classify | rejected: %s", outcome.errors)
            return ActionResponse.failure(", ".join(outcome.errors))

        request = outcome.request
        logger.info(
            "classify | brand=%r description=%r user=%s",
            request.brand,
            request.description[:80],
            request.user_id or "-",
        )

        # ── Step 1 + 2: predict, then explain the predicted code ───────────
        try:
            prediction = self._predictor.predict(request.brand, request.description)
            explanation = self._explainer.explain(
                request.brand, request.description, prediction.hs_code
            )
        except Exception:
            logger.exception("classify failed for %r", request.description[:80])
            return ActionResponse.failure(GENERIC_ERROR)

        data = ResultData(prediction=prediction, explanation=explanation)

        # ── Step 3: persist ────────────────────────────────────────────────
        if request.user_id is None or self._history is None:
            return ActionResponse(success=True, data=data)

        try:
            item = self._history.save(
                request.user_id, request.brand, request.description, data
            )
        except Exception:
            logger.exception("classify | result not saved for user %s", request.user_id)
            return ActionResponse(success=True, data=data, saved=False, error=SAVE_FAILED)

        return ActionResponse(success=True, data=data, saved=True, history_item=item)
