"""
adapters/gemini_llm.py
──────────────────────────────────────────────────────────────────────────────
Implements LLMPort using the Google AI Gemini generateContent REST API.

Key behaviour:
  - Sends systemInstruction + contents in the generateContent REST format
  - Requests JSON output via responseMimeType: application/json and declares
    the expected shape via responseSchema
  - API key is sent in the x-goog-api-key header
  - 401/403 → AuthenticationError (bad or missing key)
  - Retries on 429/503 with exponential back-off when LLM_RETRIES > 1
  - Returns raw JSON string (caller parses); None on recoverable failure

Required env vars:
  GEMINI_API_KEY  — Google AI Studio key
  GEMINI_MODEL    — default: gemini-2.0-flash
"""
from __future__ import annotations

import logging
import time
from typing import Optional

import requests

from hsclassify.config.settings import Settings
from hsclassify.domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

# responseSchema is an OpenAPI subset: these keys are dropped before sending
_UNSUPPORTED_SCHEMA_KEYS = {"additionalProperties", "title", "$schema"}


def _build_gemini_url(settings: Settings) -> str:
    return f"{_GEMINI_BASE_URL}/{settings.gemini_model}:generateContent"


def _to_gemini_schema(schema: dict) -> dict:
    """Convert a JSON-schema dict to Gemini's responseSchema dialect."""
    converted: dict = {}
    for key, value in schema.items():
        if key in _UNSUPPORTED_SCHEMA_KEYS:
            continue
        if key == "type" and isinstance(value, str):
            converted[key] = value.upper()
        elif key == "properties" and isinstance(value, dict):
            converted[key] = {k: _to_gemini_schema(v) for k, v in value.items()}
        elif key == "items" and isinstance(value, dict):
            converted[key] = _to_gemini_schema(value)
        else:
            converted[key] = value
    return converted


class GeminiLLMAdapter:
    """Gemini adapter.

    Injected into HSCodePredictor and HSCodeExplainer via
    services/container.py.
    """

    def __init__(self, settings: Settings) -> None:
        if not settings.gemini_api_key:
            raise AuthenticationError(
                "GEMINI_API_KEY is not set. "
                "Add it to your .env file or environment."
            )
        self._settings = settings
        self._url = _build_gemini_url(settings)
        self._headers = {
            "x-goog-api-key": settings.gemini_api_key,
            "Content-Type": "application/json",
        }
        self._proxies = (
            {"https": f"http://{settings.https_proxy}"}
            if settings.https_proxy
            else {}
        )
        logger.debug("GeminiLLMAdapter ready | model=%s", settings.gemini_model)

    # ── LLMPort implementation ─────────────────────────────────────────────

    @property
    def model_name(self) -> str:
        return self._settings.gemini_model

    def generate_json(
        self,
        system_prompt: str,
        user_message: str,
        response_schema: Optional[dict] = None,
    ) -> str | None:
        """Send a prompt and return the raw JSON response string.

        Args:
            system_prompt:   System-level instruction for Gemini.
            user_message:    User-turn message content.
            response_schema: Declared output shape (JSON-schema subset).

        Returns:
            Raw JSON string from the model, or None on recoverable failure.

        Raises:
            AuthenticationError: If Gemini rejects the API key.
        """
        payload = self._build_payload(system_prompt, user_message, response_schema)
        return self._post_with_retry(payload)

    # ── Private helpers ────────────────────────────────────────────────────

    def _build_payload(
        self,
        system_prompt: str,
        user_message: str,
        response_schema: Optional[dict],
    ) -> dict:
        generation_config: dict = {
            "temperature": 0.1,
            "responseMimeType": "application/json",
        }
        if response_schema:
            generation_config["responseSchema"] = _to_gemini_schema(response_schema)
        return {
            "systemInstruction": {
                "parts": [{"text": system_prompt}],
            },
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": user_message}],
                }
            ],
            "generationConfig": generation_config,
        }

    def _post_with_retry(self, payload: dict) -> str | None:
        """POST to Gemini with back-off on 429/503."""
        retries = max(1, self._settings.llm_retries)
        delay = 2.0

        for attempt in range(1, retries + 1):
            try:
                resp = requests.post(
                    self._url,
                    headers=self._headers,
                    json=payload,
                    proxies=self._proxies,
                    timeout=self._settings.llm_timeout,
                )
            except requests.RequestException as exc:
                logger.warning("Gemini HTTP error (attempt %d/%d): %s", attempt, retries, exc)
                if attempt < retries:
                    time.sleep(delay)
                    delay *= 2
                continue

            if resp.status_code in (401, 403):
                raise AuthenticationError(
                    f"Gemini returned {resp.status_code}. "
                    "Check that GEMINI_API_KEY is valid."
                )

            if resp.status_code in (429, 503):
                logger.warning(
                    "Gemini %d (attempt %d/%d) — back-off %.1fs",
                    resp.status_code, attempt, retries, delay,
                )
                if attempt < retries:
                    time.sleep(delay)
                    delay *= 2
                continue

            if not resp.ok:
                logger.error("Gemini HTTP %d: %s", resp.status_code, resp.text[:300])
                return None

            return self._extract_text(resp.json())

        logger.error("Gemini failed after %d attempts", retries)
        return None

    def _extract_text(self, response_json: dict) -> str | None:
        """Pull the text content out of the generateContent response."""
        try:
            candidates = response_json.get("candidates", [])
            if not candidates:
                logger.warning("Gemini response contained no candidates")
                return None
            parts = candidates[0].get("content", {}).get("parts", [])
            if not parts:
                logger.warning(
                    "Gemini candidate contained no parts (finishReason=%s)",
                    candidates[0].get("finishReason"),
                )
                return None
            text = "".join(p.get("text", "") for p in parts).strip()
            return text if text else None
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            logger.error("Failed to parse Gemini response structure: %s", exc)
            return None
