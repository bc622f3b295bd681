"""
services/llm_output.py
──────────────────────────────────────────────────────────────────────────────
Parse-and-validate step applied to every LLM response.

The provider is asked for a declared output shape but is not trusted to
honour it.  parse_llm_json() turns the raw string into the expected Pydantic
model or raises the caller's typed error:

  - None / empty response          → error
  - markdown ```json fences        → stripped
  - [ {...} ] single-item array    → unwrapped
  - {"result": {...}} wrapper      → unwrapped
  - missing / empty / wrong fields → error
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from hsclassify.domain.exceptions import LLMError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def _strip_fences(raw: str) -> str:
    text = raw.strip()
    match = _FENCE_RE.match(text)
    return match.group(1) if match else text


def _unwrap(parsed: Any, model: type[BaseModel]) -> Any:
    if isinstance(parsed, list) and len(parsed) == 1:
        parsed = parsed[0]
    if isinstance(parsed, dict) and len(parsed) == 1:
        (only,) = parsed.values()
        expected = {f.alias or name for name, f in model.model_fields.items()}
        if isinstance(only, dict) and not expected & parsed.keys():
            parsed = only
    return parsed


def parse_llm_json(
    raw: str | None,
    model: type[M],
    error_cls: type[LLMError] = LLMError,
) -> M:
    """Parse an LLM response into ``model``.

    Args:
        raw:       Raw text returned by an LLMPort (may be None).
        model:     Pydantic model describing the expected object.
        error_cls: LLMError subclass raised on any failure.

    Returns:
        Validated model instance.

    Raises:
        error_cls: If the response is missing, not JSON, or the wrong shape.
    """
    name = model.__name__
    if not raw or not raw.strip():
        raise error_cls(f"LLM returned no output for {name}")

    try:
        parsed = json.loads(_strip_fences(raw))
    except (json.JSONDecodeError, TypeError) as exc:
        logger.error("Failed to parse %s JSON: %.200s", name, raw)
        raise error_cls(f"LLM output for {name} is not valid JSON") from exc

    try:
        return model.model_validate(_unwrap(parsed, model))
    except ValidationError as exc:
        logger.error("LLM output does not match %s: %s | raw=%.200s", name, exc, raw)
        raise error_cls(f"LLM output does not match {name}") from exc
