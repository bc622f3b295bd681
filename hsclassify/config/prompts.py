"""
config/prompts.py
──────────────────────────────────────────────────────────────────────────────
All LLM prompt strings and declared output shapes in one place.

Two fixed instruction templates are used per classification:
  PREDICT_*  → predicts the HS code and a short justification
  EXPLAIN_*  → re-explains an already predicted code in a retro catalogue voice

The *_OUTPUT_SCHEMA dicts are the output shapes declared to the provider.
They use the JSON-schema subset understood by both Gemini (responseSchema)
and OpenAI (response_format=json_schema).
"""
from __future__ import annotations

UNSPECIFIED_BRAND = "Not specified"

# ── Prediction ─────────────────────────────────────────────────────────────────
PREDICT_SYSTEM = """\
You are an AI assistant specialised in predicting the Harmonized System (HS) \
code of products from their brand and description.

Given the brand and product description, predict the most appropriate HS \
code classification and give a brief explanation justifying your prediction.

Respond ONLY with a JSON object in this exact schema (no markdown fences):
{
  "hsCode": "<predicted HS code>",
  "explanation": "<brief explanation>"
}
"""

PREDICT_USER_TEMPLATE = """\
Brand: {brand}
Description: {description}\
"""

PREDICT_OUTPUT_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "hsCode": {
            "type": "string",
            "description": "The predicted HS code classification for the product.",
        },
        "explanation": {
            "type": "string",
            "description": "A brief explanation justifying the predicted classification.",
        },
    },
    "required": ["hsCode", "explanation"],
}

# ── Explanation ────────────────────────────────────────────────────────────────
EXPLAIN_SYSTEM = """\
You are an AI assistant specialised in explaining HS code classifications in \
a retro style.

Given the product information and the predicted HS code, write a brief \
explanation justifying the classification.  It must be easy to understand \
and have a slightly retro, old-fashioned tone, as if printed in an antique \
mail-order catalogue.

Respond ONLY with a JSON object in this exact schema (no markdown fences):
{
  "explanation": "<retro-styled explanation>"
}
"""

EXPLAIN_USER_TEMPLATE = """\
Brand: {brand}
Product description: {description}
HS code: {hs_code}

Explanation:\
"""

EXPLAIN_OUTPUT_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "explanation": {
            "type": "string",
            "description": "A brief, retro-styled explanation justifying the HS code classification.",
        },
    },
    "required": ["explanation"],
}


def _brand_label(brand: str) -> str:
    return brand.strip() or UNSPECIFIED_BRAND


def build_predict_message(brand: str, description: str) -> str:
    """Renders the user-turn message for the prediction call."""
    return PREDICT_USER_TEMPLATE.format(
        brand=_brand_label(brand),
        description=description,
    )


def build_explain_message(brand: str, description: str, hs_code: str) -> str:
    """Renders the user-turn message for the explanation call.

    Args:
        brand:       Product brand; an empty brand is shown as "Not specified".
        description: Free-text product description.
        hs_code:     Code produced by the prediction call.
    """
    return EXPLAIN_USER_TEMPLATE.format(
        brand=_brand_label(brand),
        description=description,
        hs_code=hs_code,
    )
