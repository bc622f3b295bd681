"""
services/history_export.py
──────────────────────────────────────────────────────────────────────────────
Convenience dumps of a user's history: JSON (round-trippable) and a flat
pandas DataFrame for CSV download / table display.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Iterable, Optional

import pandas as pd
from pydantic import TypeAdapter

from hsclassify.domain.models import HistoryItem

_HISTORY_LIST = TypeAdapter(list[HistoryItem])


def export_history_json(items: Iterable[HistoryItem]) -> str:
    """Serialise history items to a pretty-printed JSON array."""
    return json.dumps(
        [item.to_dict() for item in items],
        indent=2,
        ensure_ascii=False,
    )


def load_history_json(text: str) -> list[HistoryItem]:
    """Parse a JSON export back into HistoryItem objects.

    Raises:
        pydantic.ValidationError: If the document is not a valid export.
    """
    return _HISTORY_LIST.validate_json(text)


def export_filename(now: Optional[datetime] = None, suffix: str = "json") -> str:
    """Download file name, e.g. ``hs-classifier_history_2024-05-01T10-00-00Z.json``."""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H-%M-%SZ")
    return f"hs-classifier_history_{stamp}.{suffix}"


def history_to_dataframe(items: Iterable[HistoryItem]) -> pd.DataFrame:
    """One row per history item, newest first as given."""
    rows = []
    for item in items:
        rows.append(
            {
                "Timestamp": item.timestamp.isoformat(),
                "Brand": item.brand,
                "Description": item.description,
                "HS Code": item.result.prediction.hs_code,
                "Justification": item.result.prediction.explanation,
                "Retro Explanation": item.result.explanation.explanation,
            }
        )
    return pd.DataFrame(
        rows,
        columns=[
            "Timestamp",
            "Brand",
            "Description",
            "HS Code",
            "Justification",
            "Retro Explanation",
        ],
    )
