"""
ports/history_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for the per-user classification history store.

The store is append-only from the application's point of view:
  1. save       — insert one record, store assigns id + timestamp
  2. list       — all records of one user, newest first
  3. clear_all  — bulk delete every record of one user

Records are never updated in place.

Current implementation: PostgresHistoryAdapter (psycopg2, JSONB documents)
To swap: write a new adapter implementing this Protocol and change ONE line
in services/container.py.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from hsclassify.domain.models import HistoryItem, ResultData


@runtime_checkable
class HistoryPort(Protocol):
    """Contract for the classification history backend."""

    def save(
        self,
        user_id: str,
        brand: str,
        description: str,
        result: ResultData,
    ) -> HistoryItem:
        """Persist one classification.

        Returns:
            The stored HistoryItem with its store-assigned id and timestamp.

        Raises:
            DatabaseError: On connection or write failure.
        """
        ...

    def list(self, user_id: str) -> list[HistoryItem]:
        """Return every record of ``user_id`` ordered newest first.

        Raises:
            DatabaseError: On connection or query failure.
        """
        ...

    def clear_all(self, user_id: str) -> int:
        """Delete every record of ``user_id``; other users are untouched.

        Returns:
            Number of deleted records.

        Raises:
            DatabaseError: On connection or delete failure.
        """
        ...
