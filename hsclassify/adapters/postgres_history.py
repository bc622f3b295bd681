"""
adapters/postgres_history.py
──────────────────────────────────────────────────────────────────────────────
Implements HistoryPort using psycopg2 with the result stored as a JSONB
document.

Database layout (created on first connection, idempotent):
  Table : classification_history  (override with HISTORY_TABLE)
  Cols  : id BIGSERIAL PK, user_id, brand, description,
          result JSONB, created_at TIMESTAMPTZ DEFAULT now()
  Index : (user_id, created_at DESC)

Three methods match HistoryPort:
  save      → INSERT … RETURNING (store assigns id + timestamp)
  list      → SELECT by user_id ORDER BY created_at DESC, id DESC
  clear_all → DELETE by user_id (single statement, other users untouched)

Connection management:
  - A single connection is opened lazily and reused.
  - On OperationalError the connection is reset and one retry is attempted.
  - autocommit is on: each statement is its own transaction.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable

import psycopg2
import psycopg2.extras
from psycopg2 import sql
from pydantic import ValidationError

from hsclassify.config.settings import Settings
from hsclassify.domain.exceptions import DatabaseError
from hsclassify.domain.models import HistoryItem, ResultData

logger = logging.getLogger(__name__)

_SAVE_FAILED = "Could not save the query to history."
_LIST_FAILED = "Could not load the query history."
_CLEAR_FAILED = "Could not clear the history."

_RECORD_COLS = ("id", "user_id", "brand", "description", "result", "created_at")

_CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS {table} (
        id          BIGSERIAL   PRIMARY KEY,
        user_id     TEXT        NOT NULL,
        brand       TEXT        NOT NULL DEFAULT '',
        description TEXT        NOT NULL,
        result      JSONB       NOT NULL,
        created_at  TIMESTAMPTZ NOT NULL DEFAULT now()
    )
"""

_CREATE_INDEX = """
    CREATE INDEX IF NOT EXISTS {index}
    ON {table} (user_id, created_at DESC)
"""


class PostgresHistoryAdapter:
    """psycopg2 implementation of HistoryPort.

    Injected into ClassifierPipeline and the interfaces via
    services/container.py.
    """

    def __init__(self, settings: Settings) -> None:
        self._dsn = settings.db_dsn
        self._table = sql.Identifier(settings.history_table)
        self._index = sql.Identifier(f"{settings.history_table}_user_ts_idx")
        self._columns = sql.SQL(", ").join(map(sql.Identifier, _RECORD_COLS))
        self._conn: Any = None
        logger.debug(
            "PostgresHistoryAdapter ready | dsn=%s table=%s",
            self._dsn, settings.history_table,
        )

    # ── HistoryPort implementation ─────────────────────────────────────────

    def save(
        self,
        user_id: str,
        brand: str,
        description: str,
        result: ResultData,
    ) -> HistoryItem:
        """Insert one record and return it as stored."""
        query = sql.SQL("""
            INSERT INTO {table} (user_id, brand, description, result)
            VALUES (%s, %s, %s, %s)
            RETURNING {cols}
        """).format(table=self._table, cols=self._columns)
        document = psycopg2.extras.Json(result.model_dump(mode="json", by_alias=True))
        try:
            rows = self._execute(query, (user_id, brand, description, document))
            item = _row_to_item(rows[0])
        except (psycopg2.Error, DatabaseError, IndexError, KeyError,
                TypeError, ValueError, ValidationError) as exc:
            logger.error("History save failed for user %s: %s", user_id, exc)
            raise DatabaseError(_SAVE_FAILED) from exc
        logger.info("History saved | user=%s id=%s", user_id, item.id)
        return item

    def list(self, user_id: str) -> list[HistoryItem]:
        """Return every record of ``user_id`` newest first.

        Rows whose stored document no longer matches ResultData are skipped
        with a warning rather than failing the whole list.
        """
        query = sql.SQL("""
            SELECT {cols}
            FROM   {table}
            WHERE  user_id = %s
            ORDER  BY created_at DESC, id DESC
        """).format(table=self._table, cols=self._columns)
        try:
            rows = self._execute(query, (user_id,))
        except (psycopg2.Error, DatabaseError) as exc:
            logger.error("History list failed for user %s: %s", user_id, exc)
            raise DatabaseError(_LIST_FAILED) from exc

        items: list[HistoryItem] = []
        for row in rows:
            try:
                items.append(_row_to_item(row))
            except (ValidationError, ValueError, TypeError) as exc:
                logger.warning("Skipping malformed history row %s: %s", row.get("id"), exc)
        return items

    def clear_all(self, user_id: str) -> int:
        """Delete every record of ``user_id`` in one statement."""
        query = sql.SQL("DELETE FROM {table} WHERE user_id = %s").format(
            table=self._table
        )
        try:
            deleted = self._run(query, (user_id,), lambda cur: cur.rowcount)
        except (psycopg2.Error, DatabaseError) as exc:
            logger.error("History clear failed for user %s: %s", user_id, exc)
            raise DatabaseError(_CLEAR_FAILED) from exc
        logger.info("History cleared | user=%s deleted=%d", user_id, deleted)
        return deleted

    # ── Connection helpers ─────────────────────────────────────────────────

    def _get_conn(self) -> Any:
        """Return an open connection, creating or reusing one."""
        if self._conn is None or self._conn.closed:
            self._conn = self._new_conn()
        return self._conn

    def _new_conn(self) -> Any:
        """Open a fresh psycopg2 connection and make sure the table exists."""
        try:
            conn = psycopg2.connect(self._dsn)
            conn.autocommit = True
            with conn.cursor() as cur:
                cur.execute(sql.SQL(_CREATE_TABLE).format(table=self._table))
                cur.execute(
                    sql.SQL(_CREATE_INDEX).format(index=self._index, table=self._table)
                )
            logger.debug("PostgresHistoryAdapter: new connection opened")
            return conn
        except psycopg2.Error as exc:
            raise DatabaseError(f"Cannot connect to database: {exc}") from exc

    def _execute(self, query: sql.Composable, params: tuple) -> list[dict]:
        """Execute a query and return rows as dicts."""
        return self._run(query, params, lambda cur: list(cur.fetchall()))

    def _run(
        self,
        query: sql.Composable,
        params: tuple,
        handler: Callable[[Any], Any],
    ) -> Any:
        """Execute a statement and hand the cursor to ``handler``, with one auto-reconnect."""
        for attempt in (1, 2):
            conn = self._get_conn()
            try:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    cur.execute(query, params)
                    return handler(cur)
            except psycopg2.OperationalError as exc:
                if attempt == 1:
                    logger.warning("DB OperationalError — reconnecting: %s", exc)
                    self._conn = None
                else:
                    raise DatabaseError(f"DB query failed after reconnect: {exc}") from exc
        return None  # unreachable

    def close(self) -> None:
        """Explicitly close the connection (optional — GC handles it otherwise)."""
        if self._conn and not self._conn.closed:
            self._conn.close()
            logger.debug("PostgresHistoryAdapter: connection closed")


def _row_to_item(row: dict) -> HistoryItem:
    """Build a HistoryItem from a RealDictCursor row."""
    document = row["result"]
    if isinstance(document, str):
        document = json.loads(document)
    return HistoryItem(
        id=str(row["id"]),
        user_id=row["user_id"],
        brand=row["brand"] or "",
        description=row["description"],
        result=ResultData.model_validate(document),
        timestamp=row["created_at"],
    )
