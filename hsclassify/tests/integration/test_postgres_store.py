"""
tests/integration/test_postgres_store.py
──────────────────────────────────────────────────────────────────────────────
Integration tests for PostgresHistoryAdapter.

Requires a running PostgreSQL instance reachable through DB_DSN.  The
history table is created on first connection.  These tests are marked
@pytest.mark.integration and are SKIPPED in the standard test run.

Run with:
  pytest -m integration hsclassify/tests/integration/test_postgres_store.py -v

Environment:
  DB_DSN defaults to "dbname=hs_classifier"
"""
from __future__ import annotations

import uuid

import pytest

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def db_adapter():
    """Create a real PostgresHistoryAdapter for integration testing."""
    from hsclassify.adapters.postgres_history import PostgresHistoryAdapter
    from hsclassify.config.settings import get_settings
    adapter = PostgresHistoryAdapter(get_settings())
    yield adapter
    adapter.close()


@pytest.fixture
def user_id(db_adapter):
    uid = f"it-{uuid.uuid4().hex}"
    yield uid
    db_adapter.clear_all(uid)


class TestSaveAndList:
    def test_saved_item_is_listed(self, db_adapter, user_id, sample_result):
        saved = db_adapter.save(user_id, "Lenovo", "Laptop computer with 16GB RAM", sample_result)
        items = db_adapter.list(user_id)
        assert items == [saved]

    def test_newest_first(self, db_adapter, user_id, sample_result):
        first = db_adapter.save(user_id, "", "first product entry", sample_result)
        second = db_adapter.save(user_id, "", "second product entry", sample_result)
        assert [i.id for i in db_adapter.list(user_id)] == [second.id, first.id]

    def test_unknown_user_has_empty_history(self, db_adapter):
        assert db_adapter.list(f"nobody-{uuid.uuid4().hex}") == []


class TestClearAll:
    def test_clears_only_own_records(self, db_adapter, user_id, sample_result):
        other = f"it-{uuid.uuid4().hex}"
        try:
            db_adapter.save(user_id, "", "Laptop computer with 16GB RAM", sample_result)
            db_adapter.save(other, "", "Laptop computer with 16GB RAM", sample_result)
            assert db_adapter.clear_all(user_id) == 1
            assert db_adapter.list(user_id) == []
            assert len(db_adapter.list(other)) == 1
        finally:
            db_adapter.clear_all(other)

    def test_clear_empty_history(self, db_adapter, user_id):
        assert db_adapter.clear_all(user_id) == 0
