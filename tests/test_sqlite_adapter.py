"""Tests for the SQLite adapter against real database files."""

import sqlite3
from concurrent.futures import ThreadPoolExecutor

import pytest

from sqlscope.database.models import Relationship
from sqlscope.database.sqlite import SQLiteAdapter
from sqlscope.database.values import Value, ValueKind
from sqlscope.errors import (
    ConnectionLostError,
    InvalidRequestError,
    QueryExecutionError,
    TableNotFoundError,
)


class TestSQLiteIntrospection:
    """Test catalog hooks."""

    def test_get_tables_excludes_views_and_internal_tables(self, sqlite_adapter):
        assert sqlite_adapter.get_tables() == ["items", "notes", "stock", "warehouses"]

    def test_columns(self, sqlite_adapter):
        columns = sqlite_adapter.get_columns("items")

        assert [c.name for c in columns] == ["id", "name", "price", "data"]
        assert columns[0].is_primary_key
        assert columns[0].ordinal_position == 1
        assert not columns[1].is_nullable
        assert columns[2].value_kind() is ValueKind.FLOAT
        assert columns[3].value_kind() is ValueKind.BLOB

    def test_composite_primary_key_in_key_order(self, sqlite_adapter):
        assert sqlite_adapter.get_primary_keys("warehouses") == ["region", "code"]

    def test_index_count_counts_rowid_primary_key(self, sqlite_adapter):
        # idx_items_name plus the INTEGER PRIMARY KEY
        assert sqlite_adapter.get_index_count("items") == 2

    def test_index_count_composite_key_not_double_counted(self, sqlite_adapter):
        assert sqlite_adapter.get_index_count("warehouses") == 1

    def test_index_count_without_keys(self, sqlite_adapter):
        assert sqlite_adapter.get_index_count("notes") == 0

    def test_catalog_counts(self, sqlite_adapter):
        counts = sqlite_adapter.get_catalog_counts()
        assert counts.tables == 4
        assert counts.indexes == 1
        assert counts.views == 1
        assert counts.triggers == 0


class TestSQLiteCapabilities:
    """Test the shared capability interface on SQLite."""

    def test_list_tables_sorted_by_count(self, sqlite_adapter):
        summaries = sqlite_adapter.list_tables()

        assert [s.name for s in summaries] == ["notes", "stock", "warehouses", "items"]
        assert summaries[-1].row_count.value == 250
        assert not summaries[-1].row_count.is_estimate

    def test_table_meta(self, sqlite_adapter):
        meta = sqlite_adapter.table_meta("items")

        assert meta.row_count.value == 250
        assert meta.column_count == 4
        assert meta.index_count == 2
        assert meta.sql.startswith("CREATE TABLE items")
        # dbstat is optional in SQLite builds
        assert meta.size_bytes is None or meta.size_bytes > 0

    def test_table_meta_unknown_table(self, sqlite_adapter):
        with pytest.raises(TableNotFoundError):
            sqlite_adapter.table_meta("cheap_items")

    def test_relationships_flatten_composite_keys(self, sqlite_adapter):
        relationships = sqlite_adapter.relationships()

        assert set(relationships) == {
            Relationship("stock", "item_id", "items", "id"),
            Relationship("stock", "region", "warehouses", "region"),
            Relationship("stock", "code", "warehouses", "code"),
        }
        assert len(relationships) == 3

    def test_overview(self, sqlite_adapter):
        stats = sqlite_adapter.overview()

        assert stats.name == "shop.db"
        assert stats.backend == "sqlite"
        assert stats.version == sqlite3.sqlite_version
        assert stats.tables == 4
        assert stats.size_bytes > 0
        assert stats.modified is not None
        assert stats.row_counts[0].name == "items"
        assert stats.row_counts[0].count == 250
        assert {c.name: c.count for c in stats.index_counts}["items"] == 2
        assert not stats.row_counts_estimated


class TestSQLitePaging:
    """Test offset paging under a stable order."""

    def test_partial_last_page(self, sqlite_adapter):
        page = sqlite_adapter.table_page("items", 3, 100)

        assert len(page.rows) == 50
        assert page.has_more is False
        assert page.rows[0][0] == Value.integer(201)

    def test_past_last_page_is_empty(self, sqlite_adapter):
        page = sqlite_adapter.table_page("items", 4, 100)

        assert page.rows == []
        assert page.columns == ["id", "name", "price", "data"]

    def test_pages_cover_every_row_once(self, sqlite_adapter):
        ids = []
        page_number = 1
        while True:
            page = sqlite_adapter.table_page("items", page_number, 50)
            ids.extend(row[0].value for row in page.rows)
            if not page.has_more:
                break
            page_number += 1

        assert ids == list(range(1, 251))

    def test_page_is_idempotent(self, sqlite_adapter):
        first = sqlite_adapter.table_page("items", 2, 50)
        second = sqlite_adapter.table_page("items", 2, 50)
        assert first.rows == second.rows

    def test_default_page_size_from_settings(self, sqlite_adapter):
        page = sqlite_adapter.table_page("items", 1)
        assert page.page_size == 50
        assert len(page.rows) == 50

    def test_table_without_key_orders_by_rowid(self, sqlite_adapter):
        page = sqlite_adapter.table_page("notes", 1, 10)
        assert [row[0].value for row in page.rows] == ["b", "a", "c"]

    def test_blob_cells(self, sqlite_adapter):
        page = sqlite_adapter.table_page("items", 1, 1)
        assert page.to_dict()["rows"][0][3] == [1]

    def test_page_zero_rejected(self, sqlite_adapter):
        with pytest.raises(InvalidRequestError):
            sqlite_adapter.table_page("items", 0, 50)

    def test_unknown_table_rejected(self, sqlite_adapter):
        with pytest.raises(TableNotFoundError):
            sqlite_adapter.table_page("nope", 1, 50)

    def test_concurrent_pages(self, sqlite_adapter):
        with ThreadPoolExecutor(max_workers=4) as pool:
            pages = list(pool.map(lambda n: sqlite_adapter.table_page("items", n, 50), range(1, 6)))

        assert [p.rows[0][0].value for p in pages] == [1, 51, 101, 151, 201]


class TestSQLiteQueries:
    """Test passthrough query execution."""

    def test_scalar_query(self, sqlite_adapter):
        result = sqlite_adapter.execute_query("select 1+1")

        assert result.columns == ["1+1"]
        assert result.rows == [[Value(ValueKind.INTEGER, 2)]]

    def test_syntax_error_is_passed_through(self, sqlite_adapter):
        with pytest.raises(QueryExecutionError) as exc_info:
            sqlite_adapter.execute_query("SELEC 1")

        assert "syntax error" in exc_info.value.message
        assert exc_info.value.sql == "SELEC 1"

    def test_statement_without_result_set(self, sqlite_adapter):
        result = sqlite_adapter.execute_query("CREATE TABLE extra (x INTEGER)")

        assert result.columns == []
        assert result.rows == []
        assert "extra" in sqlite_adapter.get_tables()

    def test_null_and_text(self, sqlite_adapter):
        result = sqlite_adapter.execute_query("SELECT NULL AS a, 'x' AS b")
        assert result.to_dict() == {"columns": ["a", "b"], "rows": [[None, "x"]]}

    def test_read_only_rejects_writes(self, items_db, test_settings):
        with SQLiteAdapter(items_db, read_only=True, settings=test_settings) as adapter:
            with pytest.raises(QueryExecutionError) as exc_info:
                adapter.execute_query("DELETE FROM items")
        assert "readonly" in exc_info.value.message


class TestSQLiteConnection:
    """Test opening failures and lifecycle."""

    def test_directory_is_rejected(self, tmp_path, test_settings):
        adapter = SQLiteAdapter(str(tmp_path), settings=test_settings)
        with pytest.raises(ConnectionLostError):
            adapter.ping()

    def test_missing_file_is_not_created(self, tmp_path, test_settings):
        path = tmp_path / "missing.db"
        adapter = SQLiteAdapter(str(path), settings=test_settings)

        with pytest.raises(ConnectionLostError):
            adapter.ping()
        assert not path.exists()

    def test_close_then_reuse_reopens(self, sqlite_adapter):
        sqlite_adapter.close()
        assert sqlite_adapter.execute("SELECT 1").scalar() == 1
