"""Tests for the MySQL adapter with a stubbed pymysql driver."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from sqlscope.config import Settings
from sqlscope.database.models import RawResult
from sqlscope.database.mysql import JSON_FIELD_TYPE, MySQLAdapter
from sqlscope.database.pool import ConnectionPool
from sqlscope.database.values import Value, ValueKind
from sqlscope.errors import ConnectionLostError, QueryExecutionError


class MySQLError(Exception):
    pass


class InterfaceError(MySQLError):
    pass


class OperationalError(MySQLError):
    pass


class ProgrammingError(MySQLError):
    pass


def fake_pymysql():
    err = SimpleNamespace(
        InterfaceError=InterfaceError,
        OperationalError=OperationalError,
        ProgrammingError=ProgrammingError,
    )
    return SimpleNamespace(MySQLError=MySQLError, err=err, connect=MagicMock())


def fake_connection(description=None, rows=None, error=None):
    cursor = MagicMock()
    cursor.description = description
    cursor.fetchall.return_value = rows or ()
    if error is not None:
        cursor.execute.side_effect = error
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn, cursor


def wire(adapter, *connections):
    adapter._pymysql = fake_pymysql()
    queue = list(connections)
    adapter._pool = ConnectionPool(lambda: queue.pop(0), max_size=1)
    return adapter._pool


@pytest.fixture
def adapter():
    return MySQLAdapter(host="db.local", user="app", password="pw", database="shop", settings=Settings())


class TestMySQLExecute:
    """Test execution and driver error mapping."""

    def test_select_one_plus_one(self, adapter):
        conn, _ = fake_connection(description=[("1+1", 8, None, 3, 3, 0, False)], rows=((2,),))
        wire(adapter, conn)

        result = adapter.execute_query("select 1+1")

        assert result.columns == ["1+1"]
        assert result.rows == [[Value.integer(2)]]

    def test_json_columns_are_compacted(self, adapter):
        description = [("id", 3, None, 11, 11, 0, False), ("doc", JSON_FIELD_TYPE, None, 0, 0, 0, True)]
        conn, _ = fake_connection(description=description, rows=((1, '{"a": [1, 2]}'),))
        wire(adapter, conn)

        result = adapter.execute_query("SELECT id, doc FROM docs")

        assert result.rows == [[Value.integer(1), Value(ValueKind.TEXT, '{"a":[1,2]}')]]

    def test_server_error_message_is_verbatim(self, adapter):
        conn, _ = fake_connection(error=ProgrammingError(1146, "Table 'shop.nope' doesn't exist"))
        pool = wire(adapter, conn)

        with pytest.raises(QueryExecutionError) as exc_info:
            adapter.execute("SELECT * FROM nope")

        assert exc_info.value.message == "Table 'shop.nope' doesn't exist"
        assert pool.idle_count == 1

    def test_server_gone_is_connection_lost(self, adapter):
        conn, _ = fake_connection(error=OperationalError(2006, "MySQL server has gone away"))
        pool = wire(adapter, conn)

        with pytest.raises(ConnectionLostError):
            adapter.execute("SELECT 1")

        conn.close.assert_called_once()
        assert pool.idle_count == 0

    def test_lock_timeout_is_not_connection_lost(self, adapter):
        conn, _ = fake_connection(error=OperationalError(1205, "Lock wait timeout exceeded"))
        wire(adapter, conn)

        with pytest.raises(QueryExecutionError):
            adapter.execute("UPDATE t SET x = 1")

    def test_connect_arguments(self, adapter):
        adapter._pymysql = fake_pymysql()
        adapter._open_connection()
        kwargs = adapter._pymysql.connect.call_args.kwargs
        assert kwargs["host"] == "db.local"
        assert kwargs["port"] == 3306
        assert kwargs["charset"] == "utf8mb4"
        assert kwargs["autocommit"] is True


class TestMySQLCatalog:
    """Test catalog hooks with canned results."""

    def test_backtick_quoting(self, adapter):
        assert adapter.quote_identifier("we`ird") == "`we``ird`"

    def test_columns(self, adapter):
        rows = [("id", "int", "NO", "PRI", 1), ("active", "tinyint(1)", "YES", "", 2)]
        with patch.object(adapter, "execute", return_value=RawResult(["a"], [], rows)):
            columns = adapter.get_columns("users")

        assert columns[0].is_primary_key and not columns[0].is_nullable
        assert columns[1].value_kind() is ValueKind.BOOLEAN

    def test_row_count_is_estimate(self, adapter):
        with patch.object(adapter, "execute", return_value=RawResult(["a", "b"], [], [(980, 65536)])):
            row_count = adapter.get_row_count("users")
        assert row_count.value == 980
        assert row_count.is_estimate

    def test_table_ddl(self, adapter):
        ddl = "CREATE TABLE `users` (\n  `id` int NOT NULL\n)"
        with patch.object(adapter, "execute", return_value=RawResult(["Table", "Create Table"], [], [("users", ddl)])) as execute:
            assert adapter.get_table_ddl("users") == ddl
        execute.assert_called_once_with("SHOW CREATE TABLE `users`")

    def test_foreign_keys_grouped_by_constraint(self, adapter):
        rows = [
            ("fk_wh", "region", "warehouses", "region"),
            ("fk_wh", "code", "warehouses", "code"),
        ]
        with patch.object(adapter, "execute", return_value=RawResult(["a"], [], rows)):
            foreign_keys = adapter.get_foreign_keys("stock")

        assert len(foreign_keys) == 1
        assert foreign_keys[0].from_columns == ["region", "code"]

    def test_database_info(self, adapter):
        modified = datetime(2024, 6, 1, 9, 30)
        with patch.object(adapter, "execute", return_value=RawResult(["a"], [], [("shop", "8.0.36", 1024, modified)])):
            info = adapter.get_database_info()

        assert info.version == "8.0.36"
        assert info.size_bytes == 1024
        assert info.modified == datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)
