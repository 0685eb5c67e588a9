"""
Tests for SqlConnector.

pyodbc.connect and pyodbc.drivers are patched; no server is needed.
"""

from unittest.mock import MagicMock, patch

import pytest

from autodbreclaim.domain.config import ReclaimTarget
from autodbreclaim.domain.errors import DriverNotFoundError
from autodbreclaim.infrastructure.sql_server import SqlConnector

DRIVERS = ["SQLite3", "ODBC Driver 17 for SQL Server", "ODBC Driver 18 for SQL Server"]


@pytest.fixture
def drivers():
    with patch("autodbreclaim.infrastructure.sql_server.pyodbc.drivers", return_value=DRIVERS):
        yield


@pytest.fixture
def connector(drivers):
    return SqlConnector("sql01,1433", auth="sql", username="admin", password="p;w}d")


class TestConnectionString:

    def test_prefers_newest_driver(self, connector):
        conn_str = connector.build_connection_string()
        assert conn_str.startswith("DRIVER={ODBC Driver 18 for SQL Server}")

    def test_targets_requested_database(self, connector):
        assert "DATABASE={sales}" in connector.build_connection_string("sales")
        assert "DATABASE={master}" in connector.build_connection_string()

    def test_sql_auth_escapes_password(self, connector):
        conn_str = connector.build_connection_string()
        assert "UID=admin" in conn_str
        assert "PWD={p;w}}d}" in conn_str

    def test_integrated_auth(self, drivers):
        conn_str = SqlConnector("sql01", auth="integrated").build_connection_string()
        assert "Trusted_Connection=yes" in conn_str
        assert "UID=" not in conn_str

    def test_sql_auth_requires_credentials(self, drivers):
        with pytest.raises(ValueError, match="Username and password required"):
            SqlConnector("sql01", auth="sql").build_connection_string()

    def test_no_driver_installed(self):
        with patch("autodbreclaim.infrastructure.sql_server.pyodbc.drivers", return_value=["SQLite3"]):
            with pytest.raises(DriverNotFoundError, match="No SQL Server ODBC driver"):
                SqlConnector("sql01", auth="integrated").build_connection_string()

    def test_from_target(self, drivers):
        target = ReclaimTarget(id="p", server="sql01", port=1500, auth="sql",
                               username="admin", password="pw", connect_timeout=5)
        connector = SqlConnector.from_target(target)

        assert connector.server_instance == "sql01,1500"
        assert connector.password == "pw"
        assert connector.connect_timeout == 5


class TestScopedConnection:

    def test_connection_closed_after_use(self, connector):
        conn = MagicMock()
        with patch("autodbreclaim.infrastructure.sql_server.pyodbc.connect", return_value=conn) as connect:
            with connector.connect("sales") as opened:
                assert opened is conn

        assert connect.call_args.kwargs["autocommit"] is True
        conn.close.assert_called_once()

    def test_connection_closed_on_error(self, connector):
        conn = MagicMock()
        with patch("autodbreclaim.infrastructure.sql_server.pyodbc.connect", return_value=conn):
            with pytest.raises(RuntimeError):
                with connector.connect("sales"):
                    raise RuntimeError("query failed")

        conn.close.assert_called_once()


class TestExecution:

    def _conn(self, rows=None, description=None, rowcount=-1):
        cursor = MagicMock()
        cursor.description = description
        cursor.fetchall.return_value = rows or []
        cursor.fetchone.return_value = rows[0] if rows else None
        cursor.rowcount = rowcount
        conn = MagicMock()
        conn.cursor.return_value = cursor
        return conn, cursor

    def test_fetch_rows_returns_dicts(self):
        conn, cursor = self._conn(
            rows=[("sales", 850.0), ("hr", 10.5)],
            description=[("database_name",), ("size_mb",)],
        )

        rows = SqlConnector.fetch_rows(conn, "SELECT ...")

        assert rows == [
            {"database_name": "sales", "size_mb": 850.0},
            {"database_name": "hr", "size_mb": 10.5},
        ]
        cursor.close.assert_called_once()

    def test_fetch_scalar(self):
        conn, cursor = self._conn(rows=[(1048576000,)])

        assert SqlConnector.fetch_scalar(conn, "SELECT ?", "x") == 1048576000
        cursor.execute.assert_called_once_with("SELECT ?", "x")

    def test_fetch_scalar_no_rows(self):
        conn, _ = self._conn(rows=[])
        assert SqlConnector.fetch_scalar(conn, "SELECT 1") is None

    def test_execute_returns_rowcount(self):
        conn, cursor = self._conn(rowcount=-1)

        assert SqlConnector.execute(conn, "TRUNCATE TABLE [dbo].[EventLog]") == -1
        cursor.execute.assert_called_once_with("TRUNCATE TABLE [dbo].[EventLog]")
        cursor.close.assert_called_once()
