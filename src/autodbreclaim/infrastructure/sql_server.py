"""
SQL Server connection and query execution module.

Handles:
- Connection string building
- ODBC driver detection and fallback
- Scoped per-database connections (opened, used, always closed)
- Query, scalar and statement execution
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

import pyodbc

from autodbreclaim.domain.config import ReclaimTarget
from autodbreclaim.domain.errors import DriverNotFoundError

logger = logging.getLogger(__name__)

CATALOG_DATABASE = "master"


class SqlConnector:
    """
    SQL Server connection manager.

    Every call to connect() opens a fresh connection to one database and
    closes it when the block exits, whatever the outcome.
    """

    def __init__(self, server_instance: str, auth: str = "sql",
                 username: str | None = None, password: str | None = None,
                 connect_timeout: int = 30, encrypt: bool = True):
        """
        Initialize SQL connector.

        Args:
            server_instance: Server instance string (e.g., "SERVER\\INSTANCE" or "SERVER,PORT")
            auth: Authentication mode ('integrated'/'windows' or 'sql')
            username: SQL username (required if auth='sql')
            password: SQL password (required if auth='sql')
            connect_timeout: Connection timeout in seconds
            encrypt: Request an encrypted connection
        """
        self.server_instance = server_instance
        self.auth = auth.lower()
        self.username = username
        self.password = password
        self.connect_timeout = connect_timeout
        self.encrypt = encrypt
        self._driver: str | None = None

        logger.info("SqlConnector initialized for %s (auth=%s)", server_instance, self.auth)

    @classmethod
    def from_target(cls, target: ReclaimTarget) -> SqlConnector:
        """Build a connector from a configured target."""
        credential = target.credential
        return cls(
            server_instance=target.server_instance,
            auth="sql" if target.uses_sql_auth else "integrated",
            username=credential.username if credential else target.username,
            password=credential.get_password() if credential else None,
            connect_timeout=target.connect_timeout,
        )

    def _detect_odbc_driver(self) -> str:
        """
        Detect best available ODBC driver.

        Returns:
            ODBC driver name

        Raises:
            DriverNotFoundError: If no suitable driver found
        """
        if self._driver:
            return self._driver

        drivers = pyodbc.drivers()
        logger.debug("Available ODBC drivers: %s", drivers)

        # Preferred drivers (newest first)
        preferred = [
            "ODBC Driver 18 for SQL Server",
            "ODBC Driver 17 for SQL Server",
            "ODBC Driver 13 for SQL Server",
        ]

        for driver in preferred:
            if driver in drivers:
                logger.info("Using ODBC driver: %s", driver)
                self._driver = driver
                return driver

        fallback = [
            "SQL Server Native Client 11.0",
            "SQL Server",
        ]

        for driver in fallback:
            if driver in drivers:
                logger.warning("Using fallback ODBC driver: %s", driver)
                self._driver = driver
                return driver

        raise DriverNotFoundError("No SQL Server ODBC driver found. Please install ODBC Driver 17 or 18.")

    def build_connection_string(self, database: str = CATALOG_DATABASE) -> str:
        """
        Build ODBC connection string for one database.

        Args:
            database: Database to connect to

        Returns:
            Connection string
        """
        driver = self._detect_odbc_driver()

        parts = [
            f"DRIVER={{{driver}}}",
            f"SERVER={self.server_instance}",
            f"DATABASE={{{database.replace('}', '}}')}}}",
            f"TIMEOUT={self.connect_timeout}",
            f"Encrypt={'yes' if self.encrypt else 'no'}",
            "TrustServerCertificate=yes",
        ]

        if self.auth in ("integrated", "windows"):
            parts.append("Trusted_Connection=yes")
        else:
            if not self.username or not self.password:
                raise ValueError("Username and password required for SQL authentication")
            parts.append(f"UID={self.username}")
            parts.append(f"PWD={{{self.password.replace('}', '}}')}}}")

        logger.debug("Connection string built for %s/%s (credentials masked)",
                     self.server_instance, database)
        return ";".join(parts)

    @contextmanager
    def connect(self, database: str = CATALOG_DATABASE) -> Iterator[pyodbc.Connection]:
        """
        Open a scoped connection to a database.

        The connection runs in autocommit mode and is closed on every exit
        path, including errors raised inside the block.
        """
        conn_str = self.build_connection_string(database)
        conn = pyodbc.connect(conn_str, autocommit=True, timeout=self.connect_timeout)
        logger.debug("Connected to %s/%s", self.server_instance, database)
        try:
            yield conn
        finally:
            conn.close()
            logger.debug("Disconnected from %s/%s", self.server_instance, database)

    def test_connection(self) -> bool:
        """
        Test SQL Server connectivity.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            with self.connect() as conn:
                version = self.fetch_scalar(conn, "SELECT @@VERSION")
                logger.info("Connection test successful: %s", self.server_instance)
                logger.debug("SQL Server version: %s...", str(version)[:50])
                return True
        except (pyodbc.Error, RuntimeError, ValueError) as e:
            logger.error("Connection test failed for %s: %s", self.server_instance, e)
            return False

    @staticmethod
    def fetch_rows(conn: pyodbc.Connection, query: str, *params: Any) -> List[Dict[str, Any]]:
        """
        Execute SQL query and return results as list of dictionaries.

        Args:
            conn: Open connection
            query: SQL query string
            params: Positional query parameters

        Returns:
            List of dictionaries (column name -> value)

        Raises:
            pyodbc.Error: If query execution fails
        """
        cursor = conn.cursor()
        try:
            cursor.execute(query, *params)
            columns = [column[0] for column in cursor.description] if cursor.description else []
            results = [dict(zip(columns, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()

        logger.debug("Query returned %d rows, %d columns", len(results), len(columns))
        return results

    @staticmethod
    def fetch_scalar(conn: pyodbc.Connection, query: str, *params: Any) -> Any:
        """
        Execute query and return single scalar value.

        Returns:
            First column of the first row, or None when no rows come back
        """
        cursor = conn.cursor()
        try:
            cursor.execute(query, *params)
            row = cursor.fetchone()
        finally:
            cursor.close()
        return row[0] if row else None

    @staticmethod
    def execute(conn: pyodbc.Connection, statement: str, *params: Any) -> int:
        """
        Execute a statement that returns no rows.

        Returns:
            Row count reported by the driver (-1 when unknown)
        """
        cursor = conn.cursor()
        try:
            cursor.execute(statement, *params)
            return cursor.rowcount
        finally:
            cursor.close()
