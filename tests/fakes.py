"""
Test doubles for reclaim tests.

Provides a fake SqlConnector whose "connections" are just database names,
so tests can assert which databases were opened and remediated.
"""

from __future__ import annotations

from contextlib import contextmanager
from unittest.mock import MagicMock

from autodbreclaim.infrastructure import sql_queries

MB = 1_048_576


def make_connector(
    catalog: list[tuple[str, float]],
    max_sizes_mb: dict[str, float],
    missing_tables: set[str] | None = None,
    failing: set[str] | None = None,
    catalog_error: Exception | None = None,
) -> MagicMock:
    """
    Build a fake connector.

    Args:
        catalog: (database_name, size_mb) rows returned from master
        max_sizes_mb: Max size per database in MB (None -> NULL from server)
        missing_tables: Databases without the remediation table
        failing: Databases whose connection raises
        catalog_error: Raised when connecting to master
    """
    missing_tables = missing_tables or set()
    failing = failing or set()

    connector = MagicMock()
    connector.server_instance = "sql01.test"

    @contextmanager
    def connect(database: str = "master"):
        if database == "master" and catalog_error is not None:
            raise catalog_error
        if database in failing:
            raise RuntimeError(f"Login failed for database '{database}'")
        yield database

    def fetch_rows(conn, query, *params):
        assert conn == "master"
        return [{"database_name": name, "size_mb": size} for name, size in catalog]

    def fetch_scalar(conn, query, *params):
        if query == sql_queries.MAX_SIZE_BYTES:
            size = max_sizes_mb[conn]
            return None if size is None else int(size * MB)
        if query == sql_queries.TABLE_EXISTS:
            return 0 if conn in missing_tables else 1
        raise AssertionError(f"Unexpected scalar query: {query}")

    connector.connect.side_effect = connect
    connector.fetch_rows.side_effect = fetch_rows
    connector.fetch_scalar.side_effect = fetch_scalar
    connector.execute.return_value = -1
    return connector


def remediated_databases(connector: MagicMock) -> list[str]:
    """Databases the remediation statement was executed against."""
    return [c.args[0] for c in connector.execute.call_args_list]


def opened_databases(connector: MagicMock) -> list[str]:
    """Databases opened after the catalog pass (the catalog uses connect())."""
    return [c.args[0] for c in connector.connect.call_args_list if c.args]
