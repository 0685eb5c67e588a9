"""Exceptions raised by reclaim runs."""


class ReclaimError(Exception):
    """Base class for reclaim failures."""


class CatalogError(ReclaimError):
    """The administrative catalog could not be reached or queried."""

    def __init__(self, server: str, message: str):
        self.server = server
        super().__init__(f"Catalog query failed on {server}: {message}")


class ConfigError(ReclaimError, ValueError):
    """Configuration file missing, malformed, or invalid."""


class DriverNotFoundError(ReclaimError, RuntimeError):
    """No SQL Server ODBC driver is installed; nothing can connect."""
