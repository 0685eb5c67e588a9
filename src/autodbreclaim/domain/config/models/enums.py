"""
Domain enums for configuration system.

This module defines all enumeration types used in the configuration domain.
"""

from enum import Enum


class AuthType(Enum):
    """Authentication types for SQL Server connections."""

    WINDOWS = "windows"
    SQL = "sql"


class MissingTablePolicy(Enum):
    """How to treat a database that lacks the designated remediation table."""

    SKIP = "skip"
    FAIL = "fail"
