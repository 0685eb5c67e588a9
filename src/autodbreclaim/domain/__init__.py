"""
Domain layer.

Pure data structures and rules for capacity reclaim runs.
"""

from .errors import CatalogError, ConfigError, ReclaimError
from .models import (
    CapacityFact,
    DatabaseOutcome,
    DatabaseRecord,
    Decision,
    ReclaimAction,
    ReclaimReport,
)

__all__ = [
    "CapacityFact",
    "CatalogError",
    "ConfigError",
    "DatabaseOutcome",
    "DatabaseRecord",
    "Decision",
    "ReclaimAction",
    "ReclaimError",
    "ReclaimReport",
]
